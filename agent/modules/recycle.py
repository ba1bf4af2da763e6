"""
Recycling: one source text fanned out to several platform formats.

    Validating -> Dispatching -> AwaitingAll -> Assembling -> Done
    Validating -> Rejected

Every platform runs concurrently and independently. A platform that fails
for any reason is dropped from the bundle; the rest still come back. There
is no retry: callers re-request the missing platforms.

The orchestrator holds no per-request state, so one instance can serve any
number of concurrent requests.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum

from agent.errors import ProviderError, ValidationError
from agent.formats import RECYCLING_PLATFORMS, get_recycling_platform
from agent.llm.base import LLMClient
from agent.models import (
    RECYCLING_TONES,
    CostBreakdown,
    FormatRecord,
    PlatformCost,
    RecycledBundle,
    RecyclingCost,
    RecyclingRequest,
    RecyclingResult,
    Tone,
    new_record_id,
)
from agent.modules.cost import CostLedger, calculate_cost, get_pricing, round_cost
from agent.modules.normalize import normalize
from agent.modules.prompt_builder import MAX_CONTENT_CHARS, build_recycling_prompt, validate_content
from agent.modules.tokens import estimate_tokens

logger = logging.getLogger(__name__)


class RecycleStage(str, Enum):
    VALIDATING = "validating"
    DISPATCHING = "dispatching"
    AWAITING_ALL = "awaiting_all"
    ASSEMBLING = "assembling"
    DONE = "done"
    REJECTED = "rejected"


@dataclass(frozen=True)
class PlatformOutcome:
    record: FormatRecord
    cost: CostBreakdown


def parse_recycling_request(data: dict) -> RecyclingRequest:
    """Build a request from a client payload."""
    content = data.get("content")
    if not isinstance(content, str):
        raise ValidationError("Content is required")

    platforms = data.get("platforms")
    if platforms is not None:
        if not isinstance(platforms, list) or not all(isinstance(p, str) for p in platforms):
            raise ValidationError("platforms must be a list of platform names")
        platforms = tuple(platforms)

    tone = data.get("tone") or Tone.PROFESSIONAL.value
    try:
        tone_value = Tone(tone)
    except ValueError:
        raise ValidationError(f"Invalid tone: {tone!r}") from None

    industry = data.get("industry")
    return RecyclingRequest(
        content=content,
        platforms=platforms,
        tone=tone_value,
        industry=industry.strip() if isinstance(industry, str) and industry.strip() else None,
    )


class RecyclingOrchestrator:
    def __init__(
        self,
        llm: LLMClient,
        ledger: CostLedger | None = None,
        max_tokens: int = 2000,
        max_content_chars: int = MAX_CONTENT_CHARS,
    ):
        self._llm = llm
        self._ledger = ledger
        self._max_tokens = max_tokens
        self._max_content_chars = max_content_chars

    def _stage(self, request_id: str, stage: RecycleStage, detail: str = "") -> None:
        logger.info("recycle %s: %s%s", request_id, stage.value, f" ({detail})" if detail else "")

    def validate(self, request: RecyclingRequest) -> tuple[str, ...]:
        """Check the request and return the platforms to generate, in order.

        Raises:
            ValidationError: On empty/oversized content, unknown platform or tone.
        """
        validate_content(request.content, self._max_content_chars)
        if Tone(request.tone) not in RECYCLING_TONES:
            raise ValidationError(
                f"Invalid tone for recycling: {Tone(request.tone).value!r}. "
                f"Supported: {', '.join(t.value for t in RECYCLING_TONES)}"
            )
        platforms = request.platforms if request.platforms is not None else tuple(RECYCLING_PLATFORMS)
        if not platforms:
            raise ValidationError("At least one platform is required")
        for platform in platforms:
            get_recycling_platform(platform)
        # Same platform twice would produce two identical tasks.
        return tuple(dict.fromkeys(platforms))

    async def _generate_format(self, request: RecyclingRequest, platform: str) -> PlatformOutcome:
        prompt = build_recycling_prompt(
            request.content,
            platform,
            tone=request.tone,
            industry=request.industry,
            max_chars=self._max_content_chars,
        )
        try:
            response = await self._llm.complete(
                prompt.system,
                prompt.user,
                max_tokens=self._max_tokens,
                expect_json=True,
            )
        except ProviderError as exc:
            exc.platform = exc.platform or platform
            raise
        cost = calculate_cost(
            estimate_tokens(prompt.system + prompt.user),
            estimate_tokens(response.content),
            self._llm.model,
        )
        record = normalize(response.content, platform, record_id=new_record_id())
        if record.over_limit:
            logger.info("%s output exceeds its soft character limit", platform)
        return PlatformOutcome(record=record, cost=cost)

    async def recycle(self, request: RecyclingRequest) -> RecyclingResult:
        """Generate every requested platform and assemble a bundle.

        Raises:
            ValidationError: Before any provider call, if the request is invalid.
            UnknownModelError: If the serving model has no pricing entry.
        """
        bundle_id = new_record_id()
        started = time.monotonic()

        self._stage(bundle_id, RecycleStage.VALIDATING)
        try:
            platforms = self.validate(request)
        except ValidationError as exc:
            self._stage(bundle_id, RecycleStage.REJECTED, str(exc))
            raise
        get_pricing(self._llm.model)

        self._stage(bundle_id, RecycleStage.DISPATCHING, ", ".join(platforms))
        try:
            tasks = [
                asyncio.create_task(self._generate_format(request, platform), name=f"recycle-{platform}")
                for platform in platforms
            ]
        except RuntimeError as exc:
            logger.error("recycle %s: could not start fan-out: %s", bundle_id, exc)
            return RecyclingResult(success=False, error=f"Could not start recycling: {exc}")

        self._stage(bundle_id, RecycleStage.AWAITING_ALL, f"{len(tasks)} tasks")
        results = await asyncio.gather(*tasks, return_exceptions=True)

        self._stage(bundle_id, RecycleStage.ASSEMBLING)
        formats: list[FormatRecord] = []
        breakdown: dict[str, PlatformCost] = {}
        input_tokens = output_tokens = 0
        input_cost = output_cost = 0.0
        for platform, result in zip(platforms, results):
            if isinstance(result, BaseException):
                logger.error("recycle %s: dropping %s: %s", bundle_id, platform, result)
                continue
            formats.append(result.record)
            input_tokens += result.cost.input_tokens
            output_tokens += result.cost.output_tokens
            input_cost += result.cost.input_cost
            output_cost += result.cost.output_cost
            breakdown[platform] = PlatformCost(
                tokens=result.cost.input_tokens + result.cost.output_tokens,
                cost=result.cost.total_cost,
            )

        cost = RecyclingCost(
            total_input_tokens=input_tokens,
            total_output_tokens=output_tokens,
            total_cost=round_cost(sum(pc.cost for pc in breakdown.values())),
            platform_breakdown=breakdown,
        )
        bundle = RecycledBundle(
            id=bundle_id,
            original_content=request.content,
            formats=formats,
            cost=cost,
        )
        if self._ledger is not None and formats:
            entry = CostBreakdown(
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                input_cost=round_cost(input_cost),
                output_cost=round_cost(output_cost),
                total_cost=cost.total_cost,
                model=self._llm.model,
            )
            try:
                await asyncio.to_thread(self._ledger.append, entry)
            except Exception:
                logger.exception("recycle %s: could not record cost", bundle_id)

        self._stage(
            bundle_id,
            RecycleStage.DONE,
            f"{len(formats)}/{len(platforms)} formats in {(time.monotonic() - started) * 1000:.0f} ms",
        )
        return RecyclingResult(success=True, recycled_content=bundle)

