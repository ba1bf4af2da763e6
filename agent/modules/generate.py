import asyncio
import logging
from collections.abc import AsyncIterator

from agent.errors import ValidationError
from agent.formats import get_generation_platform
from agent.llm.base import LLMClient
from agent.models import GenerationRequest, Tone
from agent.modules.cost import CostLedger, get_pricing
from agent.modules.prompt_builder import build_generation_prompt, validate_content
from agent.modules.stream import AggregateUpdate, Finished, StreamAggregator
from agent.modules.tokens import estimate_tokens

logger = logging.getLogger(__name__)


def _field(data: dict, key: str) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


def parse_generation_request(data: dict) -> GenerationRequest:
    """Build a request from a client payload, rejecting anything incomplete.

    Accepts ``contentType`` as an alias of ``platform``.
    """
    topic = _field(data, "topic")
    tone = _field(data, "tone")
    audience = _field(data, "targetAudience")
    platform = _field(data, "platform") or _field(data, "contentType")
    if not (topic and tone and audience and platform):
        raise ValidationError("Missing required fields: topic, tone, targetAudience, platform")

    try:
        tone_value = Tone(tone)
    except ValueError:
        raise ValidationError(
            f"Invalid tone: {tone!r}. Supported: {', '.join(t.value for t in Tone)}"
        ) from None
    get_generation_platform(platform)
    validate_content(topic)

    context = data.get("additionalContext")
    return GenerationRequest(
        topic=topic,
        tone=tone_value,
        target_audience=audience,
        platform=platform,
        additional_context=context.strip() if isinstance(context, str) and context.strip() else None,
    )


class ContentGenerator:
    """Streams one generated document and records its cost.

    Cost is computed once, here, with the model that actually served the
    request.
    """

    def __init__(self, llm: LLMClient, ledger: CostLedger | None = None, max_tokens: int = 1000):
        self._llm = llm
        self._ledger = ledger
        self._max_tokens = max_tokens

    @property
    def model(self) -> str:
        return self._llm.model

    async def generate(
        self,
        request: GenerationRequest,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[AggregateUpdate]:
        prompt = build_generation_prompt(request)
        # Fail fast on a model we cannot price, before opening a connection.
        get_pricing(self._llm.model)

        input_tokens = estimate_tokens(request.input_text())
        logger.info(
            "Generating %s content (tone=%s, model=%s, ~%d input tokens)",
            request.platform, Tone(request.tone).value, self._llm.model, input_tokens,
        )

        aggregator = StreamAggregator(
            model=self._llm.model,
            input_tokens=input_tokens,
            cancel_event=cancel_event,
        )
        events = self._llm.stream(prompt.system, prompt.user, max_tokens=self._max_tokens)
        updates = aggregator.aggregate(events)
        try:
            async for update in updates:
                if isinstance(update, Finished) and self._ledger is not None:
                    try:
                        await asyncio.to_thread(self._ledger.append, update.cost)
                    except Exception:
                        logger.exception("Could not record generation cost")
                yield update
        finally:
            await updates.aclose()
