import logging

import anthropic
import httpx

from agent.errors import ProviderError
from agent.llm.base import LLMClient, LLMResponse
from agent.models import Complete, Delta, Failure

logger = logging.getLogger(__name__)


class AnthropicClient(LLMClient):
    # No enforced JSON mode: expect_json relies on the prompt alone.
    supports_json_mode = False

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        max_retries: int = 0,
        temperature: float = 0.7,
    ):
        self._client = anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
            max_retries=max_retries,
        )
        self.model = model
        self._temperature = temperature

    async def complete(
        self,
        system: str,
        user: str,
        max_tokens: int = 2000,
        expect_json: bool = False,
    ) -> LLMResponse:
        try:
            msg = await self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=self._temperature,
                system=system,
                messages=[{"role": "user", "content": user}],
            )
        except (anthropic.APIError, httpx.HTTPError) as exc:
            raise ProviderError(f"Anthropic request failed: {exc}", model=self.model) from exc

        content = "".join(
            block.text for block in msg.content if getattr(block, "type", "") == "text"
        )
        if not content:
            raise ProviderError("Anthropic returned an empty response", model=self.model)
        return LLMResponse(
            content=content,
            input_tokens=msg.usage.input_tokens or 0,
            output_tokens=msg.usage.output_tokens or 0,
            model=self.model,
        )

    async def stream(self, system: str, user: str, max_tokens: int = 1000):
        received = False
        try:
            async with self._client.messages.stream(
                model=self.model,
                max_tokens=max_tokens,
                temperature=self._temperature,
                system=system,
                messages=[{"role": "user", "content": user}],
            ) as stream:
                async for text in stream.text_stream:
                    if text:
                        received = True
                        yield Delta(text=text)
        except (anthropic.APIError, httpx.HTTPError) as exc:
            logger.error("Anthropic stream failed: %s", exc)
            yield Failure(reason=str(ProviderError(f"Anthropic stream failed: {exc}", model=self.model)))
            return

        if not received:
            yield Failure(reason=str(ProviderError("Anthropic returned an empty response", model=self.model)))
            return
        yield Complete()
