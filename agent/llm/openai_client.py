import logging

import httpx
import openai
from openai import AsyncOpenAI

from agent.errors import ProviderError
from agent.llm.base import LLMClient, LLMResponse
from agent.models import Complete, Delta, Failure

logger = logging.getLogger(__name__)

# Models that accept response_format={"type": "json_object"}.
JSON_MODE_MODELS = frozenset({
    "gpt-4-1106-preview",
    "gpt-4-turbo",
    "gpt-3.5-turbo-1106",
    "gpt-4o-mini",
    "gpt-4o",
})


class OpenAIClient(LLMClient):
    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout: float = 60.0,
        max_retries: int = 0,
        temperature: float = 0.7,
    ):
        kwargs = {
            "api_key": api_key,
            "timeout": httpx.Timeout(timeout, connect=min(timeout, 10.0)),
            "max_retries": max_retries,
        }
        if base_url:
            kwargs["base_url"] = base_url
        self._client = AsyncOpenAI(**kwargs)
        self.model = model
        self._temperature = temperature

    @property
    def supports_json_mode(self) -> bool:
        return self.model in JSON_MODE_MODELS

    def _messages(self, system: str, user: str) -> list[dict]:
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

    async def complete(
        self,
        system: str,
        user: str,
        max_tokens: int = 2000,
        expect_json: bool = False,
    ) -> LLMResponse:
        extra = {}
        if expect_json and self.supports_json_mode:
            extra["response_format"] = {"type": "json_object"}
        try:
            resp = await self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=self._temperature,
                messages=self._messages(system, user),
                **extra,
            )
        except (openai.APIError, httpx.HTTPError) as exc:
            raise ProviderError(f"OpenAI request failed: {exc}", model=self.model) from exc

        content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise ProviderError("OpenAI returned an empty response", model=self.model)
        usage = resp.usage
        return LLMResponse(
            content=content,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=self.model,
        )

    async def stream(self, system: str, user: str, max_tokens: int = 1000):
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=self._temperature,
                messages=self._messages(system, user),
                stream=True,
            )
        except (openai.APIError, httpx.HTTPError) as exc:
            logger.error("OpenAI stream could not be opened: %s", exc)
            yield Failure(reason=str(ProviderError(f"OpenAI request failed: {exc}", model=self.model)))
            return

        received = False
        try:
            async for chunk in response:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content or ""
                if text:
                    received = True
                    yield Delta(text=text)
        except (openai.APIError, httpx.HTTPError) as exc:
            logger.error("OpenAI stream failed mid-response: %s", exc)
            yield Failure(reason=str(ProviderError(f"OpenAI stream failed: {exc}", model=self.model)))
            return
        finally:
            await response.close()

        if not received:
            yield Failure(reason=str(ProviderError("OpenAI returned an empty response", model=self.model)))
            return
        yield Complete()
