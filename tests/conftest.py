"""Shared fixtures: a scripted LLM client and a temporary cost ledger."""
import pytest

import db
from agent.llm.base import LLMClient, LLMResponse
from agent.models import Complete, Delta
from agent.modules.cost import CostLedger


class FakeLLM(LLMClient):
    """Scripted client.

    ``responses`` maps a platform name (found in the user prompt) to the raw
    completion text, or to an exception to raise for that platform.
    """

    def __init__(self, responses=None, events=None, model="gpt-4o-mini"):
        self.model = model
        self.responses = responses or {}
        self.events = events if events is not None else [Delta("Hello "), Delta("world"), Complete()]
        self.complete_calls: list[tuple[str, str]] = []
        self.stream_calls = 0
        self.stream_closed = False

    async def complete(self, system, user, max_tokens=2000, expect_json=False):
        self.complete_calls.append((system, user))
        for platform, response in self.responses.items():
            if f"Platform: {platform}\n" in user:
                if isinstance(response, BaseException):
                    raise response
                return LLMResponse(content=response, input_tokens=0, output_tokens=0, model=self.model)
        return LLMResponse(content='{"content": "fallback"}', input_tokens=0, output_tokens=0, model=self.model)

    async def stream(self, system, user, max_tokens=1000):
        self.stream_calls += 1
        try:
            for event in self.events:
                yield event
        finally:
            self.stream_closed = True


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def store(tmp_path):
    return db.CostStore(tmp_path / "costs.db")


@pytest.fixture
def ledger(store):
    return CostLedger(store, warning=20.0, danger=50.0)
