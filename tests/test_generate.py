"""
Tests for the single-generation pipeline.
"""
import asyncio

import pytest

from agent.errors import UnknownModelError, ValidationError
from agent.models import Complete, Delta, Failure, GenerationRequest, Tone
from agent.modules.generate import ContentGenerator, parse_generation_request
from agent.modules.stream import Failed, Finished, Progress
from api.sse import delta_message, error_message, sse_events
from conftest import FakeLLM


def _request(**overrides):
    data = {
        "topic": "Remote work productivity",
        "tone": "professional",
        "targetAudience": "startup founders",
        "platform": "linkedin",
    }
    data.update(overrides)
    return parse_generation_request(data)


async def _run(generator, request):
    return [update async for update in generator.generate(request)]


class TestParseGenerationRequest:
    """Payload validation."""

    def test_valid(self):
        request = _request(additionalContext="  based on our 2024 survey ")
        assert request.tone == Tone.PROFESSIONAL
        assert request.platform == "linkedin"
        assert request.additional_context == "based on our 2024 survey"

    def test_content_type_alias(self):
        request = parse_generation_request({
            "topic": "t", "tone": "casual", "targetAudience": "a", "contentType": "blog",
        })
        assert request.platform == "blog"

    @pytest.mark.parametrize("field", ["topic", "tone", "targetAudience", "platform"])
    def test_missing_field(self, field):
        with pytest.raises(ValidationError):
            _request(**{field: ""})

    def test_all_tones_accepted(self):
        for tone in Tone:
            assert _request(tone=tone.value).tone == tone

    def test_bad_tone(self):
        with pytest.raises(ValidationError):
            _request(tone="sarcastic")

    def test_bad_platform(self):
        with pytest.raises(ValidationError):
            _request(platform="myspace")

    def test_topic_too_long(self):
        with pytest.raises(ValidationError):
            _request(topic="x" * 10_001)

    def test_input_text(self):
        request = GenerationRequest(
            topic="AI", tone=Tone.CASUAL, target_audience="devs", platform="twitter",
        )
        assert request.input_text() == "AI devs "


class TestContentGenerator:
    """Streaming, cost and ledger."""

    def test_stream_success_records_cost(self, ledger):
        llm = FakeLLM(events=[Delta("Hello "), Delta("world"), Complete()])
        updates = asyncio.run(_run(ContentGenerator(llm, ledger), _request()))

        assert [type(u) for u in updates] == [Progress, Progress, Finished]
        finished = updates[-1]
        assert finished.content == "Hello world"
        assert finished.cost.model == "gpt-4o-mini"

        summary = ledger.summary()
        assert summary.request_count == 1
        assert summary.total_cost == finished.cost.total_cost

    def test_failure_records_nothing(self, ledger):
        llm = FakeLLM(events=[Delta("partial"), Failure("provider down")])
        updates = asyncio.run(_run(ContentGenerator(llm, ledger), _request()))

        assert isinstance(updates[-1], Failed)
        assert ledger.summary() is None

    def test_input_tokens_from_request_fields(self):
        llm = FakeLLM()
        request = _request(topic="abcd", targetAudience="efgh")
        updates = asyncio.run(_run(ContentGenerator(llm), request))
        # "abcd efgh " is 10 characters
        assert updates[-1].cost.input_tokens == 3

    def test_unknown_model_before_streaming(self):
        llm = FakeLLM(model="mystery-model")
        with pytest.raises(UnknownModelError):
            asyncio.run(_run(ContentGenerator(llm), _request()))
        assert llm.stream_calls == 0

    def test_provider_stream_closed(self):
        llm = FakeLLM()
        asyncio.run(_run(ContentGenerator(llm), _request()))
        assert llm.stream_closed is True

    def test_ledger_failure_still_finishes(self, ledger, monkeypatch):
        def disk_full(cost):
            raise OSError("disk full")

        monkeypatch.setattr(ledger, "append", disk_full)
        updates = asyncio.run(_run(ContentGenerator(FakeLLM(), ledger), _request()))

        assert isinstance(updates[-1], Finished)
        assert updates[-1].content == "Hello world"

    def test_model_property(self):
        assert ContentGenerator(FakeLLM(model="gpt-4o")).model == "gpt-4o"


class TestSseEvents:
    """Rendering updates as SSE frames."""

    def test_unexpected_error_ends_with_error_frame(self):
        async def updates():
            yield Progress(text="Hello", percent=2, output_tokens=2)
            raise OSError("disk full")

        async def run():
            return [frame async for frame in sse_events(updates(), asyncio.Event())]

        frames = asyncio.run(run())
        assert frames[0] == delta_message("Hello")
        assert frames[-1] == error_message("Internal error: disk full")
