"""
Tests for the recycling orchestrator.
"""
import asyncio
import json

import pytest

from agent.errors import ProviderError, UnknownModelError, ValidationError
from agent.formats import RECYCLING_PLATFORMS
from agent.models import RecyclingRequest, Tone
from agent.modules.recycle import RecyclingOrchestrator, parse_recycling_request
from conftest import FakeLLM

SOURCE = "We shipped a new analytics dashboard that cuts reporting time in half."


def _all_platform_responses():
    return {
        "linkedin": json.dumps({"content": "LinkedIn post", "hashtags": ["#data"]}),
        "twitter": json.dumps({"content": ["Tweet one (1/2)", "Tweet two (2/2)"]}),
        "instagram": json.dumps({"content": "Insta caption", "hashtags": ["#ig"]}),
        "facebook": json.dumps({"content": "Facebook post"}),
        "email": json.dumps({"subject": "News", "greeting": "Hi", "body": "Body"}),
        "quotes": json.dumps({"content": ["Half the time.", "Ship faster."]}),
    }


class TestRecycle:
    """Fan-out, fan-in and partial failure."""

    def test_all_platforms_in_order(self):
        llm = FakeLLM(responses=_all_platform_responses())
        result = asyncio.run(RecyclingOrchestrator(llm).recycle(RecyclingRequest(content=SOURCE)))

        assert result.success is True
        bundle = result.recycled_content
        assert [f.platform for f in bundle.formats] == list(RECYCLING_PLATFORMS)
        assert bundle.original_content == SOURCE
        assert bundle.id.startswith("recycled_")
        assert len(llm.complete_calls) == 6

    def test_one_failing_platform_is_dropped(self):
        responses = _all_platform_responses()
        responses["instagram"] = ProviderError("rate limited", platform="instagram")
        llm = FakeLLM(responses=responses)

        result = asyncio.run(RecyclingOrchestrator(llm).recycle(RecyclingRequest(content=SOURCE)))

        assert result.success is True
        platforms = [f.platform for f in result.recycled_content.formats]
        assert len(platforms) == 5
        assert "instagram" not in platforms
        assert "instagram" not in result.cost_data.platform_breakdown

    def test_cost_covers_successful_platforms_only(self):
        responses = _all_platform_responses()
        responses["email"] = RuntimeError("boom")
        llm = FakeLLM(responses=responses)

        cost = asyncio.run(
            RecyclingOrchestrator(llm).recycle(RecyclingRequest(content=SOURCE))
        ).cost_data

        assert set(cost.platform_breakdown) == set(RECYCLING_PLATFORMS) - {"email"}
        assert cost.total_cost == pytest.approx(
            sum(pc.cost for pc in cost.platform_breakdown.values()), abs=1e-4
        )
        assert cost.total_tokens == sum(pc.tokens for pc in cost.platform_breakdown.values())

    def test_all_platforms_failing_still_succeeds_empty(self):
        llm = FakeLLM(responses={p: ProviderError("down") for p in RECYCLING_PLATFORMS})
        result = asyncio.run(RecyclingOrchestrator(llm).recycle(RecyclingRequest(content=SOURCE)))
        assert result.success is True
        assert result.recycled_content.formats == []
        assert result.cost_data.total_cost == 0.0

    def test_requested_subset_and_duplicates(self):
        llm = FakeLLM(responses=_all_platform_responses())
        request = RecyclingRequest(content=SOURCE, platforms=("quotes", "linkedin", "quotes"))
        result = asyncio.run(RecyclingOrchestrator(llm).recycle(request))

        assert [f.platform for f in result.recycled_content.formats] == ["quotes", "linkedin"]
        assert len(llm.complete_calls) == 2

    def test_structured_records(self):
        llm = FakeLLM(responses=_all_platform_responses())
        formats = asyncio.run(
            RecyclingOrchestrator(llm).recycle(RecyclingRequest(content=SOURCE))
        ).recycled_content.formats
        by_platform = {f.platform: f for f in formats}

        assert by_platform["email"].metadata["email"]["subject"] == "News"
        assert [q.length for q in by_platform["quotes"].content] == [14, 12]
        assert by_platform["twitter"].character_count == len("Tweet one (1/2)")

    def test_provider_error_carries_platform(self, caplog):
        responses = _all_platform_responses()
        responses["facebook"] = ProviderError("rate limited", model="gpt-4o-mini")
        llm = FakeLLM(responses=responses)

        with caplog.at_level("ERROR", logger="agent.modules.recycle"):
            asyncio.run(RecyclingOrchestrator(llm).recycle(RecyclingRequest(content=SOURCE)))

        assert responses["facebook"].platform == "facebook"
        assert "platform=facebook" in caplog.text

    def test_record_ids_unique_per_bundle(self):
        llm = FakeLLM(responses=_all_platform_responses())
        request = RecyclingRequest(content=SOURCE, platforms=("linkedin",))
        orchestrator = RecyclingOrchestrator(llm)

        first = asyncio.run(orchestrator.recycle(request)).recycled_content.formats[0]
        second = asyncio.run(orchestrator.recycle(request)).recycled_content.formats[0]
        assert first.content == second.content
        assert first.id != second.id

    def test_ledger_failure_keeps_bundle(self, ledger, monkeypatch):
        def disk_full(cost):
            raise OSError("disk full")

        monkeypatch.setattr(ledger, "append", disk_full)
        llm = FakeLLM(responses=_all_platform_responses())
        result = asyncio.run(
            RecyclingOrchestrator(llm, ledger).recycle(RecyclingRequest(content=SOURCE))
        )
        assert result.success is True
        assert len(result.recycled_content.formats) == 6

    def test_ledger_gets_one_entry_per_bundle(self, ledger):
        llm = FakeLLM(responses=_all_platform_responses())
        result = asyncio.run(
            RecyclingOrchestrator(llm, ledger).recycle(RecyclingRequest(content=SOURCE))
        )

        summary = ledger.summary()
        assert summary.request_count == 1
        assert summary.total_cost == result.cost_data.total_cost

    def test_to_dict_wire_shape(self):
        llm = FakeLLM(responses=_all_platform_responses())
        data = asyncio.run(
            RecyclingOrchestrator(llm).recycle(RecyclingRequest(content=SOURCE))
        ).to_dict()
        assert data["success"] is True
        assert len(data["recycledContent"]["formats"]) == 6
        assert set(data["costData"]) >= {"totalInputTokens", "totalOutputTokens", "totalCost", "platformBreakdown"}


class TestValidation:
    """Invalid requests are rejected before any provider call."""

    @pytest.mark.parametrize("request_", [
        RecyclingRequest(content=""),
        RecyclingRequest(content="   "),
        RecyclingRequest(content="x" * 10_001),
        RecyclingRequest(content=SOURCE, platforms=("myspace",)),
        RecyclingRequest(content=SOURCE, platforms=()),
        RecyclingRequest(content=SOURCE, tone=Tone.HUMOROUS),
    ])
    def test_rejected_without_calls(self, request_):
        llm = FakeLLM()
        with pytest.raises(ValidationError):
            asyncio.run(RecyclingOrchestrator(llm).recycle(request_))
        assert llm.complete_calls == []

    def test_exactly_max_length_accepted(self):
        llm = FakeLLM()
        request = RecyclingRequest(content="x" * 10_000, platforms=("linkedin",))
        assert asyncio.run(RecyclingOrchestrator(llm).recycle(request)).success is True

    def test_unknown_model_fails_fast(self):
        llm = FakeLLM(model="mystery-model")
        with pytest.raises(UnknownModelError):
            asyncio.run(RecyclingOrchestrator(llm).recycle(RecyclingRequest(content=SOURCE)))
        assert llm.complete_calls == []


class TestParseRequest:
    """Payload parsing."""

    def test_defaults(self):
        request = parse_recycling_request({"content": SOURCE})
        assert request.platforms is None
        assert request.tone == Tone.PROFESSIONAL
        assert request.industry is None

    def test_full_payload(self):
        request = parse_recycling_request({
            "content": SOURCE,
            "platforms": ["twitter", "email"],
            "tone": "casual",
            "industry": " fintech ",
        })
        assert request.platforms == ("twitter", "email")
        assert request.tone == Tone.CASUAL
        assert request.industry == "fintech"

    @pytest.mark.parametrize("payload", [
        {},
        {"content": 42},
        {"content": SOURCE, "platforms": "twitter"},
        {"content": SOURCE, "tone": "grumpy"},
    ])
    def test_invalid_payloads(self, payload):
        with pytest.raises(ValidationError):
            parse_recycling_request(payload)
