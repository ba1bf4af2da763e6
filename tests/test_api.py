"""
Tests for the HTTP API.
"""
import json

import pytest
from fastapi.testclient import TestClient

from agent.models import Complete, Delta, Failure
from api.app import app, get_ledger, get_llm
from conftest import FakeLLM


def _frames(body: str) -> list[dict]:
    assert body.endswith("\n\n")
    chunks = [c for c in body.split("\n\n") if c]
    assert all(c.startswith("data: ") for c in chunks)
    return [json.loads(c[len("data: "):]) for c in chunks]


@pytest.fixture
def llm():
    return FakeLLM(responses={
        "linkedin": json.dumps({"content": "LinkedIn post"}),
        "twitter": json.dumps({"content": ["t1", "t2"]}),
    })


@pytest.fixture
def client(llm, ledger):
    app.dependency_overrides[get_llm] = lambda: llm
    app.dependency_overrides[get_ledger] = lambda: ledger
    yield TestClient(app)
    app.dependency_overrides.clear()


GENERATE_BODY = {
    "topic": "Hiring your first engineer",
    "tone": "friendly",
    "targetAudience": "founders",
    "platform": "linkedin",
}


class TestGenerateEndpoint:
    """POST /api/generate streams SSE frames."""

    def test_success_frames_in_order(self, client):
        response = client.post("/api/generate", json=GENERATE_BODY)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"

        frames = _frames(response.text)
        assert frames[0] == {"content": "Hello ", "isComplete": False}
        assert frames[1] == {"content": "world", "isComplete": False}
        assert frames[2]["type"] == "cost_tracking"
        assert frames[2]["data"]["model"] == "gpt-4o-mini"
        assert frames[3] == {"content": "", "isComplete": True}
        assert len(frames) == 4

    def test_failure_ends_with_error_frame(self, client, llm):
        llm.events = [Delta("par"), Failure("provider down")]
        frames = _frames(client.post("/api/generate", json=GENERATE_BODY).text)

        assert frames[-1] == {"content": "", "isComplete": True, "error": "provider down"}
        assert not any(f.get("type") == "cost_tracking" for f in frames)

    def test_unknown_model_rejected_before_streaming(self, client, llm):
        llm.model = "mystery-model"
        response = client.post("/api/generate", json=GENERATE_BODY)

        assert response.status_code == 500
        assert response.json() == {"error": "Unknown model: mystery-model"}
        assert llm.stream_calls == 0

    def test_ledger_failure_still_completes(self, client, ledger, monkeypatch):
        def disk_full(cost):
            raise OSError("disk full")

        monkeypatch.setattr(ledger, "append", disk_full)
        frames = _frames(client.post("/api/generate", json=GENERATE_BODY).text)

        assert frames[-2]["type"] == "cost_tracking"
        assert frames[-1] == {"content": "", "isComplete": True}

    def test_success_is_recorded(self, client, ledger):
        client.post("/api/generate", json=GENERATE_BODY)
        assert ledger.summary().request_count == 1

    @pytest.mark.parametrize("override", [
        {"topic": ""},
        {"tone": "sarcastic"},
        {"platform": "myspace"},
        {"targetAudience": None},
    ])
    def test_bad_request(self, client, override):
        response = client.post("/api/generate", json={**GENERATE_BODY, **override})
        assert response.status_code == 400
        assert "error" in response.json()

    def test_info(self, client):
        data = client.get("/api/generate").json()
        assert "blog" in data["supportedPlatforms"]


class TestRecycleEndpoint:
    """POST /api/recycle returns the full bundle."""

    def test_success(self, client):
        response = client.post(
            "/api/recycle",
            json={"content": "A long article about hiring.", "platforms": ["linkedin", "twitter"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        formats = data["recycledContent"]["formats"]
        assert [f["platform"] for f in formats] == ["linkedin", "twitter"]
        assert set(data["costData"]["platformBreakdown"]) == {"linkedin", "twitter"}
        assert data["metrics"]["processingTimeMs"] >= 0

    @pytest.mark.parametrize("body", [
        {"content": ""},
        {"content": "x" * 10_001},
        {"content": "ok", "platforms": ["myspace"]},
        {},
    ])
    def test_bad_request(self, client, body):
        response = client.post("/api/recycle", json=body)
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_internal_error(self, client, llm):
        llm.model = "mystery-model"
        response = client.post("/api/recycle", json={"content": "Some text"})
        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Unknown model: mystery-model"}

    def test_info(self, client):
        data = client.get("/api/recycle").json()
        assert "quotes" in data["supportedPlatforms"]


class TestCostEndpoints:
    def test_empty_day(self, client):
        data = client.get("/api/costs/today").json()
        assert data["summary"] is None
        assert data["alert"]["shouldAlert"] is False

    def test_summary_and_reset(self, client):
        client.post("/api/generate", json=GENERATE_BODY)
        client.post("/api/generate", json=GENERATE_BODY)

        data = client.get("/api/costs/today").json()
        assert data["summary"]["requestCount"] == 2

        reset = client.delete("/api/costs/today").json()
        assert reset == {"success": True, "removed": 2}
        assert client.get("/api/costs/today").json()["summary"] is None


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
