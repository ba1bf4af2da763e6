import asyncio
import logging
import time
from functools import lru_cache
from typing import Any

from fastapi import Body, Depends, FastAPI
from fastapi.responses import JSONResponse, StreamingResponse

import db
from agent.errors import UnknownModelError, ValidationError
from agent.formats import GENERATION_PLATFORMS, RECYCLING_PLATFORMS
from agent.llm import LLMClient, get_llm_client
from agent.modules.cost import CostLedger, get_pricing
from agent.modules.generate import ContentGenerator, parse_generation_request
from agent.modules.recycle import RecyclingOrchestrator, parse_recycling_request
from api.sse import sse_events
from config import settings

logger = logging.getLogger(__name__)

app = FastAPI(title="ContentFlow API")

_SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # disable nginx buffering
}


# ── dependencies ──────────────────────────────────────────────────────────────

@lru_cache(maxsize=1)
def get_llm() -> LLMClient:
    return get_llm_client()


@lru_cache(maxsize=1)
def get_ledger() -> CostLedger:
    return CostLedger(
        db.CostStore(),
        warning=settings.cost_warning_threshold,
        danger=settings.cost_danger_threshold,
    )


def get_generator(
    llm: LLMClient = Depends(get_llm),
    ledger: CostLedger = Depends(get_ledger),
) -> ContentGenerator:
    return ContentGenerator(llm, ledger, max_tokens=settings.generation_max_tokens)


def get_orchestrator(
    llm: LLMClient = Depends(get_llm),
    ledger: CostLedger = Depends(get_ledger),
) -> RecyclingOrchestrator:
    return RecyclingOrchestrator(
        llm,
        ledger,
        max_tokens=settings.recycling_max_tokens,
        max_content_chars=settings.max_content_chars,
    )


# ── routes ────────────────────────────────────────────────────────────────────

@app.get("/health", tags=["System"])
async def health_check():
    return {"status": "ok"}


@app.post("/api/generate", tags=["Generation"])
async def generate_endpoint(
    payload: dict[str, Any] = Body(...),
    generator: ContentGenerator = Depends(get_generator),
):
    """Stream one generated document as server-sent events."""
    try:
        request = parse_generation_request(payload)
    except ValidationError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})
    try:
        get_pricing(generator.model)
    except UnknownModelError as exc:
        logger.error("Refusing generation: %s", exc)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    cancel_event = asyncio.Event()
    updates = generator.generate(request, cancel_event=cancel_event)
    return StreamingResponse(
        sse_events(updates, cancel_event),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )


@app.post("/api/recycle", tags=["Recycling"])
async def recycle_endpoint(
    payload: dict[str, Any] = Body(...),
    orchestrator: RecyclingOrchestrator = Depends(get_orchestrator),
):
    """Recycle one text into every requested platform format."""
    started = time.monotonic()
    try:
        request = parse_recycling_request(payload)
        result = await orchestrator.recycle(request)
    except ValidationError as exc:
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})
    except Exception as exc:
        logger.exception("Recycling failed")
        return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})

    if not result.success:
        return JSONResponse(status_code=500, content=result.to_dict())

    body = result.to_dict()
    body["metrics"] = {"processingTimeMs": round((time.monotonic() - started) * 1000)}
    return JSONResponse(status_code=200, content=body)


@app.get("/api/recycle", tags=["Recycling"])
async def recycle_info():
    return {
        "message": "Content Recycling API",
        "endpoints": {"POST": "/api/recycle - recycle content into multiple formats"},
        "supportedPlatforms": list(RECYCLING_PLATFORMS),
        "maxContentChars": settings.max_content_chars,
    }


@app.get("/api/generate", tags=["Generation"])
async def generate_info():
    return {
        "message": "Content Generation API",
        "endpoints": {"POST": "/api/generate - stream generated content (text/event-stream)"},
        "supportedPlatforms": list(GENERATION_PLATFORMS),
    }


@app.get("/api/costs/today", tags=["Costs"])
async def costs_today(ledger: CostLedger = Depends(get_ledger)):
    summary = await asyncio.to_thread(ledger.summary)
    alert = await asyncio.to_thread(ledger.alert)
    return {
        "summary": summary.to_dict() if summary else None,
        "alert": alert.to_dict(),
    }


@app.delete("/api/costs/today", tags=["Costs"])
async def reset_costs_today(ledger: CostLedger = Depends(get_ledger)):
    removed = await asyncio.to_thread(ledger.reset)
    return {"success": True, "removed": removed}
