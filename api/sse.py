"""Server-sent-event framing for the generation stream.

Wire format, one JSON object per message:

    data: {"content": "...", "isComplete": false}\n\n
    data: {"type": "cost_tracking", "data": {...}}\n\n      (success only)
    data: {"content": "", "isComplete": true}\n\n

A failed stream ends with ``{"content": "", "isComplete": true, "error": "..."}``.
"""
import asyncio
import json
import logging
from collections.abc import AsyncIterator

from agent.errors import ContentFlowError
from agent.models import CostBreakdown
from agent.modules.stream import AggregateUpdate, Failed, Finished, Progress

logger = logging.getLogger(__name__)


def frame(message: dict) -> str:
    return f"data: {json.dumps(message, ensure_ascii=False)}\n\n"


def delta_message(text: str) -> str:
    return frame({"content": text, "isComplete": False})


def cost_message(cost: CostBreakdown) -> str:
    return frame({"type": "cost_tracking", "data": cost.to_dict()})


def complete_message() -> str:
    return frame({"content": "", "isComplete": True})


def error_message(reason: str) -> str:
    return frame({"content": "", "isComplete": True, "error": reason})


async def sse_events(
    updates: AsyncIterator[AggregateUpdate],
    cancel_event: asyncio.Event,
) -> AsyncIterator[str]:
    """Render aggregator updates as SSE frames.

    If the client goes away the response generator is closed; the cancel
    event then stops the provider stream as well.
    """
    try:
        async for update in updates:
            if isinstance(update, Progress):
                yield delta_message(update.text)
            elif isinstance(update, Finished):
                yield cost_message(update.cost)
                yield complete_message()
            elif isinstance(update, Failed):
                yield error_message(update.reason)
    except ContentFlowError as exc:
        logger.error("Generation aborted: %s", exc)
        yield error_message(str(exc))
    except Exception as exc:
        logger.exception("Generation failed")
        yield error_message(f"Internal error: {exc}")
    finally:
        cancel_event.set()
        await updates.aclose()
