"""
Stream aggregation for the single-generation path.

Pulls ``StreamEvent``s from a provider stream, rebuilds the document and
reports progress. Single producer, single consumer, not restartable.

Progress rules:
  - +2 per delta, capped at 95 until the stream completes
  - exactly 100 on ``Complete``; a failed stream never reaches 100

Cancellation: when ``cancel_event`` is set, the source stream is closed at
the next suspension point and nothing more is emitted.
"""
import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

from agent.models import Complete, CostBreakdown, Delta, Failure, StreamEvent
from agent.modules.cost import calculate_cost
from agent.modules.tokens import estimate_tokens

logger = logging.getLogger(__name__)

PROGRESS_STEP = 2
PROGRESS_CAP = 95


@dataclass(frozen=True)
class Progress:
    text: str
    percent: int
    output_tokens: int


@dataclass(frozen=True)
class Finished:
    content: str
    cost: CostBreakdown
    percent: int = 100


@dataclass(frozen=True)
class Failed:
    reason: str


AggregateUpdate = Progress | Finished | Failed


class StreamAggregator:
    def __init__(self, model: str, input_tokens: int, cancel_event: asyncio.Event | None = None):
        self.model = model
        self.input_tokens = input_tokens
        self._cancel = cancel_event or asyncio.Event()
        self._text = ""
        self.percent = 0
        self.output_tokens = 0
        self._consumed = False

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    @property
    def content(self) -> str:
        return self._text

    def cancel(self) -> None:
        self._cancel.set()

    def _on_delta(self, text: str) -> Progress:
        self._text += text
        self.output_tokens = estimate_tokens(self._text)
        self.percent = min(self.percent + PROGRESS_STEP, PROGRESS_CAP)
        return Progress(text=text, percent=self.percent, output_tokens=self.output_tokens)

    def _on_complete(self) -> Finished:
        self.percent = 100
        cost = calculate_cost(self.input_tokens, self.output_tokens, self.model)
        logger.info(
            "Stream complete: %d chars, ~%d output tokens, $%.4f",
            len(self._text), self.output_tokens, cost.total_cost,
        )
        return Finished(content=self.content, cost=cost)

    async def _next_event(self, source: AsyncIterator[StreamEvent]) -> StreamEvent | None:
        """Await the next event, or return None as soon as the caller cancels."""
        next_task = asyncio.ensure_future(anext(source))
        cancel_task = asyncio.ensure_future(self._cancel.wait())
        try:
            done, _ = await asyncio.wait(
                {next_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            cancel_task.cancel()
            if not next_task.done():
                next_task.cancel()
                await asyncio.gather(next_task, return_exceptions=True)
        if next_task in done:
            return next_task.result()
        return None

    async def aggregate(self, events: AsyncIterator[StreamEvent]) -> AsyncIterator[AggregateUpdate]:
        """Consume ``events`` and yield progress, then one terminal update."""
        if self._consumed:
            raise RuntimeError("StreamAggregator instances are single-use")
        self._consumed = True

        source = aiter(events)
        try:
            while not self.cancelled:
                try:
                    event = await self._next_event(source)
                except StopAsyncIteration:
                    logger.error("Provider stream ended without a terminal event")
                    yield Failed(reason="Stream ended unexpectedly")
                    return

                if event is None or self.cancelled:
                    break

                if isinstance(event, Delta):
                    if event.text:
                        yield self._on_delta(event.text)
                elif isinstance(event, Complete):
                    yield self._on_complete()
                    return
                elif isinstance(event, Failure):
                    logger.warning("Stream failed after %d chars: %s", len(self._text), event.reason)
                    yield Failed(reason=event.reason)
                    return
                else:
                    raise TypeError(f"Unexpected stream event: {event!r}")

            logger.info("Stream cancelled by caller after %d chars", len(self._text))
        finally:
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                await aclose()
