"""
Event emitter: the sink the orchestrator writes StreamEvents to.

The orchestrator only knows `emit(event)` and `close()`. SSESink turns events
into `data: <json>\\n\\n` frames for a StreamingResponse, one frame per event,
in emission order. MemorySink records events for tests and offline runs.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Coroutine
from typing import Any, Protocol

from app.core.errors import StreamClosed
from app.schemas.events import StreamEvent

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def format_sse(event: StreamEvent) -> str:
    """Wire framing for one event."""
    return f"data: {event.to_json()}\n\n"


class EventSink(Protocol):
    async def emit(self, event: StreamEvent) -> None: ...

    async def close(self) -> None: ...


class MemorySink:
    """Records emitted events in order; counts closes."""

    def __init__(self) -> None:
        self.events: list[StreamEvent] = []
        self.close_count = 0

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    @property
    def types(self) -> list[str]:
        return [e.type for e in self.events]

    async def emit(self, event: StreamEvent) -> None:
        if self.closed:
            raise StreamClosed("sink already closed")
        self.events.append(event)

    async def close(self) -> None:
        self.close_count += 1


class SSESink:
    """
    Queue-backed sink feeding a streaming HTTP response.

    frames() creates the producer coroutine only when iteration starts, so a
    response dropped before streaming leaves nothing unawaited. It yields
    frames until close().
    If the client goes away, frames() is torn down: the producer task is
    cancelled and later emits raise StreamClosed.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[StreamEvent | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def emit(self, event: StreamEvent) -> None:
        if self._closed:
            raise StreamClosed("response stream closed")
        await self._queue.put(event)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(None)

    async def frames(self, start: Callable[[], Coroutine[Any, Any, Any]]) -> AsyncIterator[str]:
        task = asyncio.create_task(start())
        try:
            while True:
                event = await self._queue.get()
                if event is None:
                    await task
                    break
                yield format_sse(event)
        finally:
            self._closed = True
            if not task.done():
                logger.info("[event_stream] client disconnected; cancelling pipeline")
                task.cancel()


def single_event_stream(event: StreamEvent) -> AsyncIterator[str]:
    """Body for responses rejected before the pipeline starts (one frame, then end)."""

    async def _gen() -> AsyncIterator[str]:
        yield format_sse(event)

    return _gen()
