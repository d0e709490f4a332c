"""
API handlers: read the raw request, validate it, and start the event stream.

Responsibility: Bridge HTTP types and the pipeline. Body size, JSON shape and
blank queries are rejected here with a status code and a single error event,
before any LLM or search call. Lives in the API layer so the orchestrator
stays free of FastAPI/HTTP types.
"""

import logging

from fastapi import Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError as SchemaValidationError

from app.agent.graph import INVALID_QUERY_MESSAGE, Orchestrator, validate_query
from app.core.config import MAX_BODY_BYTES
from app.core.errors import ValidationError
from app.schemas.events import StreamEvent
from app.schemas.query import ChatRequest
from app.services.event_stream import SSE_HEADERS, SSESink, single_event_stream

logger = logging.getLogger(__name__)


def _reject(message: str, status_code: int) -> StreamingResponse:
    return StreamingResponse(
        single_event_stream(StreamEvent.error(message)),
        status_code=status_code,
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


async def _read_body(request: Request, limit: int = MAX_BODY_BYTES) -> bytes | None:
    """Request body, or None as soon as it is known to exceed limit."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        return None
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            return None
    return bytes(body)


async def handle_chat(request: Request, orchestrator: Orchestrator) -> StreamingResponse:
    """Validate the body and stream the pipeline's events for one query."""
    body = await _read_body(request)
    if body is None:
        logger.info("[api:chat] rejected body over %d bytes", MAX_BODY_BYTES)
        return _reject("Request body too large", 413)
    try:
        payload = ChatRequest.model_validate_json(body or b"{}")
        query = validate_query(payload.query)
    except (SchemaValidationError, ValidationError):
        logger.info("[api:chat] rejected invalid query body_len=%d", len(body))
        return _reject(INVALID_QUERY_MESSAGE, 400)

    logger.info("[api:chat] IN  query=%r", query)
    sink = SSESink()
    return StreamingResponse(
        sink.frames(lambda: orchestrator.run(query, sink)),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )
