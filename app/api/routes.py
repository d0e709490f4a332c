"""
API route aggregator: register endpoints; no logic, only delegate to handlers.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from app.agent.graph import Orchestrator
from app.api.handlers import handle_chat
from app.services.agent_service import get_orchestrator

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Agentic search chat backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Chat (SSE) ---

@router.post(
    "/api/chat",
    tags=["chat"],
    summary="Ask the agent (SSE stream)",
    description=(
        "Body: {\"query\": string}. Streams `data: <json>` frames with events "
        "reasoning, tool_call, response, error, done. 400 with one error event on a blank or missing query."
    ),
)
async def post_chat(
    request: Request,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> StreamingResponse:
    return await handle_chat(request, orchestrator)
