"""Schemas for the chat endpoint."""

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Request body for POST /api/chat. Blank queries are rejected by the handler with a 400 error event."""

    query: str | None = Field(None, description="User question for the agent.")
