"""Stream events sent to the client as `data: <json>` frames."""

from typing import Literal

from pydantic import BaseModel

from app.schemas.search import SearchResponse

EventType = Literal["reasoning", "tool_call", "response", "error", "done"]


class StreamEvent(BaseModel):
    type: EventType
    content: str | None = None
    tool: str | None = None
    input: str | None = None
    output: SearchResponse | None = None

    @classmethod
    def reasoning(cls, content: str) -> "StreamEvent":
        return cls(type="reasoning", content=content)

    @classmethod
    def tool_call(cls, tool: str, query: str, output: SearchResponse) -> "StreamEvent":
        return cls(type="tool_call", tool=tool, input=query, output=output)

    @classmethod
    def response(cls, content: str) -> "StreamEvent":
        return cls(type="response", content=content)

    @classmethod
    def error(cls, content: str) -> "StreamEvent":
        return cls(type="error", content=content)

    @classmethod
    def done(cls) -> "StreamEvent":
        return cls(type="done")

    def to_json(self) -> str:
        """Compact JSON with wire field names; unset optional fields are omitted."""
        return self.model_dump_json(by_alias=True, exclude_none=True)
