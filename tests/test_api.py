"""
Integration tests for the chat endpoint.

The orchestrator dependency is overridden with scripted clients so tests do not
require a Gemini key or network access.
"""

import asyncio

import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from app.agent.graph import INVALID_QUERY_MESSAGE, Orchestrator
from app.agent.tools import SearchClient
from app.api.handlers import _read_body
from app.core.config import MAX_BODY_BYTES
from app.main import app
from app.services.agent_service import get_orchestrator
from tests.conftest import ScriptedLLM, parse_frames


@pytest.fixture
def llm() -> ScriptedLLM:
    return ScriptedLLM(["false", "2 + 2 equals 4."])


@pytest.fixture
def client(llm: ScriptedLLM):
    app.dependency_overrides[get_orchestrator] = lambda: Orchestrator(llm, SearchClient(mode="mock"))
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"ok": True}


def test_chat_streams_events(client: TestClient) -> None:
    response = client.post("/api/chat", json={"query": "What is 2+2?"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache, no-transform"
    events = parse_frames(response.text)
    assert [e["type"] for e in events] == ["reasoning", "reasoning", "reasoning", "response", "reasoning", "done"]
    assert events[0]["content"] == 'Received: "What is 2+2?"'
    assert events[3]["content"] == "2 + 2 equals 4."
    assert events[-1] == {"type": "done"}


def test_chat_with_search_streams_one_tool_call(client: TestClient, llm: ScriptedLLM) -> None:
    llm.replies = ["true", "It is sunny [1]."]
    response = client.post("/api/chat", json={"query": "current weather in Paris"})
    events = parse_frames(response.text)
    tool_calls = [e for e in events if e["type"] == "tool_call"]
    assert len(tool_calls) == 1
    assert tool_calls[0]["tool"] == "web_search"
    assert tool_calls[0]["input"] == "current weather in Paris"
    assert tool_calls[0]["output"]["totalResults"] == 3
    assert len(tool_calls[0]["output"]["results"]) == 3
    assert events[-1]["type"] == "done"


@pytest.mark.parametrize(
    "body",
    [
        {"query": ""},
        {"query": "   "},
        {"query": 42},
        {},
        {"question": "wrong field"},
    ],
)
def test_invalid_query_returns_400_with_error_event(client: TestClient, llm: ScriptedLLM, body: dict) -> None:
    response = client.post("/api/chat", json=body)
    assert response.status_code == 400
    assert response.headers["content-type"].startswith("text/event-stream")
    assert parse_frames(response.text) == [{"type": "error", "content": INVALID_QUERY_MESSAGE}]
    assert llm.prompts == []


def test_malformed_json_returns_400(client: TestClient, llm: ScriptedLLM) -> None:
    response = client.post("/api/chat", content=b"{not json", headers={"content-type": "application/json"})
    assert response.status_code == 400
    assert parse_frames(response.text)[0]["type"] == "error"
    assert llm.prompts == []


def test_oversized_body_returns_413(client: TestClient, llm: ScriptedLLM) -> None:
    big = "x" * (MAX_BODY_BYTES + 1)
    response = client.post("/api/chat", json={"query": big})
    assert response.status_code == 413
    assert parse_frames(response.text) == [{"type": "error", "content": "Request body too large"}]
    assert llm.prompts == []


def test_chunked_oversized_body_returns_413(client: TestClient, llm: ScriptedLLM) -> None:
    chunks = (b"x" * 65536 for _ in range(MAX_BODY_BYTES // 65536 + 2))
    response = client.post("/api/chat", content=chunks, headers={"content-type": "application/json"})
    assert response.status_code == 413
    assert llm.prompts == []


def _request(headers: list[tuple[bytes, bytes]], messages: list[dict]) -> tuple[Request, list]:
    received = []

    async def receive() -> dict:
        received.append(True)
        return messages.pop(0)

    scope = {"type": "http", "method": "POST", "path": "/api/chat", "headers": headers}
    return Request(scope, receive), received


def test_declared_length_over_limit_is_rejected_without_reading() -> None:
    request, received = _request([(b"content-length", str(MAX_BODY_BYTES + 1).encode())], [])
    assert asyncio.run(_read_body(request)) is None
    assert received == []


def test_body_read_stops_once_limit_is_passed() -> None:
    messages = [{"type": "http.request", "body": b"x" * 6, "more_body": True} for _ in range(5)]
    request, received = _request([], messages)
    assert asyncio.run(_read_body(request, limit=10)) is None
    assert len(received) == 2


def test_body_within_limit_is_returned_whole() -> None:
    messages = [
        {"type": "http.request", "body": b'{"query":', "more_body": True},
        {"type": "http.request", "body": b'"hi"}', "more_body": False},
    ]
    request, _ = _request([], messages)
    assert asyncio.run(_read_body(request)) == b'{"query":"hi"}'


def test_upstream_failure_streams_error_event(client: TestClient, llm: ScriptedLLM) -> None:
    from app.core.errors import LLMUnavailable

    llm.replies = [LLMUnavailable("HTTP 503")]
    response = client.post("/api/chat", json={"query": "anything new?"})
    assert response.status_code == 200
    events = parse_frames(response.text)
    assert [e["type"] for e in events] == ["reasoning", "error"]
    assert events[-1]["content"] == "Agent error: LLM unavailable: HTTP 503"
