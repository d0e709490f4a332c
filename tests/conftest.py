"""
Shared fakes: outbound calls are scripted so tests need no network or API keys.
"""

import json

import httpx
import pytest

from app.schemas.search import SearchResponse


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ScriptedLLM:
    """Returns replies in order (or raises them if they are exceptions); records prompts."""

    def __init__(self, replies: list) -> None:
        self.replies = list(replies)
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class RecordingSearch:
    """Search stand-in that returns a fixed response and records queries."""

    def __init__(self, response: SearchResponse | None = None) -> None:
        self.response = response
        self.queries: list[str] = []

    async def search(self, query: str) -> SearchResponse:
        self.queries.append(query)
        return self.response or SearchResponse.empty(query, "No results found.")


def gemini_reply(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def parse_frames(body: str) -> list[dict]:
    """Split an SSE body into decoded `data:` payloads."""
    frames = [f for f in body.split("\n\n") if f.strip()]
    assert all(f.startswith("data: ") for f in frames), frames
    return [json.loads(f[len("data: "):]) for f in frames]


class SequenceTransport(httpx.MockTransport):
    """
    MockTransport answering from a queue of outcomes; the last one repeats.

    An outcome is (status, body) where body is a dict (sent as JSON) or str,
    or an exception instance to raise. Requests are recorded.
    """

    def __init__(self, outcomes: list) -> None:
        self.outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        status, body = outcome
        if isinstance(body, dict):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)


@pytest.fixture
def fake_sleep() -> FakeSleep:
    return FakeSleep()
