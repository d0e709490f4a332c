"""
Agent pipeline: validate → acknowledge → decide → (web_search) → synthesize → finalize.

A single pass per request, driven by an explicit Stage enum and one transition
function. The only branch is after DECIDE: TOOL_CALL runs at most once, and
every exit path ends with exactly one terminal event (done or error) followed
by exactly one close() on the sink.
"""

import enum
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from app.core.config import DECISION_CUTOFF_DAYS, WEB_SEARCH_TOOL
from app.core.errors import AgentError, StreamClosed, ValidationError
from app.schemas.events import StreamEvent
from app.schemas.search import SearchResponse
from app.services.event_stream import EventSink
from app.services.text_processing import format_citations

logger = logging.getLogger(__name__)

INVALID_QUERY_MESSAGE = "Valid 'query' string required"
NO_ANSWER_PLACEHOLDER = "(no answer generated)"


class Completer(Protocol):
    async def complete(self, prompt: str) -> str: ...


class Searcher(Protocol):
    async def search(self, query: str) -> SearchResponse: ...


class Stage(enum.Enum):
    VALIDATE = "validate"
    ACKNOWLEDGE = "acknowledge"
    DECIDE = "decide"
    TOOL_CALL = "tool_call"
    SYNTHESIZE = "synthesize"
    FINALIZE = "finalize"
    DONE = "done"


@dataclass
class RunState:
    """Per-request state; never shared between requests."""

    raw_query: Any
    started: float
    query: str = ""
    needs_search: bool = False
    search: SearchResponse | None = None
    citations: str = ""
    answer: str = ""


def next_stage(stage: Stage, state: RunState) -> Stage:
    """The pipeline's only transition function. No stage is ever revisited."""
    if stage is Stage.VALIDATE:
        return Stage.ACKNOWLEDGE
    if stage is Stage.ACKNOWLEDGE:
        return Stage.DECIDE
    if stage is Stage.DECIDE:
        return Stage.TOOL_CALL if state.needs_search else Stage.SYNTHESIZE
    if stage is Stage.TOOL_CALL:
        return Stage.SYNTHESIZE
    if stage is Stage.SYNTHESIZE:
        return Stage.FINALIZE
    return Stage.DONE


def validate_query(raw: Any) -> str:
    """Trimmed query, or ValidationError for non-strings and blank strings."""
    if not isinstance(raw, str) or not raw.strip():
        raise ValidationError(INVALID_QUERY_MESSAGE)
    return raw.strip()


def parse_decision(raw: str) -> bool:
    """
    True iff the normalized reply is exactly "true" or contains "yes".

    Note: the substring rule also accepts negated replies that mention "yes"
    (e.g. "no... yes it needs"); kept as-is until intent is clarified.
    """
    norm = (raw or "").strip().lower()
    return norm == "true" or "yes" in norm


def _today(now: datetime) -> str:
    return now.date().isoformat()


def build_decision_prompt(query: str, now: datetime) -> str:
    """Binary classifier prompt: does the query need data newer than the rolling cutoff?"""
    cutoff = (now - timedelta(days=DECISION_CUTOFF_DAYS)).date().isoformat()
    return f"""
You are a binary classifier for tool usage. Answer **only** "true" or "false".

"true" if the query needs real-time or post-{cutoff} data:
• Events after {cutoff}
• Live data (prices, weather, elections, system status)
• Recently changed facts (laws, releases)

"false" otherwise (timeless facts, math, historical facts before {cutoff}, hypotheticals).

Query: \"\"\"{query}\"\"\"
""".strip()


def build_answer_prompt(query: str, citations: str, now: datetime) -> str:
    """Final prompt; the citation block is included only when a search ran."""
    search_block = f"Search results (cite with [1], [2], etc.):\n{citations}\n---\n\n" if citations else ""
    return f"""
You are a concise, factual assistant. Current date: {_today(now)}.
Query: \"\"\"{query}\"\"\"

{search_block}Respond in 3–5 sentences with detailed explanations. Be factual and comprehensive. Cite sources inline using [1], [2], etc. after the facts they support.
""".strip()


class Orchestrator:
    """Runs one request through the pipeline, writing events to a sink."""

    def __init__(self, llm: Completer, search: Searcher) -> None:
        self.llm = llm
        self.search = search
        self._handlers = {
            Stage.VALIDATE: self._validate,
            Stage.ACKNOWLEDGE: self._acknowledge,
            Stage.DECIDE: self._decide,
            Stage.TOOL_CALL: self._tool_call,
            Stage.SYNTHESIZE: self._synthesize,
            Stage.FINALIZE: self._finalize,
        }

    async def _validate(self, state: RunState, sink: EventSink) -> None:
        state.query = validate_query(state.raw_query)

    async def _acknowledge(self, state: RunState, sink: EventSink) -> None:
        await sink.emit(StreamEvent.reasoning(f'Received: "{state.query}"'))

    async def _decide(self, state: RunState, sink: EventSink) -> None:
        raw = await self.llm.complete(build_decision_prompt(state.query, datetime.now(timezone.utc)))
        state.needs_search = parse_decision(raw)
        logger.info("[graph:decide] llm_raw=%r needs_search=%s", raw, state.needs_search)
        await sink.emit(
            StreamEvent.reasoning(
                "Tool call required for fresh data." if state.needs_search else "Internal knowledge sufficient."
            )
        )

    async def _tool_call(self, state: RunState, sink: EventSink) -> None:
        await sink.emit(StreamEvent.reasoning("Searching the web..."))
        state.search = await self.search.search(state.query)
        await sink.emit(StreamEvent.tool_call(WEB_SEARCH_TOOL, state.query, state.search))
        state.citations = format_citations(state.search)
        logger.info(
            "[graph:tool_call] results=%d citations_len=%d", len(state.search.results), len(state.citations)
        )

    async def _synthesize(self, state: RunState, sink: EventSink) -> None:
        prompt = build_answer_prompt(state.query, state.citations, datetime.now(timezone.utc))
        await sink.emit(StreamEvent.reasoning("Refining answer..."))
        state.answer = await self.llm.complete(prompt)
        await sink.emit(StreamEvent.response(state.answer or NO_ANSWER_PLACEHOLDER))

    async def _finalize(self, state: RunState, sink: EventSink) -> None:
        elapsed_ms = int((time.monotonic() - state.started) * 1000)
        await sink.emit(StreamEvent.reasoning(f"Completed in {elapsed_ms}ms"))
        await sink.emit(StreamEvent.done())

    async def run(self, raw_query: Any, sink: EventSink) -> RunState:
        """Drive the stages to DONE; on failure emit one error event. Always closes the sink once."""
        state = RunState(raw_query=raw_query, started=time.monotonic())
        stage = Stage.VALIDATE
        logger.info("[graph:run] START query=%r", raw_query)
        try:
            while stage is not Stage.DONE:
                await self._handlers[stage](state, sink)
                stage = next_stage(stage, state)
        except StreamClosed:
            logger.info("[graph:run] stream closed at stage=%s; aborting", stage.value)
        except ValidationError as e:
            logger.info("[graph:run] rejected: %s", e.message)
            await self._emit_error(sink, e.message)
        except AgentError as e:
            logger.warning("[graph:run] failed at stage=%s: %s", stage.value, e.message, exc_info=True)
            await self._emit_error(sink, f"Agent error: {e.message}")
        except Exception as e:
            logger.exception("[graph:run] unexpected failure at stage=%s", stage.value)
            await self._emit_error(sink, f"Agent error: unexpected {type(e).__name__}")
        finally:
            await sink.close()
        logger.info("[graph:run] END stage=%s needs_search=%s answer_len=%d", stage.value, state.needs_search, len(state.answer))
        return state

    async def _emit_error(self, sink: EventSink, message: str) -> None:
        try:
            await sink.emit(StreamEvent.error(message))
        except StreamClosed:
            logger.info("[graph:run] stream closed; error event dropped")
