"""
Agent tools: the web_search tool used by the pipeline.

Two modes (WEB_SEARCH_MODE): "mock" returns a fixed offline result set;
"live" calls the search provider. Search is best-effort: a missing key or a
failed call yields an empty SearchResponse whose summary says why, never an
exception. Provider field names are normalized here and go no further.
"""

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from app.core.config import (
    MAX_SEARCH_RESULTS,
    RETRY_ATTEMPTS,
    RETRY_BASE_DELAY,
    SEARCH_API_KEY,
    SEARCH_API_TIMEOUT,
    SEARCH_API_URL,
    SNIPPET_MAX_CHARS,
    WEB_SEARCH_MODE,
)
from app.core.errors import ToolUnavailable
from app.core.retry import upstream_message, with_retry
from app.schemas.search import SearchResponse, SearchResult
from app.services.text_processing import clean_text, extract_domain, truncate_snippet

logger = logging.getLogger(__name__)

# Offline fixture: stable across calls so tests and demos are reproducible.
_MOCK_RESULTS = (
    {
        "title": "State of AI Report 2025",
        "link": "https://www.stateof.ai/",
        "snippet": "The most trusted annual analysis of AI trends. Agentic AI, cost drops, and new regulations dominate 2025.",
        "date": "2025-10-15",
        "source": "State of AI Institute",
    },
    {
        "title": "Stanford AI Index 2025",
        "link": "https://hai.stanford.edu/ai-index",
        "snippet": "AI boosts productivity by 40%. Inference costs down 280x since 2023. 1.2M AI jobs created.",
        "date": "2025-04-10",
        "source": "Stanford HAI",
    },
    {
        "title": "Gemini 2.5 Flash Released",
        "link": "https://blog.google/technology/ai/gemini-2-5-flash/",
        "snippet": "Google's fastest model yet. 128K context, $0.35/M tokens. Free tier: 15 RPM.",
        "date": "2025-06-20",
        "source": "Google AI Blog",
    },
)


def mock_search(query: str) -> SearchResponse:
    """Fixed three-result response for offline use."""
    results = [SearchResult(**r) for r in _MOCK_RESULTS]
    return SearchResponse(query=query, total_results=len(results), results=results)


def _coerce_total(value: Any) -> int:
    """Provider totals arrive as ints or strings like '1,230,000'."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        return max(0, int(value)) if math.isfinite(value) else 0
    if isinstance(value, str):
        digits = value.replace(",", "").strip()
        return int(digits) if digits.isdigit() else 0
    return 0


def normalize_result(raw: dict[str, Any], max_chars: int = SNIPPET_MAX_CHARS) -> SearchResult:
    """Map one provider result into SearchResult. Fields of the wrong type fall back to their defaults."""
    link = _text_field(raw, "link")
    snippet = _text_field(raw, "snippet")
    source = extract_domain(link) or _text_field(raw, "source") or "Unknown"
    date = raw.get("date")
    return SearchResult(
        title=_text_field(raw, "title") or "Untitled",
        link=link or "#",
        snippet=truncate_snippet(clean_text(snippet), max_chars),
        date=str(date) if date and isinstance(date, (str, int)) else None,
        source=source,
    )


def _text_field(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    return value if isinstance(value, str) else ""


def summarize(total: int, results: list[SearchResult]) -> str:
    """'Found N results. Top sources: a, b, c.' using the first three distinct sources."""
    if not results:
        return "No results found."
    sources: list[str] = []
    for r in results:
        if r.source and r.source not in sources:
            sources.append(r.source)
        if len(sources) == 3:
            break
    return f"Found {total:,} results. Top sources: {', '.join(sources)}."


def normalize_response(query: str, data: Any, max_results: int = MAX_SEARCH_RESULTS) -> SearchResponse:
    """Map a provider payload into SearchResponse, preserving relevance order."""
    if not isinstance(data, dict):
        raise ToolUnavailable("unexpected search response")
    organic = data.get("organic_results")
    if organic is None:
        organic = data.get("organicResults")
    if not isinstance(organic, list):
        organic = []
    info = data.get("search_information") or data.get("searchInformation") or {}
    total = _coerce_total(info.get("total_results", info.get("totalResults"))) if isinstance(info, dict) else 0
    results = [normalize_result(r) for r in organic[:max_results] if isinstance(r, dict)]
    return SearchResponse(query=query, total_results=total, results=results, summary=summarize(total, results))


class SearchClient:
    """web_search tool client. Safe to share across requests (holds config only)."""

    def __init__(
        self,
        mode: str = WEB_SEARCH_MODE,
        api_key: str = SEARCH_API_KEY,
        url: str = SEARCH_API_URL,
        timeout: float = SEARCH_API_TIMEOUT,
        retries: int = RETRY_ATTEMPTS,
        base_delay: float = RETRY_BASE_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.mode = mode
        self._api_key = api_key
        self.url = url
        self.timeout = timeout
        self.retries = retries
        self.base_delay = base_delay
        self._transport = transport
        self._sleep = sleep

    def __repr__(self) -> str:
        return f"SearchClient(mode={self.mode!r})"

    async def _get(self, query: str) -> httpx.Response:
        params = {"q": query, "engine": "google", "num": MAX_SEARCH_RESULTS, "gl": "us", "hl": "en"}
        headers = {"Authorization": f"Bearer {self._api_key}"}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.get(self.url, params=params, headers=headers)
        response.raise_for_status()
        return response

    async def _fetch(self, query: str) -> SearchResponse:
        try:
            response = await with_retry(
                lambda: self._get(query),
                retries=self.retries,
                base_delay=self.base_delay,
                sleep=self._sleep,
            )
        except httpx.HTTPError as e:
            raise ToolUnavailable(upstream_message(e)) from e
        try:
            data = response.json()
        except ValueError as e:
            raise ToolUnavailable("search provider returned invalid JSON") from e
        try:
            return normalize_response(query, data)
        except (TypeError, AttributeError, ValueError, OverflowError) as e:
            raise ToolUnavailable(f"unexpected search response ({type(e).__name__})") from e

    async def search(self, query: str) -> SearchResponse:
        """Resolve query into a SearchResponse. Never raises for provider failures."""
        logger.info("[tools:web_search] IN  mode=%s query=%r", self.mode, query)
        if self.mode == "mock":
            out = mock_search(query)
            logger.info("[tools:web_search] OUT mock results=%d", len(out.results))
            return out
        if not self._api_key:
            logger.warning("[tools:web_search] SEARCH_API_KEY not set; returning empty results")
            return SearchResponse.empty(query, "Search API key missing.")
        try:
            out = await self._fetch(query)
        except ToolUnavailable as e:
            logger.warning("[tools:web_search] search failed: %s", e.message, exc_info=True)
            return SearchResponse.empty(query, f"Search failed: {e.message}")
        logger.info("[tools:web_search] OUT total=%d results=%d", out.total_results, len(out.results))
        return out
