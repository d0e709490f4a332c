"""
Text processing for search results: snippet cleaning and truncation, domain
extraction, and the numbered citation block handed to the LLM.

The citation numbers [1], [2], ... follow result order, so the markers the
model writes resolve to the same positions in the tool_call event the UI receives.
"""

import re
import unicodedata
from urllib.parse import urlparse

from app.core.config import SNIPPET_MAX_CHARS
from app.schemas.search import SearchResponse

ELLIPSIS = "..."
NO_RESULTS = "No search results found."


def clean_text(text: str) -> str:
    """Normalize unicode and collapse runs of whitespace (providers return snippets with stray newlines)."""
    if not text or not text.strip():
        return ""
    text = unicodedata.normalize("NFKC", text)
    return re.sub(r"\s+", " ", text).strip()


def truncate_snippet(text: str, max_chars: int = SNIPPET_MAX_CHARS) -> str:
    """
    Cap text at max_chars (ellipsis included) without splitting a word.

    The kept part is a prefix of the input that ends right before whitespace.
    A single word longer than the cap has no such boundary and is hard-cut.
    """
    if len(text) <= max_chars:
        return text
    limit = max(0, max_chars - len(ELLIPSIS))
    head = text[:limit]
    if limit < len(text) and text[limit].isspace():
        kept = head.rstrip()
    else:
        kept = re.sub(r"\s+\S*$", "", head)
    if not kept.strip():
        kept = head.rstrip()
    return kept + ELLIPSIS


def extract_domain(url: str | None) -> str | None:
    """Hostname of url without a leading 'www.'; None when url is not absolute."""
    if not url:
        return None
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    return host[4:] if host.startswith("www.") else host


def format_citations(search: SearchResponse) -> str:
    """
    Render results as numbered blocks for the synthesis prompt.

    Deterministic for identical input. Zero results yields NO_RESULTS.
    """
    if not search.results:
        return NO_RESULTS
    blocks = []
    for i, r in enumerate(search.results, start=1):
        date = f" ({r.date})" if r.date else ""
        via = f" (via {r.source})" if r.source else ""
        blocks.append(f'[{i}] "{r.title}"\n  {r.snippet}\n  → {r.link}{date}{via}')
    header = f'Search results for "{search.query}" ({search.total_results:,} total):'
    return header + "\n\n" + "\n\n".join(blocks) + "\n\nUse [1], [2], etc. to cite sources inline."
