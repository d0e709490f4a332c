"""Normalized web search shapes. Provider field names never leave the search client."""

from pydantic import BaseModel, ConfigDict, Field


class SearchResult(BaseModel):
    """One organic result, already normalized (snippet truncated, source resolved)."""

    title: str = Field(..., description="Result title; 'Untitled' when the provider omits it.")
    link: str = Field(..., description="Result URL; '#' when the provider omits it.")
    snippet: str = Field("", description="Snippet capped at the configured length, cut at a word boundary.")
    date: str | None = Field(None, description="Publication date as given by the provider, if any.")
    source: str | None = Field(None, description="Domain of the result (without a leading www.) or provider source.")


class SearchResponse(BaseModel):
    """Result of one web search. Serialized with camelCase keys (totalResults)."""

    model_config = ConfigDict(populate_by_name=True)

    query: str
    total_results: int = Field(0, ge=0, alias="totalResults")
    results: list[SearchResult] = Field(default_factory=list, max_length=10)
    summary: str | None = Field(None, description="Human-readable summary, or the reason results are empty.")

    @classmethod
    def empty(cls, query: str, summary: str) -> "SearchResponse":
        """Degraded response used when search is unavailable."""
        return cls(query=query, total_results=0, results=[], summary=summary)
