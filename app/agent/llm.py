"""
Agent LLM: Gemini generateContent over HTTP.

One prompt in, one trimmed completion out. Transport and 5xx failures go
through the retry wrapper; anything left after retries becomes LLMUnavailable.
A payload without candidates[0].content.parts[0].text is InvalidResponseShape.
The API key is sent as a header and redacted from every message we produce.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from app.core.config import (
    GEMINI_API_KEY,
    GEMINI_BASE_URL,
    GEMINI_MODEL,
    LLM_API_TIMEOUT,
    LLM_MAX_OUTPUT_TOKENS,
    LLM_TEMPERATURE,
    RETRY_ATTEMPTS,
    RETRY_BASE_DELAY,
)
from app.core.errors import InvalidResponseShape, LLMUnavailable, ValidationError
from app.core.retry import upstream_message, with_retry

logger = logging.getLogger(__name__)


def _extract_text(data: Any) -> str | None:
    """candidates[0].content.parts[0].text, or None when any level is missing."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return None
    return text if isinstance(text, str) and text else None


class CompletionClient:
    """Text-generation client. Safe to share across requests (holds config only)."""

    def __init__(
        self,
        api_key: str = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        base_url: str = GEMINI_BASE_URL,
        timeout: float = LLM_API_TIMEOUT,
        retries: int = RETRY_ATTEMPTS,
        base_delay: float = RETRY_BASE_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._api_key = api_key
        self.model = model
        self.url = f"{base_url.rstrip('/')}/models/{model}:generateContent"
        self.timeout = timeout
        self.retries = retries
        self.base_delay = base_delay
        self._transport = transport
        self._sleep = sleep

    def __repr__(self) -> str:
        return f"CompletionClient(model={self.model!r})"

    def _redact(self, text: str) -> str:
        if self._api_key and self._api_key in text:
            return text.replace(self._api_key, "[REDACTED]")
        return text

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json", "x-goog-api-key": self._api_key}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.url, json=payload, headers=headers)
        response.raise_for_status()
        return response

    async def complete(self, prompt: str) -> str:
        """Return the first candidate's text, trimmed."""
        if not prompt or not prompt.strip():
            raise ValidationError("prompt is required")
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": LLM_TEMPERATURE, "maxOutputTokens": LLM_MAX_OUTPUT_TOKENS},
        }
        logger.info("[llm:gemini] IN  model=%s prompt_len=%d", self.model, len(prompt))
        try:
            response = await with_retry(
                lambda: self._post(payload),
                retries=self.retries,
                base_delay=self.base_delay,
                sleep=self._sleep,
            )
        except httpx.HTTPError as e:
            msg = self._redact(upstream_message(e))
            logger.warning(
                "[llm:gemini] request failed after retries model=%s: %s", self.model, msg, exc_info=True
            )
            raise LLMUnavailable(msg) from None

        try:
            data = response.json()
        except ValueError:
            data = None
        text = _extract_text(data)
        if text is None:
            logger.warning(
                "[llm:gemini] invalid response shape model=%s status=%d body_len=%d",
                self.model,
                response.status_code,
                len(response.content),
            )
            raise InvalidResponseShape("Invalid Gemini response format")
        out = text.strip()
        logger.info("[llm:gemini] OUT response_len=%d", len(out))
        return out
