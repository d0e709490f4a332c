"""
Resilient call wrapper for outbound network calls.

Runs a zero-argument async operation; transient failures (5xx, timeouts,
connection errors) are retried after base_delay * 2**attempt seconds, without
jitter. Anything else, or an exhausted budget, re-raises the last error unchanged.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import httpx

from app.core.config import RETRY_ATTEMPTS, RETRY_BASE_DELAY
from app.core.errors import TransientNetworkError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    """True for failures likely to succeed on retry."""
    if isinstance(exc, TransientNetworkError):
        return True
    if isinstance(exc, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return False


def upstream_message(exc: Exception) -> str:
    """
    Short description of a failed outbound call.

    For an HTTP status error, the provider's `error.message` (or a plain string
    `error`) from the JSON body; otherwise "HTTP <status>". Transport errors
    use their own text.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
        except ValueError:
            body = None
        err = body.get("error") if isinstance(body, dict) else None
        if isinstance(err, dict):
            err = err.get("message")
        if err:
            return str(err)
        return f"HTTP {exc.response.status_code}"
    return str(exc) or type(exc).__name__


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    retries: int = RETRY_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await operation() up to `retries` times, backing off between transient failures."""
    attempts = max(1, retries)
    for attempt in range(attempts):
        try:
            return await operation()
        except Exception as e:
            if not is_transient(e) or attempt == attempts - 1:
                raise
            delay = base_delay * (2**attempt)
            logger.warning(
                "[retry] attempt=%d/%d failed (%s); retrying in %.1fs",
                attempt + 1,
                attempts,
                type(e).__name__,
                delay,
            )
            await sleep(delay)
    raise AssertionError("unreachable")
