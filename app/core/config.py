"""
Application configuration (env, settings, constants).

Responsibility: Centralize config loading, environment variables, and app-wide
constants. Keeps the rest of the app decoupled from how config is sourced.
Values are read once at import and treated as read-only afterwards.
"""

import os

from dotenv import load_dotenv

from app.core.errors import ConfigurationError

load_dotenv()

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

# HTTP surface
PORT: int = int(os.getenv("PORT", "3000"))
CORS_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
] or ["*"]
MAX_BODY_BYTES: int = 1024 * 1024

# Generation service (Gemini generateContent). Required.
GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "").strip()
GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash").strip() or "gemini-2.5-flash"
GEMINI_BASE_URL: str = (
    os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta").strip().rstrip("/")
    or "https://generativelanguage.googleapis.com/v1beta"
)
LLM_TEMPERATURE: float = 0.7
LLM_MAX_OUTPUT_TOKENS: int = 1024

# Search service. Key is optional: live mode degrades to an empty result set without it.
SEARCH_API_KEY: str = os.getenv("SEARCH_API_KEY", "").strip()
SEARCH_API_URL: str = os.getenv("SEARCH_API_URL", "https://www.searchapi.io/api/v1/search").strip()
WEB_SEARCH_MODE: str = os.getenv("WEB_SEARCH_MODE", "mock").strip().lower() or "mock"
WEB_SEARCH_MODES: frozenset[str] = frozenset({"mock", "live"})
WEB_SEARCH_TOOL: str = "web_search"
MAX_SEARCH_RESULTS: int = 10
SNIPPET_MAX_CHARS: int = 300

# API timeouts (seconds)
LLM_API_TIMEOUT: float = 60.0
SEARCH_API_TIMEOUT: float = 10.0

# Retry policy for outbound calls: delay = RETRY_BASE_DELAY * 2**attempt, no jitter
RETRY_ATTEMPTS: int = 3
RETRY_BASE_DELAY: float = 1.0

# Agent pipeline: queries about anything newer than now - DECISION_CUTOFF_DAYS need the web
DECISION_CUTOFF_DAYS: int = 180


def validate_config() -> None:
    """Fail fast at startup when required settings are missing or invalid."""
    if not GEMINI_API_KEY:
        raise ConfigurationError("GEMINI_API_KEY is required (set it in the environment or .env)")
    if WEB_SEARCH_MODE not in WEB_SEARCH_MODES:
        raise ConfigurationError(
            f"WEB_SEARCH_MODE must be one of {sorted(WEB_SEARCH_MODES)}, got {WEB_SEARCH_MODE!r}"
        )
