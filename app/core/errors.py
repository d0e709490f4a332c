"""
Application errors for clean API and stream error handling.

AgentError subclasses carry a user-facing, credential-free message. The
orchestrator turns them into a single `error` event; the HTTP layer maps
ValidationError to 400 before the pipeline starts.
"""


class AgentError(Exception):
    """Base for errors raised by the chat pipeline and its clients."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(AgentError):
    """Bad or missing query. User-correctable; never retried."""


class TransientNetworkError(AgentError):
    """5xx or timeout on an outbound call. Retried with backoff, then escalated."""


class InvalidResponseShape(AgentError):
    """Upstream payload did not have the expected structure. Not retried."""


class ToolUnavailable(AgentError):
    """Search call failed. Recovered locally into an empty SearchResponse."""


class UpstreamFatal(AgentError):
    """A required upstream service is unavailable after retries."""


class LLMUnavailable(UpstreamFatal):
    """Generation service failed after retries; the request cannot be answered."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"LLM unavailable: {detail}")


class ConfigurationError(Exception):
    """Raised at startup when required settings are missing or invalid."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class StreamClosed(Exception):
    """The response channel is gone (client disconnected); remaining work should stop."""
