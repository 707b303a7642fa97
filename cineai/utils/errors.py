"""
Domain errors

Services raise these; the application exception handlers turn them into
JSON responses with a user-facing message. Nothing here carries a traceback
to the client.
"""
from enum import Enum
from typing import Optional


class UpstreamErrorKind(str, Enum):
    """Why an external provider call failed"""
    NOT_CONFIGURED = "not_configured"
    BAD_REQUEST = "bad_request"
    AUTH_FAILED = "auth_failed"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"


class CineAIError(Exception):
    """Base class for errors surfaced to API callers"""
    status_code = 500
    error = "internal_error"
    message = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.message
        super().__init__(self.detail)


class InvalidInput(CineAIError):
    status_code = 400
    error = "invalid_input"
    message = "Invalid request"


class InvalidPrompt(InvalidInput):
    error = "invalid_prompt"
    message = "Prompt is required"


class NotFound(CineAIError):
    """The provider affirmatively reported no match. Not retried."""
    status_code = 404
    error = "not_found"
    message = "No movies found"


class UpstreamUnavailable(CineAIError):
    """An external provider could not be used after the allotted retries."""
    status_code = 503
    error = "upstream_unavailable"
    message = "Service temporarily unavailable. Please try again later."

    # User-facing messages per failure kind
    KIND_MESSAGES = {
        UpstreamErrorKind.NOT_CONFIGURED: "Service is not configured",
        UpstreamErrorKind.BAD_REQUEST: "Invalid request format or parameters",
        UpstreamErrorKind.AUTH_FAILED: "Authentication failed",
        UpstreamErrorKind.RATE_LIMITED: "Rate limit exceeded",
        UpstreamErrorKind.TIMEOUT: "Service timed out. Please try again later.",
        UpstreamErrorKind.UNAVAILABLE: "Service temporarily unavailable. Please try again later.",
    }

    def __init__(
        self,
        service: str,
        kind: UpstreamErrorKind = UpstreamErrorKind.UNAVAILABLE,
        detail: Optional[str] = None,
    ):
        self.service = service
        self.kind = kind
        self.error = kind.value
        if kind == UpstreamErrorKind.RATE_LIMITED:
            self.status_code = 429
        super().__init__(detail or f"{service}: {self.KIND_MESSAGES[kind]}")


class MalformedAIResponse(CineAIError):
    """Neither strict parsing nor any fallback extractor found a movie title."""
    status_code = 502
    error = "malformed_ai_response"
    message = "Could not extract movie titles from AI response"


class CacheCorrupt(CineAIError):
    """A persisted cache payload could not be read. Always treated as a miss."""
    error = "cache_corrupt"
    message = "Cached payload is unreadable"
