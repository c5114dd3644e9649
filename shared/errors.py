"""
Shared error taxonomy for the Transcript Gateway.

Every failure that reaches a client is one of the categories below. The
normalizer and the upstream dispatcher raise raw exceptions; the retrieval
orchestrator and the error classifier translate them. The HTTP layer only
raises the request-level ones (missing parameter, rate limit).
"""

from enum import Enum
from typing import Dict, Any, Optional
from pydantic import BaseModel

from shared.logging import get_request_id


class ErrorCategory(str, Enum):
    """Stable error categories surfaced to clients."""
    INVALID_LOCATOR = "InvalidLocator"
    RATE_LIMIT_EXCEEDED = "RateLimitExceeded"
    NO_TRANSCRIPT_AVAILABLE = "NoTranscriptAvailable"
    TRANSCRIPTS_DISABLED = "TranscriptsDisabled"
    RESOURCE_UNAVAILABLE = "ResourceUnavailable"
    TIMEOUT = "Timeout"
    UPSTREAM_FAILURE = "UpstreamFailure"


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    code: str
    request_id: Optional[str] = None
    usage: Optional[str] = None
    details: Dict[str, Any] = {}


class TranscriptServiceError(Exception):
    """Base exception for the gateway error taxonomy."""

    status_code: int = 500
    category: ErrorCategory = ErrorCategory.UPSTREAM_FAILURE

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        usage: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        self.usage = usage
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """Whether the caller may retry the same request later."""
        return self.category in (
            ErrorCategory.RATE_LIMIT_EXCEEDED,
            ErrorCategory.TIMEOUT,
            ErrorCategory.UPSTREAM_FAILURE,
        )

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            error=self.message,
            code=self.code,
            request_id=get_request_id(),
            usage=self.usage,
            details=self.details,
        )


class InvalidLocatorError(TranscriptServiceError):
    """Missing, oversized or unrecognized video locator."""

    status_code = 400
    category = ErrorCategory.INVALID_LOCATOR

    def __init__(self, message: str = "Invalid YouTube URL", details: Optional[Dict[str, Any]] = None,
                 usage: Optional[str] = None):
        super().__init__("INVALID_LOCATOR", message, details, usage)


class RateLimitError(TranscriptServiceError):
    """Rate limiting errors."""

    status_code = 429
    category = ErrorCategory.RATE_LIMIT_EXCEEDED

    def __init__(self, message: str = "Too many requests from this IP, please try again later.",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("RATE_LIMIT_EXCEEDED", message, details)


class NoTranscriptAvailableError(TranscriptServiceError):
    """The video exists but has no usable transcript."""

    category = ErrorCategory.NO_TRANSCRIPT_AVAILABLE

    def __init__(self, message: str = "No transcript available for this video",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("NO_TRANSCRIPT_AVAILABLE", message, details)


class TranscriptsDisabledError(TranscriptServiceError):
    """The video owner disabled transcripts."""

    category = ErrorCategory.TRANSCRIPTS_DISABLED

    def __init__(self, message: str = "Transcripts are disabled for this video",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("TRANSCRIPTS_DISABLED", message, details)


class ResourceUnavailableError(TranscriptServiceError):
    """Private, region-locked, removed or otherwise unplayable video."""

    category = ErrorCategory.RESOURCE_UNAVAILABLE

    def __init__(self, message: str = "Video is unavailable or private",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("RESOURCE_UNAVAILABLE", message, details)


class UpstreamTimeoutError(TranscriptServiceError):
    """The upstream fetch did not finish before the deadline."""

    status_code = 504
    category = ErrorCategory.TIMEOUT

    def __init__(self, message: str = "Request timeout - the video transcript took too long to fetch",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("TIMEOUT", message, details)


class UpstreamFailureError(TranscriptServiceError):
    """Unclassified transport or provider failure."""

    category = ErrorCategory.UPSTREAM_FAILURE

    def __init__(self, message: str = "Upstream failure", details: Optional[Dict[str, Any]] = None):
        super().__init__("UPSTREAM_FAILURE", f"Error fetching transcript: {message}", details)
