"""
Maps raw upstream and internal failures onto the shared error taxonomy.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type

from shared.errors import (
    InvalidLocatorError,
    NoTranscriptAvailableError,
    ResourceUnavailableError,
    TranscriptServiceError,
    TranscriptsDisabledError,
    UpstreamFailureError,
    UpstreamTimeoutError,
)
from ..locators import LocatorError


@dataclass(frozen=True)
class ClassificationRule:
    """Upstream failure signature: exception class names and lowercase message fragments."""
    error_type: Type[TranscriptServiceError]
    kinds: Tuple[str, ...]
    fragments: Tuple[str, ...]


# Exception kinds are matched across all rules before any message fragment.
CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(
        TranscriptsDisabledError,
        kinds=("TranscriptsDisabled",),
        fragments=("transcript is disabled", "transcripts are disabled", "subtitles are disabled"),
    ),
    ClassificationRule(
        NoTranscriptAvailableError,
        kinds=("NoTranscriptFound", "NoTranscriptAvailable"),
        fragments=("no transcripts available", "no transcript available", "no transcripts were found"),
    ),
    ClassificationRule(
        ResourceUnavailableError,
        kinds=("VideoUnavailable", "VideoUnplayable", "InvalidVideoId", "AgeRestricted"),
        fragments=("video unavailable", "video is unavailable", "video is private", "private video"),
    ),
    ClassificationRule(
        UpstreamTimeoutError,
        kinds=("Timeout", "TimeoutException"),
        fragments=(),
    ),
)


def classify(error: BaseException, scrub: Optional[Callable[[str], str]] = None) -> TranscriptServiceError:
    """Return the taxonomy error for ``error``.

    Taxonomy errors pass through unchanged. Anything unrecognized becomes an
    UpstreamFailureError carrying the original message, passed through
    ``scrub`` first when given.
    """
    if isinstance(error, TranscriptServiceError):
        return error
    if isinstance(error, LocatorError):
        return InvalidLocatorError(str(error))
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return UpstreamTimeoutError()

    kinds = {cls.__name__ for cls in type(error).__mro__}
    for rule in CLASSIFICATION_RULES:
        if kinds.intersection(rule.kinds):
            return rule.error_type()

    message = str(error)
    lowered = message.lower()
    for rule in CLASSIFICATION_RULES:
        if any(fragment in lowered for fragment in rule.fragments):
            return rule.error_type()

    if scrub is not None:
        message = scrub(message)
    return UpstreamFailureError(
        message or type(error).__name__,
        details={"error_type": type(error).__name__},
    )
