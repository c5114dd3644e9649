"""
Video locator normalization.

A locator is whatever the caller passed as ``videoUrl``: a full YouTube URL
in one of several shapes, or a bare video id. Every accepted shape for the
same video yields the same 11 character id, which is the cache key.
"""

import re
from typing import List, Pattern, Tuple

DEFAULT_MAX_LOCATOR_LENGTH = 200

_VIDEO_ID = r"(?P<video_id>[A-Za-z0-9_-]{11})(?![A-Za-z0-9_-])"
_HOST = r"(?:https?://)?(?:(?:www|m|music)\.)?"

# Tried in order, first match wins. Add a new accepted syntax with one entry.
LOCATOR_PATTERNS: List[Tuple[str, Pattern[str]]] = [
    ("watch", re.compile(_HOST + r"youtube\.com/watch\?(?:[^#]*&)?v=" + _VIDEO_ID)),
    ("embed", re.compile(_HOST + r"youtube(?:-nocookie)?\.com/embed/" + _VIDEO_ID)),
    ("short_link", re.compile(r"(?:https?://)?youtu\.be/" + _VIDEO_ID)),
    ("shorts", re.compile(_HOST + r"youtube\.com/shorts/" + _VIDEO_ID)),
    ("live", re.compile(_HOST + r"youtube\.com/live/" + _VIDEO_ID)),
    ("bare_id", re.compile(r"^" + _VIDEO_ID + r"$")),
]


class LocatorError(ValueError):
    """Raised when a locator cannot be turned into a video id."""


def normalize(locator: str, max_length: int = DEFAULT_MAX_LOCATOR_LENGTH) -> str:
    """Return the canonical video id for ``locator``.

    Raises:
        LocatorError: empty, oversized or unrecognized input.
    """
    if not isinstance(locator, str):
        raise LocatorError("Invalid videoUrl parameter")

    candidate = locator.strip()
    if not candidate or len(candidate) > max_length:
        raise LocatorError("Invalid videoUrl parameter")

    for _name, pattern in LOCATOR_PATTERNS:
        match = pattern.search(candidate)
        if match:
            return match.group("video_id")

    raise LocatorError("Invalid YouTube URL")
