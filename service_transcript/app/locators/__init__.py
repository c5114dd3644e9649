"""
Locator parsing for the Transcript Service.

Turns user supplied video URLs or bare ids into canonical cache keys.
"""

from .normalizer import LOCATOR_PATTERNS, LocatorError, normalize

__all__ = [
    "LOCATOR_PATTERNS",
    "LocatorError",
    "normalize",
]
