"""
Rate limiting package for the Transcript Service.

Holds the fixed-window limiter and the middleware that applies it to every
inbound request before any other processing.
"""

from .fixed_window import FixedWindowRateLimiter, RateLimitDecision, RateLimitMiddleware, RateWindow

__all__ = [
    "FixedWindowRateLimiter",
    "RateLimitDecision",
    "RateLimitMiddleware",
    "RateWindow",
]
