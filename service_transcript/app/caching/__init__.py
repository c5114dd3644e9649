"""
Transcript caching package.

Provides the TTL result cache and the single-flight group that keeps
concurrent misses for one video down to a single upstream fetch. Prefer
explicit invalidation over shortening TTLs.
"""

from .result_cache import CacheEntry, CacheStats, ResultCache
from .single_flight import SingleFlight

__all__ = [
    "CacheEntry",
    "CacheStats",
    "ResultCache",
    "SingleFlight",
]
