"""
In-process TTL cache for retrieved transcripts.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from shared.logging import get_logger
from ..domain.models import RetrievalResult

DEFAULT_TTL_SECONDS = 3600.0
DEFAULT_CHECK_PERIOD_SECONDS = 600.0


@dataclass(frozen=True)
class CacheEntry:
    """A stored result and its lifetime bounds (clock seconds)."""
    result: RetrievalResult
    inserted_at: float
    expires_at: float

    def is_live(self, now: float) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class CacheStats:
    """Cumulative cache counters."""
    entry_count: int
    hit_count: int
    miss_count: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "entryCount": self.entry_count,
            "hitCount": self.hit_count,
            "missCount": self.miss_count,
        }


class ResultCache:
    """TTL cache keyed by canonical video id.

    Expired entries are never returned: ``get`` checks expiry on every read and
    drops what it finds stale, while ``sweep`` reclaims memory for keys nobody
    reads any more.
    """

    def __init__(self, default_ttl: float = DEFAULT_TTL_SECONDS,
                 check_period: float = DEFAULT_CHECK_PERIOD_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")
        self.default_ttl = default_ttl
        self.check_period = check_period
        self.clock = clock
        self.logger = get_logger("transcript.cache")

        self._entries: Dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[RetrievalResult]:
        """Return the live result for ``key`` or ``None`` on a miss."""
        now = self.clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and not entry.is_live(now):
                del self._entries[key]
                entry = None

            if entry is None:
                self._misses += 1
                return None

            self._hits += 1
            return entry.result

    def put(self, key: str, result: RetrievalResult, ttl: Optional[float] = None) -> CacheEntry:
        """Store ``result`` under ``key``, replacing any previous entry."""
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        now = self.clock()
        entry = CacheEntry(result=result, inserted_at=now, expires_at=now + ttl)
        with self._lock:
            self._entries[key] = entry
        self.logger.debug("Cached transcript", key=key, ttl=ttl, segments=result.segment_count)
        return entry

    def invalidate(self, key: str) -> bool:
        """Remove ``key``. Returns whether a live entry was removed."""
        now = self.clock()
        with self._lock:
            entry = self._entries.pop(key, None)
        removed = entry is not None and entry.is_live(now)
        if removed:
            self.logger.info("Cache entry invalidated", key=key)
        return removed

    def clear(self) -> int:
        """Remove every entry. Returns how many were dropped."""
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
        self.logger.info("Cache cleared", keys_count=dropped)
        return dropped

    def sweep(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        now = self.clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if not entry.is_live(now)]
            for key in expired:
                del self._entries[key]
        if expired:
            self.logger.debug("Swept expired cache entries", removed=len(expired))
        return len(expired)

    def keys(self) -> List[str]:
        """Keys of live entries."""
        now = self.clock()
        with self._lock:
            return [key for key, entry in self._entries.items() if entry.is_live(now)]

    def stats(self) -> CacheStats:
        """Entry count and hit/miss counters since start or last reset."""
        now = self.clock()
        with self._lock:
            live = sum(1 for entry in self._entries.values() if entry.is_live(now))
            return CacheStats(entry_count=live, hit_count=self._hits, miss_count=self._misses)

    def reset_stats(self):
        with self._lock:
            self._hits = 0
            self._misses = 0
