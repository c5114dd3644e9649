"""
Timeout-bounded transcript retrieval.

Composes the locator normalizer, the result cache, the single-flight group
and the upstream dispatcher:

1. normalize the locator into a video id (InvalidLocatorError otherwise);
2. serve a live cache entry as ``cached=True``;
3. on a miss, join or start the single in-flight fetch for that id and wait
   for it at most ``timeout`` seconds. The fetch stores successful results in
   the cache itself, so a fetch that outlives its callers still populates the
   cache; nobody waits for it though;
4. classify every failure before it leaves this layer.
"""

import asyncio
import time
from typing import Optional, Protocol

from shared.errors import InvalidLocatorError, NoTranscriptAvailableError, UpstreamTimeoutError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..caching.result_cache import ResultCache
from ..caching.single_flight import SingleFlight
from ..locators import LocatorError, normalize
from ..locators.normalizer import DEFAULT_MAX_LOCATOR_LENGTH
from .classifier import classify
from .models import RetrievalOutcome, RetrievalResult

DEFAULT_TIMEOUT_SECONDS = 30.0


class Dispatcher(Protocol):
    async def dispatch(self, video_id: str) -> RetrievalResult: ...

    def redact(self, text: str) -> str: ...


class TranscriptRetrievalService:
    """Orchestrates cache lookups and deadline-bounded upstream fetches."""

    def __init__(
        self,
        cache: ResultCache,
        dispatcher: Dispatcher,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        cache_ttl: Optional[float] = None,
        max_locator_length: int = DEFAULT_MAX_LOCATOR_LENGTH,
        metrics: Optional[MetricsCollector] = None,
        single_flight: Optional[SingleFlight] = None,
    ):
        self.cache = cache
        self.dispatcher = dispatcher
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self.max_locator_length = max_locator_length
        self.metrics = metrics
        self.single_flight = single_flight or SingleFlight("transcripts")
        self.logger = get_logger("transcript.retrieval")

    def resolve_key(self, locator: str) -> str:
        """Canonical video id for ``locator``."""
        try:
            return normalize(locator, self.max_locator_length)
        except LocatorError as exc:
            raise InvalidLocatorError(str(exc)) from exc

    async def retrieve(self, locator: str, timeout: Optional[float] = None) -> RetrievalOutcome:
        """Return the transcript for ``locator`` or raise a taxonomy error."""
        video_id = self.resolve_key(locator)

        cached = self.cache.get(video_id)
        if self.metrics is not None:
            self.metrics.record_cache_access(hit=cached is not None)
        if cached is not None:
            self.logger.info("Cache hit", video_id=video_id)
            return RetrievalOutcome(result=cached, cached=True)

        task, joined = self.single_flight.submit(video_id, lambda: self._fetch_and_store(video_id))
        if joined:
            self.logger.info("Joining in-flight fetch", video_id=video_id)
            if self.metrics is not None:
                self.metrics.record_coalesced_request()
        else:
            self.logger.info("Cache miss, fetching from upstream", video_id=video_id)

        deadline = self.timeout if timeout is None else timeout
        try:
            # shield: the deadline abandons the wait, never the shared fetch
            result = await asyncio.wait_for(asyncio.shield(task), timeout=deadline)
        except Exception as exc:
            # A finished task means the timeout came from the fetch itself, not the deadline
            if isinstance(exc, asyncio.TimeoutError) and not task.done():
                self.logger.warning("Upstream fetch exceeded deadline", video_id=video_id, timeout_seconds=deadline)
                raise UpstreamTimeoutError(details={"timeout_seconds": deadline}) from None
            error = classify(exc, scrub=self.dispatcher.redact)
            if error is exc:
                raise
            raise error from exc

        return RetrievalOutcome(result=result, cached=False)

    async def _fetch_and_store(self, video_id: str) -> RetrievalResult:
        start = time.perf_counter()
        outcome = "error"
        try:
            result = await self.dispatcher.dispatch(video_id)
            if result.segment_count == 0:
                outcome = "empty"
                raise NoTranscriptAvailableError()

            self.cache.put(video_id, result, self.cache_ttl)
            outcome = "success"
            return result
        except Exception as exc:
            self.logger.error(
                "Upstream fetch failed",
                video_id=video_id,
                error=self.dispatcher.redact(str(exc)),
                error_type=type(exc).__name__,
            )
            raise
        finally:
            if self.metrics is not None:
                self.metrics.record_upstream_fetch(outcome, time.perf_counter() - start)
