"""
Transcript service for the Transcript Gateway.
"""

import asyncio
from contextlib import suppress
from typing import Any, Dict, List, Optional

from fastapi import Query

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import InvalidLocatorError
from shared.proxy import resolve_proxy_config
from .adapters import TranscriptDispatcher
from .caching import ResultCache
from .domain.retrieval import Dispatcher, TranscriptRetrievalService
from .ratelimit import FixedWindowRateLimiter, RateLimitMiddleware

TRANSCRIPT_USAGE = "GET /transcript?videoUrl=<youtube_url>"

ENDPOINTS = [
    "GET /health",
    "GET /transcript?videoUrl=<youtube_url>",
    "GET /cache/stats",
    "DELETE /cache/:videoId",
    "DELETE /cache",
    "GET /metrics",
]


class TranscriptService(BaseService):
    """Transcript gateway service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None, dispatcher: Optional[Dispatcher] = None):
        self._dispatcher_override = dispatcher
        self._maintenance_task: Optional[asyncio.Task] = None
        super().__init__("transcript", config)

        @self.app.on_event("startup")
        async def _startup():
            self._maintenance_task = asyncio.create_task(self._maintenance_loop())

        @self.app.on_event("shutdown")
        async def _shutdown():
            if self._maintenance_task is not None:
                self._maintenance_task.cancel()
                with suppress(asyncio.CancelledError):
                    await self._maintenance_task
                self._maintenance_task = None

        self._setup_transcript_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.transcript_service = self

    def _init_components(self):
        self.proxy = resolve_proxy_config(self.config.use_proxy, self.config.proxy_url)
        self.cache = ResultCache(
            default_ttl=self.config.cache_ttl_seconds,
            check_period=self.config.cache_check_period_seconds,
        )
        self.rate_limiter = FixedWindowRateLimiter(
            max_requests=self.config.rate_limit_max_requests,
            window_seconds=self.config.rate_limit_window_seconds,
        )
        self.dispatcher = self._dispatcher_override
        if self.dispatcher is None:
            self.dispatcher = TranscriptDispatcher(
                self.proxy,
                request_timeout=self.config.timeout_seconds,
                resolve_titles=self.config.resolve_titles,
                title_timeout=self.config.title_lookup_timeout_seconds,
            )
        self.retrieval = TranscriptRetrievalService(
            self.cache,
            self.dispatcher,
            timeout=self.config.timeout_seconds,
            cache_ttl=self.config.cache_ttl_seconds,
            max_locator_length=self.config.max_locator_length,
            metrics=self.metrics,
        )

    def _setup_service_middleware(self):
        self.app.add_middleware(
            RateLimitMiddleware,
            rate_limiter=self.rate_limiter,
            trust_forwarded_headers=self.config.trust_forwarded_headers,
            metrics=self.metrics,
        )

    def available_endpoints(self) -> List[str]:
        return list(ENDPOINTS)

    def _health_details(self) -> Dict[str, Any]:
        return {
            "proxyEnabled": self.proxy.enabled,
            "cacheStats": self.cache.stats().to_dict(),
        }

    def _setup_transcript_routes(self):
        """Set up transcript and cache administration routes."""

        @self.app.get("/transcript")
        async def get_transcript(videoUrl: Optional[str] = Query(None)):
            """Return the transcript for a YouTube URL or bare video id."""
            if videoUrl is None or not videoUrl.strip():
                raise InvalidLocatorError("Missing videoUrl parameter", usage=TRANSCRIPT_USAGE)

            outcome = await self.retrieval.retrieve(videoUrl)
            return outcome.to_dict()

        @self.app.get("/cache/stats")
        async def cache_stats():
            """Cache counters since start."""
            stats = self.cache.stats()
            return {"stats": stats.to_dict(), "keys": stats.entry_count}

        @self.app.delete("/cache/{video_id}")
        async def invalidate_cache_entry(video_id: str):
            """Drop one entry. The key is matched exactly, never normalized."""
            removed = self.cache.invalidate(video_id)
            return {
                "success": removed,
                "message": "Cache cleared" if removed else "Video not found in cache",
            }

        @self.app.delete("/cache")
        async def clear_cache():
            """Drop every entry."""
            self.cache.clear()
            return {"success": True, "message": "All cache cleared"}

    async def _maintenance_loop(self):
        """Periodically reclaim expired cache entries and elapsed rate windows."""
        period = self.cache.check_period
        while True:
            await asyncio.sleep(period)
            try:
                self.cache.sweep()
                self.rate_limiter.prune()
            except Exception as exc:
                self.logger.error("Maintenance sweep failed", error=str(exc), exc_info=True)


def create_app(config: Optional[ServiceConfig] = None, dispatcher: Optional[Dispatcher] = None):
    """Create FastAPI application."""
    service = TranscriptService(config, dispatcher)
    return service.app


if __name__ == "__main__":
    service = TranscriptService()
    service.run()
