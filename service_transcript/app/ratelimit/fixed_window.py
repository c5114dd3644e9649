"""
Fixed-window rate limiter for the Transcript Service.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.errors import RateLimitError
from shared.logging import get_logger, set_client_context


@dataclass
class RateWindow:
    """Admission state for one client address."""
    window_start: float
    count: int = 0


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one admission check."""
    allowed: bool
    limit: int
    count: int
    remaining: int
    reset_in_seconds: int

    def headers(self) -> Dict[str, str]:
        """Standard ``RateLimit-*`` response headers."""
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_in_seconds),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.reset_in_seconds)
        return headers


class FixedWindowRateLimiter:
    """In-process fixed-window counter keyed by client address.

    The window for an address starts with its first request and is replaced by
    a fresh one once ``window_seconds`` have elapsed. Rejected requests are not
    counted.
    """

    def __init__(self, max_requests: int = 30, window_seconds: float = 60.0,
                 clock: Callable[[], float] = time.monotonic):
        if max_requests <= 0 or window_seconds <= 0:
            raise ValueError("max_requests and window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self.logger = get_logger("transcript.rate_limiter")

        self._windows: Dict[str, RateWindow] = {}
        self._lock = threading.Lock()

    def admit(self, client_address: str, now: Optional[float] = None) -> RateLimitDecision:
        """Count one request for ``client_address`` and decide whether it may proceed."""
        now = self.clock() if now is None else now

        with self._lock:
            window = self._windows.get(client_address)
            if window is None or now - window.window_start >= self.window_seconds:
                window = RateWindow(window_start=now)
                self._windows[client_address] = window

            reset_in = max(0, math.ceil(window.window_start + self.window_seconds - now))
            new_count = window.count + 1

            if new_count > self.max_requests:
                decision = RateLimitDecision(
                    allowed=False,
                    limit=self.max_requests,
                    count=window.count,
                    remaining=0,
                    reset_in_seconds=reset_in,
                )
            else:
                window.count = new_count
                decision = RateLimitDecision(
                    allowed=True,
                    limit=self.max_requests,
                    count=new_count,
                    remaining=self.max_requests - new_count,
                    reset_in_seconds=reset_in,
                )

        if not decision.allowed:
            self.logger.warning(
                "Rate limit exceeded",
                client_address=client_address,
                current_count=decision.count,
                limit=decision.limit,
            )
        return decision

    def prune(self, now: Optional[float] = None) -> int:
        """Drop windows that have already elapsed. Returns how many were removed."""
        now = self.clock() if now is None else now
        with self._lock:
            stale = [
                address for address, window in self._windows.items()
                if now - window.window_start >= self.window_seconds
            ]
            for address in stale:
                del self._windows[address]
        if stale:
            self.logger.debug("Pruned rate windows", removed=len(stale))
        return len(stale)

    @property
    def tracked_clients(self) -> int:
        return len(self._windows)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Admission check in front of every route, including unknown ones."""

    def __init__(self, app, rate_limiter: FixedWindowRateLimiter, *, trust_forwarded_headers: bool = False,
                 metrics=None):
        super().__init__(app)
        self.rate_limiter = rate_limiter
        self.trust_forwarded_headers = trust_forwarded_headers
        self.metrics = metrics
        self.logger = get_logger("transcript.rate_limit_middleware")

    async def dispatch(self, request: Request, call_next):
        client_address = self._get_client_address(request)
        set_client_context(client_address)

        decision = self.rate_limiter.admit(client_address)
        if not decision.allowed:
            if self.metrics is not None:
                self.metrics.record_rate_limit_rejection(request.method)
            error = RateLimitError(details={"limit": decision.limit, "reset_in_seconds": decision.reset_in_seconds})
            return JSONResponse(
                status_code=error.status_code,
                content=error.to_response().model_dump(exclude_none=True),
                headers=decision.headers(),
            )

        response = await call_next(request)
        for name, value in decision.headers().items():
            response.headers[name] = value
        return response

    def _get_client_address(self, request: Request) -> str:
        """Extract the caller address; proxy headers only when explicitly trusted."""
        if self.trust_forwarded_headers:
            forwarded_for = request.headers.get("X-Forwarded-For")
            if forwarded_for:
                return forwarded_for.split(",")[0].strip()

            real_ip = request.headers.get("X-Real-IP")
            if real_ip:
                return real_ip

        return request.client.host if request.client else "unknown"
