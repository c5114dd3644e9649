"""
Unit tests for the fixed-window rate limiter and its middleware.
"""

import threading

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from service_transcript.app.ratelimit import FixedWindowRateLimiter, RateLimitMiddleware
from shared.metrics import MetricsCollector


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestFixedWindowRateLimiter:
    """Test cases for FixedWindowRateLimiter."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def rate_limiter(self, clock):
        """Limiter allowing three requests per ten seconds."""
        return FixedWindowRateLimiter(max_requests=3, window_seconds=10.0, clock=clock)

    def test_admits_up_to_limit(self, rate_limiter):
        """Requests up to the limit are admitted, the next one rejected."""
        decisions = [rate_limiter.admit("10.0.0.1") for _ in range(4)]

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions] == [2, 1, 0, 0]
        assert decisions[-1].count == 3

    def test_default_limits(self, clock):
        """Thirty requests a minute by default."""
        rate_limiter = FixedWindowRateLimiter(clock=clock)

        decisions = [rate_limiter.admit("10.0.0.1") for _ in range(31)]

        assert all(d.allowed for d in decisions[:30])
        assert decisions[30].allowed is False
        assert decisions[30].reset_in_seconds == 60

        clock.now += 60.0
        assert rate_limiter.admit("10.0.0.1").allowed is True

    def test_rejected_requests_are_not_counted(self, rate_limiter, clock):
        """Rejections do not extend the window or inflate the counter."""
        for _ in range(10):
            rate_limiter.admit("10.0.0.1")

        clock.now += 10.0
        decision = rate_limiter.admit("10.0.0.1")

        assert decision.allowed is True
        assert decision.count == 1

    def test_window_resets_after_elapsed(self, rate_limiter, clock):
        """A fresh window starts once the previous one has elapsed."""
        for _ in range(3):
            rate_limiter.admit("10.0.0.1")
        assert rate_limiter.admit("10.0.0.1").allowed is False

        clock.now += 9.9
        assert rate_limiter.admit("10.0.0.1").allowed is False

        clock.now += 0.1
        assert rate_limiter.admit("10.0.0.1").allowed is True

    def test_clients_are_independent(self, rate_limiter):
        """Each address has its own window."""
        for _ in range(3):
            rate_limiter.admit("10.0.0.1")

        assert rate_limiter.admit("10.0.0.1").allowed is False
        assert rate_limiter.admit("10.0.0.2").allowed is True

    def test_reset_in_seconds(self, rate_limiter, clock):
        """Reset counts down from the window start."""
        rate_limiter.admit("10.0.0.1")
        clock.now += 4.5

        decision = rate_limiter.admit("10.0.0.1")

        assert decision.reset_in_seconds == 6

    def test_decision_headers(self, rate_limiter):
        """Rejections carry Retry-After on top of the RateLimit headers."""
        allowed = rate_limiter.admit("10.0.0.1")
        for _ in range(2):
            rate_limiter.admit("10.0.0.1")
        rejected = rate_limiter.admit("10.0.0.1")

        assert allowed.headers() == {
            "RateLimit-Limit": "3",
            "RateLimit-Remaining": "2",
            "RateLimit-Reset": "10",
        }
        assert rejected.headers()["Retry-After"] == "10"
        assert "Retry-After" not in allowed.headers()

    def test_prune_drops_elapsed_windows(self, rate_limiter, clock):
        """Only windows that have elapsed are pruned."""
        rate_limiter.admit("10.0.0.1")
        clock.now += 5.0
        rate_limiter.admit("10.0.0.2")
        clock.now += 5.0

        assert rate_limiter.prune() == 1
        assert rate_limiter.tracked_clients == 1

    def test_concurrent_admission_never_exceeds_limit(self):
        """Admission checks from many threads are linearizable."""
        rate_limiter = FixedWindowRateLimiter(max_requests=50, window_seconds=60.0)
        admitted = []
        lock = threading.Lock()

        def worker():
            for _ in range(20):
                decision = rate_limiter.admit("10.0.0.1")
                if decision.allowed:
                    with lock:
                        admitted.append(decision.count)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(admitted) == 50
        assert sorted(admitted) == list(range(1, 51))

    @pytest.mark.parametrize("max_requests, window_seconds", [(0, 60.0), (10, 0)])
    def test_invalid_configuration(self, max_requests, window_seconds):
        with pytest.raises(ValueError):
            FixedWindowRateLimiter(max_requests=max_requests, window_seconds=window_seconds)


class TestRateLimitMiddleware:
    """Test cases for RateLimitMiddleware."""

    def _client(self, rate_limiter, **kwargs):
        app = FastAPI()
        app.add_middleware(RateLimitMiddleware, rate_limiter=rate_limiter, **kwargs)

        @app.get("/ping")
        async def ping():
            return {"pong": True}

        return TestClient(app)

    def test_rejects_with_fixed_message(self):
        """Over-limit requests get 429 with the fixed message."""
        metrics = MetricsCollector("test")
        client = self._client(FixedWindowRateLimiter(max_requests=1, window_seconds=60.0), metrics=metrics)

        first = client.get("/ping")
        second = client.get("/ping")

        assert first.status_code == 200
        assert first.headers["RateLimit-Remaining"] == "0"
        assert second.status_code == 429
        assert second.json()["error"] == "Too many requests from this IP, please try again later."
        assert second.json()["code"] == "RATE_LIMIT_EXCEEDED"
        assert "Retry-After" in second.headers
        assert metrics.sample("rate_limit_rejections_total", method="GET") == 1.0

    def test_unknown_routes_are_limited_too(self):
        """Admission happens before routing."""
        client = self._client(FixedWindowRateLimiter(max_requests=1, window_seconds=60.0))

        assert client.get("/nowhere").status_code == 404
        assert client.get("/nowhere").status_code == 429

    def test_forwarded_headers_ignored_by_default(self):
        """Spoofed X-Forwarded-For cannot escape the limit."""
        client = self._client(FixedWindowRateLimiter(max_requests=1, window_seconds=60.0))

        assert client.get("/ping", headers={"X-Forwarded-For": "1.1.1.1"}).status_code == 200
        assert client.get("/ping", headers={"X-Forwarded-For": "2.2.2.2"}).status_code == 429

    def test_forwarded_headers_when_trusted(self):
        """Behind a trusted proxy each forwarded address gets its own window."""
        client = self._client(
            FixedWindowRateLimiter(max_requests=1, window_seconds=60.0),
            trust_forwarded_headers=True,
        )

        assert client.get("/ping", headers={"X-Forwarded-For": "1.1.1.1, 10.0.0.1"}).status_code == 200
        assert client.get("/ping", headers={"X-Forwarded-For": "2.2.2.2"}).status_code == 200
        assert client.get("/ping", headers={"X-Real-IP": "1.1.1.1"}).status_code == 429
