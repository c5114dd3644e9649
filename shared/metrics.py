"""
Shared metrics configuration for the Transcript Gateway.
"""

from prometheus_client import CollectorRegistry, Counter, Histogram, Info
from typing import Dict, Any, Optional

# Upstream fetches are slow; the default buckets stop at 10s
UPSTREAM_BUCKETS = (0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0)


class MetricsCollector:
    """Centralized metrics collector for a service.

    Each collector owns its registry so that several service instances (for
    example one per test) never collide on metric names.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None, version: str = "1.0.0"):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics(version)

    def _setup_metrics(self, version: str):
        """Set up HTTP and error metrics for the service."""

        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({"service": self.service_name, "version": version})

        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Errors returned to clients by category",
            ["category"],
            registry=self.registry
        )

        self._setup_transcript_metrics()

    def _setup_transcript_metrics(self):
        """Set up rate limiting, cache and upstream metrics."""
        self._metrics["rate_limit_rejections_total"] = Counter(
            "rate_limit_rejections_total",
            "Total requests rejected by the rate limiter",
            ["method"],
            registry=self.registry
        )

        self._metrics["cache_hits_total"] = Counter(
            "cache_hits_total",
            "Total cache hits",
            ["cache_type"],
            registry=self.registry
        )

        self._metrics["cache_misses_total"] = Counter(
            "cache_misses_total",
            "Total cache misses",
            ["cache_type"],
            registry=self.registry
        )

        self._metrics["upstream_fetch_total"] = Counter(
            "upstream_fetch_total",
            "Total upstream transcript fetches by outcome",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["upstream_fetch_duration_seconds"] = Histogram(
            "upstream_fetch_duration_seconds",
            "Upstream transcript fetch duration in seconds",
            buckets=UPSTREAM_BUCKETS,
            registry=self.registry
        )

        self._metrics["coalesced_requests_total"] = Counter(
            "coalesced_requests_total",
            "Requests that joined an in-flight upstream fetch",
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, category: str):
        """Count one error response; ``category`` is a taxonomy value or "unhandled"."""
        self._metrics["errors_total"].labels(category=category).inc()

    def record_rate_limit_rejection(self, method: str):
        self._metrics["rate_limit_rejections_total"].labels(method=method).inc()

    def record_cache_access(self, hit: bool, cache_type: str = "transcript"):
        """Record a cache hit or miss."""
        name = "cache_hits_total" if hit else "cache_misses_total"
        self._metrics[name].labels(cache_type=cache_type).inc()

    def record_upstream_fetch(self, outcome: str, duration: float):
        """Record the outcome ("success", "empty" or "error") and duration of one upstream fetch."""
        self._metrics["upstream_fetch_total"].labels(outcome=outcome).inc()
        self._metrics["upstream_fetch_duration_seconds"].observe(duration)

    def record_coalesced_request(self):
        self._metrics["coalesced_requests_total"].inc()

    def sample(self, metric_name: str, **labels) -> Optional[float]:
        """Return the current value of a metric sample, mainly for diagnostics."""
        return self.registry.get_sample_value(metric_name, labels or None)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None,
                          version: str = "1.0.0") -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry, version)
