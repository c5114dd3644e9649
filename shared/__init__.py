"""
Shared utilities for the Transcript Gateway.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error taxonomy and responses
- proxy: Outbound proxy configuration and credential redaction
- base_service: FastAPI application scaffolding (health, metrics, handlers)

Any cross-service logic should live here to avoid import cycles. Do not
import from service_* packages into shared/.
"""
