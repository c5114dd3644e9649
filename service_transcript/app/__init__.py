"""
Transcript Service package for the Transcript Gateway.

The service turns an unreliable, rate-limited upstream transcript fetch into
a predictable HTTP API, enforcing:
- Per-client fixed-window rate limiting on every route
- Identifier normalization of YouTube locators into canonical video ids
- A TTL result cache with single-flight coalescing of concurrent misses
- A deadline on every upstream fetch, optionally routed through a proxy

Structure:
- app.main: FastAPI app, routes, and middleware wiring.
- app.locators: Locator normalization.
- app.ratelimit: Fixed-window limiter and middleware.
- app.caching: Result cache and single-flight group.
- app.adapters: Upstream transcript dispatcher.
- app.domain: Models, retrieval orchestrator and error classifier.
"""
