"""
Base service class for Transcript Gateway services.
"""

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
import time

from shared.config import ServiceConfig, get_config
from shared.logging import configure_logging, get_logger, set_request_id, clear_context
from shared.metrics import get_metrics_collector
from shared.errors import TranscriptServiceError


class BaseService:
    """Base service class with common functionality."""

    version = "1.0.0"

    def __init__(self, service_name: str, config: Optional[ServiceConfig] = None):
        self.service_name = service_name
        self.config = config or get_config(service_name)
        self.port = self.config.port

        # Configure logging
        configure_logging(service_name, self.config.log_level)
        self.logger = get_logger(f"{service_name}.service")
        self.metrics = get_metrics_collector(service_name, version=self.version)
        self._start_time = time.time()

        # Service-specific collaborators
        self._init_components()

        # Create FastAPI app
        self.app = self._create_app()

        # Set up middleware
        self._setup_middleware()

        # Set up routes
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""
        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"Transcript Gateway - {self.service_name.title()} Service",
            version=self.version,
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            openapi_url="/openapi.json" if self.config.env == "local" else None,
        )

    def _setup_middleware(self):
        """Set up middleware."""

        # CORS middleware
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.cors_allow_origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        # Registered after CORS and before timing, so it runs inside the timing wrapper
        self._setup_service_middleware()

        # Request timing middleware
        @self.app.middleware("http")
        async def add_request_timing(request: Request, call_next):
            request_id = set_request_id(request.headers.get("X-Request-ID"))
            start_time = time.time()

            try:
                # Process request
                response = await call_next(request)

                # Calculate duration
                duration = time.time() - start_time

                # Record metrics
                self.metrics.record_http_request(
                    method=request.method,
                    endpoint=self._endpoint_label(request),
                    status_code=response.status_code,
                    duration=duration
                )

                # Log request
                self.logger.info(
                    "HTTP request",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=round(duration * 1000, 2)
                )

                response.headers["X-Request-ID"] = request_id
                return response
            finally:
                clear_context()

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            self.metrics.record_health_check("ok")
            payload = {
                "service": self.service_name,
                "status": "ok",
                "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
                "uptime_seconds": round(self._get_uptime(), 3),
                "version": self.version,
            }
            payload.update(self._health_details())
            return payload

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
            return Response(
                content=generate_latest(self.metrics.registry),
                media_type=CONTENT_TYPE_LATEST
            )

        # Error handlers
        @self.app.exception_handler(TranscriptServiceError)
        async def transcript_service_exception_handler(request: Request, exc: TranscriptServiceError):
            """Handle taxonomy errors."""
            log = self.logger.warning if exc.status_code < 500 else self.logger.error
            log(
                "Request failed",
                code=exc.code,
                category=exc.category.value,
                message=exc.message,
                retryable=exc.retryable,
                path=request.url.path,
            )
            self.metrics.record_error(exc.category.value)
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_response().model_dump(exclude_none=True)
            )

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            """Answer unmatched routes with the endpoint catalogue."""
            if exc.status_code in (404, 405):
                return JSONResponse(
                    status_code=404,
                    content={
                        "error": "Not found",
                        "availableEndpoints": self.available_endpoints(),
                    }
                )
            return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            self.metrics.record_error("unhandled")
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "code": "INTERNAL_ERROR",
                }
            )

    def _init_components(self):
        """Build service collaborators before the app is wired. Override in subclasses."""

    def _setup_service_middleware(self):
        """Add service-specific middleware. Override in subclasses."""

    def available_endpoints(self) -> List[str]:
        """Endpoints advertised on 404 responses. Override in subclasses."""
        return ["GET /health", "GET /metrics"]

    def _health_details(self) -> Dict[str, Any]:
        """Extra health payload fields. Override in subclasses."""
        return {}

    def _endpoint_label(self, request: Request) -> str:
        """Route template for metrics labels; unmatched paths share one label."""
        route = request.scope.get("route")
        return getattr(route, "path", None) or "unmatched"

    def _get_uptime(self) -> float:
        """Get service uptime in seconds."""
        return time.time() - self._start_time

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
