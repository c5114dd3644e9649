"""
Shared logging configuration for the Transcript Gateway.

Every log line is a JSON object carrying the service name, the request
correlation id and the caller address when a request is in progress. URL
credentials are masked in every string field before rendering, so a proxy
URL that slips into an exception message never reaches the log stream.
"""

import logging
import re
import sys
import uuid
from contextvars import ContextVar
from typing import Any, Callable, Dict, Optional

import structlog

# Context variables for request correlation
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
client_address_var: ContextVar[Optional[str]] = ContextVar('client_address', default=None)

REDACTED = "***"
_URL_CREDENTIALS = re.compile(r"//[^/@\s]+@")

Processor = Callable[[Any, str, Dict[str, Any]], Dict[str, Any]]


def redact_url(text: str) -> str:
    """Mask any ``user:password@`` section embedded in URLs inside ``text``."""
    return _URL_CREDENTIALS.sub(f"//{REDACTED}@", text)


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structured logging for a service."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            service_context(service_name),
            add_correlation_context,
            scrub_credentials,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    logging.getLogger().setLevel(level)


def service_context(service_name: str) -> Processor:
    """Processor stamping every event with the owning service."""

    def add_service(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add request id and caller address to log events."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    client_address = client_address_var.get()
    if client_address:
        event_dict["client_address"] = client_address

    return event_dict


def scrub_credentials(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask URL credentials in every string value, tracebacks included."""
    for key, value in event_dict.items():
        if isinstance(value, str) and "@" in value:
            event_dict[key] = redact_url(value)
    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Bind the request id for the current request, generating one if absent."""
    if not request_id:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> Optional[str]:
    """Return the request ID bound to the current context, if any."""
    return request_id_var.get()


def set_client_context(client_address: Optional[str] = None):
    """Set the caller address in logging context."""
    if client_address:
        client_address_var.set(client_address)


def clear_context():
    """Clear all context variables."""
    request_id_var.set(None)
    client_address_var.set(None)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
