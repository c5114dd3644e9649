"""
Outbound proxy configuration for upstream calls.

The proxy URL is parsed once at startup into a structured value. Anything
rendered for diagnostics goes through ``display`` or ``redact`` so that
credentials never reach logs or client-visible messages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, unquote, urlsplit

from shared.logging import REDACTED, get_logger, redact_url

SUPPORTED_SCHEMES = ("http", "https", "socks5", "socks5h")
DEFAULT_PORTS = {"http": 80, "https": 443, "socks5": 1080, "socks5h": 1080}
# Shorter fragments would mangle unrelated text; the URL pattern still covers them.
_MIN_SECRET_LENGTH = 4


@dataclass(frozen=True)
class ProxyConfig:
    """Process-wide forward proxy settings, read-only after startup."""

    enabled: bool = False
    scheme: str = "http"
    host: Optional[str] = None
    port: Optional[int] = None
    username: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def disabled(cls) -> "ProxyConfig":
        return cls()

    @classmethod
    def from_url(cls, url: str) -> "ProxyConfig":
        """Parse ``scheme://[user[:password]@]host[:port]`` into a config."""
        candidate = (url or "").strip()
        try:
            parsed = urlsplit(candidate)
            port = parsed.port
        except ValueError as exc:
            raise ValueError(f"Invalid proxy URL: {redact_url(candidate)}") from exc

        scheme = parsed.scheme.lower()
        if scheme not in SUPPORTED_SCHEMES or not parsed.hostname:
            raise ValueError(f"Invalid proxy URL: {redact_url(candidate)}")

        return cls(
            enabled=True,
            scheme=scheme,
            host=parsed.hostname,
            port=port if port is not None else DEFAULT_PORTS[scheme],
            username=unquote(parsed.username) if parsed.username else None,
            password=unquote(parsed.password) if parsed.password else None,
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.username or self.password)

    @property
    def _netloc_host(self) -> str:
        host = self.host or ""
        if ":" in host:
            host = f"[{host}]"
        return f"{host}:{self.port}"

    @property
    def url(self) -> Optional[str]:
        """Full proxy URL including credentials, for transport configuration only."""
        if not self.enabled:
            return None
        auth = ""
        if self.has_credentials:
            auth = quote(self.username or "", safe="")
            if self.password:
                auth += ":" + quote(self.password, safe="")
            auth += "@"
        return f"{self.scheme}://{auth}{self._netloc_host}"

    @property
    def display(self) -> str:
        """Proxy target safe for logs."""
        if not self.enabled:
            return "disabled"
        auth = f"{REDACTED}@" if self.has_credentials else ""
        return f"{self.scheme}://{auth}{self._netloc_host}"

    def redact(self, text: str) -> str:
        """Remove this proxy's credentials from arbitrary text."""
        if not text:
            return text
        if self.enabled and self.url:
            text = text.replace(self.url, self.display)
        for secret in (self.password, self.username):
            if secret and len(secret) >= _MIN_SECRET_LENGTH:
                text = text.replace(quote(secret, safe=""), REDACTED)
                text = text.replace(secret, REDACTED)
        return redact_url(text)


def resolve_proxy_config(use_proxy: bool, proxy_url: Optional[str]) -> ProxyConfig:
    """Build the process proxy configuration from settings.

    Raises ValueError when the proxy is enabled with an unparseable URL.
    """
    logger = get_logger("transcript.proxy")

    if not use_proxy:
        logger.info("Proxy disabled - using direct connection")
        return ProxyConfig.disabled()

    if not proxy_url:
        logger.warning("Proxy requested but no proxy URL configured - using direct connection")
        return ProxyConfig.disabled()

    config = ProxyConfig.from_url(proxy_url)
    logger.info("Proxy enabled", proxy=config.display)
    return config
