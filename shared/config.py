"""
Shared configuration management for the Transcript Gateway.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings.

    Values are read once from the environment (prefix ``TRANSCRIPT_``) or a
    local ``.env`` file. There is no runtime reconfiguration.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIPT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Upstream retrieval
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_locator_length: int = Field(default=200, gt=0)
    resolve_titles: bool = Field(default=False)
    title_lookup_timeout_seconds: float = Field(default=5.0, gt=0)

    # Result cache
    cache_ttl_seconds: float = Field(default=3600.0, gt=0)
    cache_check_period_seconds: float = Field(default=600.0, gt=0)

    # Rate limiting
    rate_limit_window_seconds: float = Field(default=60.0, gt=0)
    rate_limit_max_requests: int = Field(default=30, gt=0)
    trust_forwarded_headers: bool = Field(default=False)

    # Outbound proxy
    use_proxy: bool = Field(default=False)
    proxy_url: Optional[str] = Field(default=None)

    # HTTP
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    host: str = "0.0.0.0"
    port: int = 3000


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
