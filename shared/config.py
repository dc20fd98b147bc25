"""
Shared configuration management for the hosting edge auth gate.
"""

import re
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DNS_LABEL = r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?"
_DNS_NAME = re.compile(rf"{_DNS_LABEL}(?:\.{_DNS_LABEL})*")


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="EDGE_AUTH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="production")
    log_level: str = Field(default="info")


class EdgeAuthSettings(BaseConfig):
    """Settings for the edge auth gate.

    Lambda@Edge functions cannot read environment variables, so the defaults
    here are the values deployed to the edge. Local runs may override any of
    them with ``EDGE_AUTH_*`` variables or a ``.env`` file.
    """

    # Domains
    apex_domain: str = Field(default="hosting.example.com")

    # Session cookie
    cookie_name: str = Field(default="hosting_auth")
    cookie_max_age: int = Field(default=3600)

    # Fixed paths
    callback_path: str = Field(default="/_auth/callback")
    logout_path: str = Field(default="/_auth/logout")
    error_page: str = Field(default="/_errors/404.html")

    # Secret store
    parameter_name: str = Field(default="/hosting/auth-config")
    parameter_region: str = Field(default="us-east-1")

    # Identity provider calls
    http_timeout: float = Field(default=5.0)
    jwks_refresh_cooldown: float = Field(default=30.0)

    # Local edge host
    origin_url: Optional[str] = Field(default=None)
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8030)

    @property
    def apex(self) -> str:
        return self.apex_domain.lower().rstrip(".")

    @property
    def base_domain(self) -> str:
        """Suffix shared by every tenant host, e.g. ``.hosting.example.com``."""
        return f".{self.apex}"

    @property
    def cookie_domain(self) -> str:
        return self.base_domain

    def is_managed_host(self, host: str) -> bool:
        """Return True for the apex domain or a DNS name below it.

        Anything that is not a plain hostname (userinfo, path, query or
        fragment characters, empty labels) is rejected, so the result is safe
        to place in the authority of a redirect URL.
        """
        host = (host or "").lower()
        if not _DNS_NAME.fullmatch(host):
            return False
        return host == self.apex or host.endswith(self.base_domain)


@lru_cache(maxsize=1)
def get_settings() -> EdgeAuthSettings:
    """Get the process-wide settings instance."""
    return EdgeAuthSettings()
