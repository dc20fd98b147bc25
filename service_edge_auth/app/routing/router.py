"""
Tenant path routing.

Maps ``{tenant}.{apex}/{path}`` onto the origin key ``/{tenant}/{path}`` and
applies single-page-app fallbacks so client-side routers receive their
``index.html`` for extensionless paths.
"""

import re
from dataclasses import dataclass
from typing import Optional

from shared.logging import get_logger

# A tenant is exactly one DNS label.
_TENANT_LABEL = re.compile(r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?")
_FILE_EXTENSION = re.compile(r"\.\w+$", re.ASCII)

INDEX_DOCUMENT = "index.html"

logger = get_logger("edge_auth.router")


@dataclass(frozen=True)
class RoutedPath:
    """Result of routing one request. ``tenant`` is None for the not-found marker."""

    uri: str
    tenant: Optional[str] = None

    @property
    def not_found(self) -> bool:
        return self.tenant is None


class PathRouter:
    """Rewrites viewer paths to tenant-prefixed origin paths."""

    def __init__(self, apex_domain: str, error_page: str = "/_errors/404.html"):
        self.apex_domain = apex_domain.lower().rstrip(".")
        self.base_domain = f".{self.apex_domain}"
        self.error_page = error_page

    @property
    def not_found_marker(self) -> RoutedPath:
        return RoutedPath(uri=self.error_page)

    def tenant_for_host(self, host: str) -> Optional[str]:
        """Return the tenant label for ``host``, or None if it has none.

        Rejects the apex itself, foreign hosts, and anything other than a
        single DNS label below the base domain. This is what stops a crafted
        Host header from reaching another tenant's prefix.
        """
        host = (host or "").lower()
        if host == self.apex_domain or not host.endswith(self.base_domain):
            return None

        tenant = host[: -len(self.base_domain)]
        if not tenant or "/" in tenant or ".." in tenant:
            return None
        if not _TENANT_LABEL.fullmatch(tenant):
            return None
        return tenant

    def route(self, path: str, host: str) -> RoutedPath:
        tenant = self.tenant_for_host(host)
        if tenant is None:
            logger.info("No tenant for host", host=host)
            return self.not_found_marker

        if not path.startswith("/"):
            path = "/" + path

        if path.endswith("/"):
            uri = f"/{tenant}{path}{INDEX_DOCUMENT}"
        elif not _FILE_EXTENSION.search(path):
            uri = f"/{tenant}{path}/{INDEX_DOCUMENT}"
        else:
            uri = f"/{tenant}{path}"

        return RoutedPath(uri=uri, tenant=tenant)
