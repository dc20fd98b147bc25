"""
JWKS client for the identity provider.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from shared.errors import ExternalServiceError
from shared.logging import get_logger
from shared.metrics import MetricsCollector


def jwks_url(issuer: str) -> str:
    return f"{issuer.rstrip('/')}/.well-known/jwks.json"


@dataclass
class KeySet:
    """Signing keys published by one issuer, indexed by key id."""

    keys: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    fetched_at: float = 0.0
    # Last fetch attempt, successful or not; drives the refetch cooldown.
    attempted_at: float = 0.0


class JWKSClient:
    """Fetches and caches signing keys per issuer for the process lifetime.

    A token signed with an unknown ``kid`` triggers one refetch so key
    rotation at the identity provider is picked up without a restart. Such
    refetches are limited to one per ``refresh_cooldown`` seconds per issuer.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        http_timeout: float = 5.0,
        refresh_cooldown: float = 30.0,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.refresh_cooldown = refresh_cooldown
        self.metrics = metrics
        self.logger = get_logger("edge_auth.jwks")

        self._client = client or httpx.AsyncClient(timeout=http_timeout)
        self._key_sets: Dict[str, KeySet] = {}
        self._lock = asyncio.Lock()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def cached_issuers(self) -> List[str]:
        return list(self._key_sets)

    async def get_key(self, issuer: str, kid: str) -> Optional[Dict[str, Any]]:
        """Return the JWK for ``kid`` published by ``issuer``, or None."""
        key_set = self._key_sets.get(issuer)
        if key_set is None:
            key_set = await self._refresh(issuer, stale=None)

        key = key_set.keys.get(kid)
        if key is not None:
            return key

        if not self._cooling_down(key_set):
            key_set = await self._refresh(issuer, stale=key_set)
            key = key_set.keys.get(kid)

        if key is None:
            self.logger.warning("Key not found", issuer=issuer, kid=kid)
        return key

    async def _refresh(self, issuer: str, stale: Optional[KeySet]) -> KeySet:
        async with self._lock:
            # Another task may have fetched while we waited on the lock.
            current = self._key_sets.get(issuer)
            if current is not None and current is not stale:
                return current
            if stale is not None and self._cooling_down(stale):
                return stale

            url = jwks_url(issuer)
            try:
                response = await self._client.get(url)
                response.raise_for_status()
                payload = response.json()
                keys = payload.get("keys") if isinstance(payload, dict) else None
                if not isinstance(keys, list):
                    raise ValueError("JWKS response missing 'keys' array")
            except (httpx.HTTPError, ValueError) as e:
                self._record("error")
                self.logger.error("Failed to fetch JWKS", url=url, error=str(e))
                if stale is not None:
                    stale.attempted_at = time.monotonic()
                    self.logger.warning("Using cached JWKS after fetch failure", issuer=issuer)
                    return stale
                raise ExternalServiceError("jwks", "Signing keys unavailable", details={"url": url}) from e

            now = time.monotonic()
            key_set = KeySet(
                keys={k["kid"]: k for k in keys if isinstance(k, dict) and isinstance(k.get("kid"), str)},
                fetched_at=now,
                attempted_at=now,
            )
            self._key_sets[issuer] = key_set
            self._record("ok")
            self.logger.info("JWKS refreshed successfully", issuer=issuer, keys_count=len(key_set.keys))
            return key_set

    def _cooling_down(self, key_set: KeySet) -> bool:
        return time.monotonic() - key_set.attempted_at < self.refresh_cooldown

    def _record(self, status: str) -> None:
        if self.metrics:
            self.metrics.record_jwks_refresh(status)
