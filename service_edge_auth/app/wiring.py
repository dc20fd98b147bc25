"""
Construction of the gate and its collaborators.
"""

from typing import Optional

import httpx

from shared.config import EdgeAuthSettings
from shared.metrics import MetricsCollector
from shared.parameter_store import ParameterStore
from .config.loader import ConfigLoader
from .edge.gate import AuthGate
from .jwks.client import JWKSClient
from .oauth.flow import OAuthClient
from .validation.session_verifier import SessionVerifier


def build_gate(
    settings: EdgeAuthSettings,
    metrics: Optional[MetricsCollector] = None,
    *,
    parameter_store: Optional[ParameterStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> AuthGate:
    """Wire a gate with one shared HTTP client for all identity-provider calls."""
    client = http_client or httpx.AsyncClient(timeout=settings.http_timeout)
    store = parameter_store or ParameterStore(settings.parameter_region, timeout=settings.http_timeout)

    config_loader = ConfigLoader(store, settings.parameter_name, metrics=metrics)
    jwks_client = JWKSClient(client, refresh_cooldown=settings.jwks_refresh_cooldown, metrics=metrics)
    verifier = SessionVerifier(jwks_client, metrics=metrics)
    oauth_client = OAuthClient(client, metrics=metrics)

    return AuthGate(settings, config_loader, verifier, oauth_client, metrics=metrics)
