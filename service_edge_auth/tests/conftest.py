"""
Shared fixtures for edge auth tests.
"""

import pytest

from shared.config import EdgeAuthSettings
from shared.metrics import MetricsCollector
from shared.test_helpers import (
    APEX,
    CLIENT_ID,
    ISSUER,
    PARAMETER_NAME,
    FakeIdentityProvider,
    StubParameterStore,
    create_config_json,
    create_id_token,
    create_jwks,
    create_signing_key,
)
from service_edge_auth.app.config.loader import ConfigLoader
from service_edge_auth.app.edge.gate import AuthGate
from service_edge_auth.app.jwks.client import JWKSClient
from service_edge_auth.app.oauth.flow import OAuthClient
from service_edge_auth.app.validation.session_verifier import SessionVerifier


@pytest.fixture(scope="session")
def signing_key():
    """RSA key the fake identity provider signs with."""
    return create_signing_key("test-key-1")


@pytest.fixture(scope="session")
def other_key():
    """A key the identity provider never published."""
    return create_signing_key("rogue-key")


@pytest.fixture
def settings():
    return EdgeAuthSettings(apex_domain=APEX, parameter_name=PARAMETER_NAME)


@pytest.fixture
def metrics():
    return MetricsCollector("edge_auth_test")


@pytest.fixture
def parameter_store():
    return StubParameterStore(values={PARAMETER_NAME: create_config_json()})


@pytest.fixture
def idp(signing_key):
    return FakeIdentityProvider(jwks=create_jwks(signing_key))


@pytest.fixture
def valid_token(signing_key):
    return create_id_token(signing_key, issuer=ISSUER, audience=CLIENT_ID)


@pytest.fixture
def gate(settings, parameter_store, idp, metrics):
    client = idp.client()
    return AuthGate(
        settings,
        ConfigLoader(parameter_store, PARAMETER_NAME, metrics=metrics),
        SessionVerifier(JWKSClient(client, metrics=metrics), metrics=metrics),
        OAuthClient(client, metrics=metrics),
        metrics=metrics,
    )
