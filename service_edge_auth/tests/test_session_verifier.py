"""
Unit tests for SessionVerifier.
"""

import base64
import json
from unittest.mock import AsyncMock

import pytest
from jose import jwt

from shared.errors import ExternalServiceError, TokenInvalid
from shared.test_helpers import CLIENT_ID, ISSUER, POOL_ID, REGION, create_id_token
from service_edge_auth.app.jwks.client import JWKSClient
from service_edge_auth.app.validation.session_verifier import SessionVerifier, issuer_url


def _unsigned_token(header, claims):
    def segment(data):
        return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()
    return f"{segment(header)}.{segment(claims)}."


class TestSessionVerifier:
    """Test cases for SessionVerifier."""

    @pytest.fixture
    def verifier(self, idp, metrics):
        return SessionVerifier(JWKSClient(idp.client(), metrics=metrics), metrics=metrics)

    async def verify(self, verifier, token):
        return await verifier.verify(token, POOL_ID, REGION, CLIENT_ID)

    def test_issuer_url(self):
        assert issuer_url("eu-west-1_Abc", "eu-west-1") == "https://cognito-idp.eu-west-1.amazonaws.com/eu-west-1_Abc"

    @pytest.mark.asyncio
    async def test_valid_token(self, verifier, valid_token, metrics):
        assert await self.verify(verifier, valid_token) is True
        assert metrics.sample_value("edge_auth_token_verifications_total", {"result": "valid"}) == 1

    @pytest.mark.asyncio
    async def test_claims_returned(self, verifier, valid_token):
        claims = await verifier.verify_claims(valid_token, POOL_ID, REGION, CLIENT_ID)
        assert claims["sub"] == "user-123"
        assert claims["iss"] == ISSUER

    @pytest.mark.asyncio
    async def test_token_with_at_hash_is_accepted(self, verifier, signing_key):
        token = create_id_token(signing_key, ISSUER, CLIENT_ID, extra_claims={"at_hash": "abc123"})
        assert await self.verify(verifier, token) is True

    @pytest.mark.asyncio
    async def test_expired_token(self, verifier, signing_key, metrics):
        token = create_id_token(signing_key, ISSUER, CLIENT_ID, expires_in=-60)
        assert await self.verify(verifier, token) is False
        assert metrics.sample_value("edge_auth_token_verifications_total", {"result": "invalid"}) == 1

    @pytest.mark.asyncio
    async def test_wrong_audience(self, verifier, signing_key):
        token = create_id_token(signing_key, ISSUER, "another-client")
        assert await self.verify(verifier, token) is False

    @pytest.mark.asyncio
    async def test_wrong_issuer(self, verifier, signing_key):
        token = create_id_token(signing_key, issuer_url("us-east-1_Other", REGION), CLIENT_ID)
        assert await self.verify(verifier, token) is False

    @pytest.mark.asyncio
    async def test_unpublished_key(self, verifier, other_key):
        token = create_id_token(other_key, ISSUER, CLIENT_ID)
        assert await self.verify(verifier, token) is False

    @pytest.mark.asyncio
    async def test_forged_signature_with_published_kid(self, verifier, signing_key, other_key):
        token = create_id_token(other_key, ISSUER, CLIENT_ID, kid=signing_key.kid)
        assert await self.verify(verifier, token) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c", "header.payload.signature"])
    async def test_garbage_token(self, verifier, token):
        assert await self.verify(verifier, token) is False

    @pytest.mark.asyncio
    async def test_missing_kid(self, verifier, signing_key):
        token = jwt.encode({"sub": "user-123"}, signing_key.private_pem.decode(), algorithm="RS256")
        with pytest.raises(TokenInvalid):
            await verifier.verify_claims(token, POOL_ID, REGION, CLIENT_ID)

    @pytest.mark.asyncio
    async def test_symmetric_algorithm_rejected(self, verifier, signing_key):
        token = jwt.encode(
            {"sub": "user-123", "iss": ISSUER, "aud": CLIENT_ID},
            "shared-secret",
            algorithm="HS256",
            headers={"kid": signing_key.kid},
        )
        with pytest.raises(TokenInvalid) as exc_info:
            await verifier.verify_claims(token, POOL_ID, REGION, CLIENT_ID)
        assert exc_info.value.details["alg"] == "HS256"

    @pytest.mark.asyncio
    async def test_alg_none_rejected(self, verifier, signing_key):
        token = _unsigned_token(
            {"alg": "none", "kid": signing_key.kid},
            {"sub": "user-123", "iss": ISSUER, "aud": CLIENT_ID},
        )
        assert await self.verify(verifier, token) is False

    @pytest.mark.asyncio
    async def test_key_fetch_failure_is_invalid(self, valid_token):
        jwks_client = AsyncMock()
        jwks_client.get_key.side_effect = ExternalServiceError("jwks", "Signing keys unavailable")
        verifier = SessionVerifier(jwks_client)

        assert await verifier.verify(valid_token, POOL_ID, REGION, CLIENT_ID) is False
