"""
Session token verification for the edge auth gate.
"""

from typing import Any, Dict, Optional

from jose import jwt
from jose.exceptions import JWTError

from shared.errors import EdgeAuthError, TokenInvalid
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..jwks.client import JWKSClient

ALLOWED_ALGORITHMS = ["RS256"]


def issuer_url(pool_id: str, region: str) -> str:
    """Issuer of tokens minted by a Cognito user pool."""
    return f"https://cognito-idp.{region}.amazonaws.com/{pool_id}"


class SessionVerifier:
    """Validates session cookies against the identity provider's keys."""

    def __init__(self, jwks_client: JWKSClient, metrics: Optional[MetricsCollector] = None):
        self.jwks_client = jwks_client
        self.metrics = metrics
        self.logger = get_logger("edge_auth.verifier")

    async def verify(self, token: str, pool_id: str, region: str, client_id: str) -> bool:
        """Return True only for a correctly signed, unexpired token for this client.

        Never raises. The reason for a rejection is logged, but callers only
        ever see False.
        """
        try:
            await self.verify_claims(token, pool_id, region, client_id)
        except EdgeAuthError as e:
            self._record("invalid")
            self.logger.warning("Token verification failed", code=e.code, error=e.message, details=e.details)
            return False
        except Exception as e:
            self._record("invalid")
            self.logger.warning("Token verification failed", code="UNEXPECTED", error=str(e))
            return False

        self._record("valid")
        return True

    async def verify_claims(self, token: str, pool_id: str, region: str, client_id: str) -> Dict[str, Any]:
        """Verify the token and return its claims.

        Raises:
            TokenInvalid: any signature, issuer, audience or expiry failure
            ExternalServiceError: the signing keys could not be fetched
        """
        if not token:
            raise TokenInvalid("Empty token")

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise TokenInvalid("Malformed token header", details={"error": str(e)}) from e

        kid = header.get("kid")
        if not isinstance(kid, str) or not kid:
            raise TokenInvalid("Token missing key ID")

        if header.get("alg") not in ALLOWED_ALGORITHMS:
            raise TokenInvalid("Unsupported signing algorithm", details={"alg": header.get("alg")})

        issuer = issuer_url(pool_id, region)
        key_data = await self.jwks_client.get_key(issuer, kid)
        if not key_data:
            raise TokenInvalid("Signing key not found for token", details={"kid": kid})

        try:
            return jwt.decode(
                token,
                key_data,
                algorithms=ALLOWED_ALGORITHMS,
                audience=client_id,
                issuer=issuer,
                # The cookie carries only the id token, so at_hash cannot be checked.
                options={"verify_exp": True, "verify_aud": True, "verify_iss": True, "verify_at_hash": False},
            )
        except JWTError as e:
            raise TokenInvalid("JWT validation failed", details={"error": str(e)}) from e

    def _record(self, result: str) -> None:
        if self.metrics:
            self.metrics.record_token_verification(result)
