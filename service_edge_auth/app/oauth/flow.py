"""
OAuth2 authorization-code flow against the identity provider's hosted UI.
"""

from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, Field, ValidationError

from shared.errors import ExchangeFailed
from shared.logging import get_logger
from shared.metrics import MetricsCollector

LOGIN_SCOPES = ("openid", "email")

# IdP error bodies are logged for operators, truncated to keep log lines sane.
MAX_LOGGED_BODY = 512


class TokenSet(BaseModel):
    """Tokens returned by a successful code exchange."""

    id_token: str = Field(min_length=1)
    access_token: str = Field(min_length=1)
    refresh_token: Optional[str] = None


def build_login_url(idp_domain: str, client_id: str, callback_url: str, state: str) -> str:
    """Hosted-login URL that sends the viewer back to ``callback_url`` with a code."""
    params = urlencode({
        "client_id": client_id,
        "response_type": "code",
        "scope": " ".join(LOGIN_SCOPES),
        "redirect_uri": callback_url,
        "state": state,
    })
    return f"https://{idp_domain}/login?{params}"


def build_logout_url(idp_domain: str, client_id: str, logout_uri: str) -> str:
    """Hosted-logout URL that ends the IdP session and returns to ``logout_uri``."""
    params = urlencode({
        "client_id": client_id,
        "logout_uri": logout_uri,
    })
    return f"https://{idp_domain}/logout?{params}"


class OAuthClient:
    """Server-side client for the identity provider's token endpoint."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        *,
        http_timeout: float = 5.0,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.metrics = metrics
        self.logger = get_logger("edge_auth.oauth")
        self._client = client or httpx.AsyncClient(timeout=http_timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def exchange_code(
        self,
        code: str,
        callback_url: str,
        idp_domain: str,
        client_id: str,
        client_secret: str,
    ) -> Optional[TokenSet]:
        """Exchange an authorization code for tokens.

        Returns None on any failure. The caller redirects the viewer to the
        site root; the IdP's error detail only goes to the logs.
        """
        try:
            tokens = await self._request_tokens(code, callback_url, idp_domain, client_id, client_secret)
        except ExchangeFailed as e:
            self._record("failed")
            self.logger.error("Token exchange failed", code=e.code, error=e.message, details=e.details)
            return None

        self._record("ok")
        return tokens

    async def _request_tokens(
        self,
        code: str,
        callback_url: str,
        idp_domain: str,
        client_id: str,
        client_secret: str,
    ) -> TokenSet:
        url = f"https://{idp_domain}/oauth2/token"
        try:
            response = await self._client.post(
                url,
                auth=httpx.BasicAuth(client_id, client_secret),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": callback_url,
                },
            )
        except httpx.HTTPError as e:
            raise ExchangeFailed("Token endpoint unreachable", details={"url": url, "error": str(e)}) from e

        if not response.is_success:
            raise ExchangeFailed(
                f"Token endpoint returned {response.status_code}",
                details={"status_code": response.status_code, "body": response.text[:MAX_LOGGED_BODY]},
            )

        try:
            return TokenSet.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ExchangeFailed("Unexpected token response shape", details={"error": str(e)}) from e

    def _record(self, result: str) -> None:
        if self.metrics:
            self.metrics.record_token_exchange(result)
