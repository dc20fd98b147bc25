"""
Shared error handling for the hosting edge auth gate.

Every error carries a stable ``code`` so operators can grep logs for a class
of failure. None of these errors ever reaches a viewer verbatim: the gate
maps each one to a redirect or a synthesized page.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class EdgeAuthError(Exception):
    """Base exception for the edge auth gate."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details,
        )


class ConfigUnavailable(EdgeAuthError):
    """The secret store could not be reached or held no value."""

    def __init__(self, message: str = "Auth config unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIG_UNAVAILABLE", message, details)


class ConfigMalformed(EdgeAuthError):
    """The stored config did not parse into the expected shape."""

    def __init__(self, message: str = "Auth config malformed", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIG_MALFORMED", message, details)


class TokenInvalid(EdgeAuthError):
    """Session token failed signature, issuer, audience or expiry checks."""

    def __init__(self, message: str = "Token invalid", details: Optional[Dict[str, Any]] = None):
        super().__init__("TOKEN_INVALID", message, details)


class ExchangeFailed(EdgeAuthError):
    """Authorization code could not be exchanged for tokens."""

    def __init__(self, message: str = "Token exchange failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXCHANGE_FAILED", message, details)


class MalformedState(EdgeAuthError):
    """OAuth state parameter could not be decoded."""

    def __init__(self, message: str = "Malformed redirect state", details: Optional[Dict[str, Any]] = None):
        super().__init__("MALFORMED_STATE", message, details)


class ExternalServiceError(EdgeAuthError):
    """External service errors."""

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)
