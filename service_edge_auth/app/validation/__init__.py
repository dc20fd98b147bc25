"""
Session token validation.

Verifies the id token carried in the session cookie: RS256 signature against
the issuer's published keys, issuer, audience, and expiry. Any failure is
reported as a plain False to the gate.
"""

from .session_verifier import SessionVerifier, issuer_url

__all__ = ["SessionVerifier", "issuer_url"]
