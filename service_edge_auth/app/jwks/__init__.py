"""
JWKS client package.

Contains logic for retrieving and caching the identity provider's JSON Web
Key Sets, keyed by issuer.

Key points:
- Keys are cached for the process lifetime.
- An unknown kid triggers at most one refetch per cooldown window.
"""
