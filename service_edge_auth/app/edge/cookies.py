"""
Session cookie helpers.
"""

from typing import Dict, Optional


def parse_cookie_header(header: Optional[str]) -> Dict[str, str]:
    """Split a ``Cookie`` header into name/value pairs.

    Values keep any ``=`` they contain (JWT padding never appears, but other
    cookies on the base domain may use it). Later duplicates of a name do not
    override the first.
    """
    cookies: Dict[str, str] = {}
    if not header:
        return cookies

    for part in header.split(";"):
        name, sep, value = part.strip().partition("=")
        if name and sep and name not in cookies:
            cookies[name] = value
    return cookies


def build_session_cookie(name: str, value: str, domain: str, max_age: int = 3600) -> str:
    return (
        f"{name}={value}; Domain={domain}; Path=/; "
        f"Secure; HttpOnly; SameSite=Lax; Max-Age={max_age}"
    )


def build_expired_cookie(name: str, domain: str) -> str:
    return build_session_cookie(name, "", domain, max_age=0)
