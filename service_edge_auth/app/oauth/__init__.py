"""
Authorization-code flow helpers.
"""

from .flow import OAuthClient, TokenSet, build_login_url, build_logout_url

__all__ = ["OAuthClient", "TokenSet", "build_login_url", "build_logout_url"]
