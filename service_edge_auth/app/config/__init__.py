"""
Config bundle loading.

The identity-provider settings (domain, client credentials, pool, callback
URL) live in the parameter store as one JSON value. They are fetched on the
first request and cached for the life of the execution context.
"""

from .loader import ConfigBundle, ConfigLoader

__all__ = ["ConfigBundle", "ConfigLoader"]
