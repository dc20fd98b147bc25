"""
Tenant routing from Host header to origin path prefix.
"""

from .router import PathRouter, RoutedPath

__all__ = ["PathRouter", "RoutedPath"]
