"""
Routing package: request classification and path arithmetic.
"""

from .paths import normalize_path, relative_path
from .router import RequestRouter, RoutedRequest, ALLOWED_METHODS, BUNDLE_PARAMETER

__all__ = [
    "normalize_path",
    "relative_path",
    "RequestRouter",
    "RoutedRequest",
    "ALLOWED_METHODS",
    "BUNDLE_PARAMETER",
]
