"""
Packaging package: JSONP bundle payloads.
"""

from .bundle import (
    CALLBACK_PATTERN,
    KEY_EXCEPTIONS,
    escape_non_alphanumerics,
    package_bundle,
    validate_callback,
)

__all__ = [
    "CALLBACK_PATTERN",
    "KEY_EXCEPTIONS",
    "escape_non_alphanumerics",
    "package_bundle",
    "validate_callback",
]
