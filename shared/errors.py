"""
Shared error handling for the module bundler gateway.
"""

from typing import Dict, Any, Optional

from opentelemetry import trace
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class BundlerException(Exception):
    """Base exception for bundler services."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class MalformedURLError(BundlerException):
    """The request URL could not be parsed."""

    status_code = 422

    def __init__(self, message: str = "Malformed URL", details: Optional[Dict[str, Any]] = None):
        super().__init__("MALFORMED_URL", message, details)


class UnresolvedPathError(BundlerException):
    """The request path is outside of every configured namespace."""

    status_code = 404

    def __init__(self, message: str = "The requested resource could not be found.",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("UNRESOLVED_PATH", message, details)


class UnsupportedMethodError(BundlerException):
    """Only HEAD and GET are served."""

    status_code = 405

    def __init__(self, message: str = "Only the HEAD or GET methods are allowed.",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("UNSUPPORTED_METHOD", message, details)


class InvalidCallbackError(BundlerException):
    """The JSONP `callback` parameter is empty or malformed."""

    status_code = 400

    def __init__(self, message: str = "Invalid callback", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_CALLBACK", message, details)


class ConfigurationError(BundlerException):
    """Configuration-related errors."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None,
                 code: str = "CONFIGURATION_ERROR"):
        super().__init__(code, message, details)


class AmbiguousNamespaceError(ConfigurationError):
    """Root and library namespace prefixes nest."""

    def __init__(self, root_path: str, library_path: str):
        super().__init__(
            f"The paths {root_path!r} and {library_path!r} are ambiguous.",
            details={"root_path": root_path, "library_path": library_path},
            code="AMBIGUOUS_NAMESPACE"
        )


class AliasCycleError(ConfigurationError):
    """An alias chain revisits a path."""

    def __init__(self, module_path: str, chain: Optional[list] = None):
        super().__init__(
            f"alias loop while resolving {module_path!r}",
            details={"module_path": module_path, "chain": chain or []},
            code="ALIAS_CYCLE"
        )


class ManifestError(ConfigurationError):
    """A bundle manifest is missing, unreadable or inconsistent."""

    def __init__(self, message: str = "Invalid manifest", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details, code="MANIFEST_ERROR")
