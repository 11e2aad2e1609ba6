"""
Request classification: URL parsing, namespace resolution and method checks.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, urlsplit

from shared.errors import MalformedURLError, UnresolvedPathError, UnsupportedMethodError
from service_bundler.app.domain.settings import ServerSettings
from service_bundler.app.routing.paths import normalize_path


ALLOWED_METHODS = ("HEAD", "GET")

BUNDLE_PARAMETER = "callback"


@dataclass(frozen=True)
class RoutedRequest:
    """A request resolved to a module path inside one namespace."""

    method: str
    path: str
    module_path: str
    raw_query: str = ""
    query: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @property
    def query_params(self) -> Dict[str, List[str]]:
        params: Dict[str, List[str]] = {}
        for key, value in self.query:
            params.setdefault(key, []).append(value)
        return params

    @property
    def wants_bundle(self) -> bool:
        return BUNDLE_PARAMETER in self.query_params

    @property
    def callback(self) -> Optional[str]:
        values = self.query_params.get(BUNDLE_PARAMETER)
        return values[0] if values else None


class RequestRouter:
    """Maps raw request targets onto module paths of the configured namespaces."""

    def __init__(self, settings: ServerSettings):
        self.settings = settings

    def parse(self, raw_url: str) -> Tuple[str, str, Tuple[Tuple[str, str], ...]]:
        """Split a request target into normalised path, raw query and parameters."""
        try:
            if raw_url.startswith("/"):
                # Origin-form target; urlsplit would read "//x/y" as a host
                path, _, raw_query = raw_url.partition("#")[0].partition("?")
            else:
                parts = urlsplit(raw_url)
                path, raw_query = parts.path, parts.query
            query = tuple(parse_qsl(raw_query, keep_blank_values=True, errors="strict"))
        except ValueError as exc:
            raise MalformedURLError(details={"url": raw_url, "error": str(exc)}) from exc

        if not path.startswith("/"):
            raise MalformedURLError(details={"url": raw_url})
        return normalize_path(path), raw_query, query

    def module_path_for(self, path: str) -> str:
        """Strip the root or library prefix off a normalised path."""
        settings = self.settings
        module_path = None
        if settings.root_uri and settings.root_path and path.startswith(settings.root_path):
            module_path = "/" + path[len(settings.root_path):]
        elif settings.library_uri and settings.library_path and path.startswith(settings.library_path):
            module_path = path[len(settings.library_path):]

        if not module_path:
            raise UnresolvedPathError(details={"path": path})
        return module_path

    def route(self, raw_url: str, method: str) -> RoutedRequest:
        path, raw_query, query = self.parse(raw_url)
        module_path = self.module_path_for(path)

        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise UnsupportedMethodError(details={"method": method})

        return RoutedRequest(
            method=method,
            path=path,
            module_path=module_path,
            raw_query=raw_query,
            query=query,
        )
