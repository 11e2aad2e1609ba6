"""
Immutable server settings for the bundler dispatcher.
"""

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional
from urllib.parse import quote, urlsplit, urlunsplit
import re

from shared.errors import AmbiguousNamespaceError, ConfigurationError


VALID_URI_SCHEMES = ("file", "http", "https")

PLACEHOLDER_PATTERN = re.compile(r"(/)?:(\w+)")


def trailing_slash(path: Optional[str]) -> Optional[str]:
    if path and not path.endswith("/"):
        return f"{path}/"
    return path


def leading_slash(path: Optional[str]) -> Optional[str]:
    if path and not path.startswith("/"):
        return f"/{path}"
    return path


def validate_uri(uri: str) -> None:
    """Reject backend URIs the fetch collaborator cannot serve."""
    scheme = urlsplit(uri).scheme
    if scheme not in VALID_URI_SCHEMES:
        raise ConfigurationError(f"Invalid URI: {uri!r}.", details={"uri": uri})


def interpolate_path(path: Optional[str], values: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Replace `:name` placeholders with URL-encoded values."""
    if not path:
        return path
    values = values or {}

    def _substitute(match: "re.Match[str]") -> str:
        slash, key = match.group(1) or "", match.group(2)
        return slash + quote(str(values.get(key, "")), safe="")

    return PLACEHOLDER_PATTERN.sub(_substitute, path)


def interpolate_url(url: Optional[str], values: Optional[Mapping[str, Any]]) -> Optional[str]:
    """Interpolate placeholders in the path component of a URL only."""
    if not url:
        return url
    parts = urlsplit(url)
    return urlunsplit(parts._replace(path=interpolate_path(parts.path, values)))


def has_placeholders(value: Optional[str]) -> bool:
    return bool(value) and PLACEHOLDER_PATTERN.search(value) is not None


@dataclass(frozen=True)
class ServerSettings:
    """
    Namespace prefixes, backend URIs and redirect base for one dispatcher.

    Instances are built through `create()`, which normalises prefixes to
    `/prefix/`, adds trailing slashes to URIs and validates that the root
    and library prefixes do not nest.
    """

    root_uri: Optional[str] = None
    root_path: Optional[str] = None
    library_uri: Optional[str] = None
    library_path: Optional[str] = None
    base_uri: Optional[str] = None
    manifest_uri: Optional[str] = None
    user_agent: str = "module-bundler"

    @classmethod
    def create(
        cls,
        root_uri: Optional[str] = None,
        root_path: Optional[str] = "root",
        library_uri: Optional[str] = None,
        library_path: Optional[str] = "library",
        base_uri: Optional[str] = None,
        manifest_uri: Optional[str] = None,
        user_agent: str = "module-bundler",
    ) -> "ServerSettings":
        resolved_root_path = None
        if root_uri:
            root_uri = trailing_slash(root_uri)
            validate_uri(root_uri)
            resolved_root_path = leading_slash(trailing_slash(
                "root" if root_path is None else str(root_path)
            )) or "/"

        resolved_library_path = None
        if library_uri:
            library_uri = trailing_slash(library_uri)
            validate_uri(library_uri)
            resolved_library_path = leading_slash(trailing_slash(
                "library" if library_path is None else str(library_path)
            )) or "/"

        if (resolved_root_path and resolved_library_path and (
                resolved_root_path.startswith(resolved_library_path) or
                resolved_library_path.startswith(resolved_root_path))):
            raise AmbiguousNamespaceError(resolved_root_path, resolved_library_path)

        return cls(
            root_uri=root_uri,
            root_path=resolved_root_path,
            library_uri=library_uri,
            library_path=resolved_library_path,
            base_uri=trailing_slash(base_uri) if base_uri else None,
            manifest_uri=manifest_uri,
            user_agent=user_agent,
        )

    @classmethod
    def from_config(cls, config: Any) -> "ServerSettings":
        """Build settings from a `shared.config.BaseConfig`."""
        return cls.create(
            root_uri=config.root_uri,
            root_path=config.root_path,
            library_uri=config.library_uri,
            library_path=config.library_path,
            base_uri=config.base_uri,
            manifest_uri=config.manifest_uri,
            user_agent=config.user_agent,
        )

    @property
    def is_templated(self) -> bool:
        return any(has_placeholders(value) for value in (
            self.root_path, self.root_uri, self.library_path, self.library_uri,
        ))

    def interpolate(self, values: Optional[Mapping[str, Any]]) -> "ServerSettings":
        """Settings for one request, with route parameters substituted."""
        if not values:
            return self
        return replace(
            self,
            root_path=interpolate_path(self.root_path, values),
            root_uri=interpolate_url(self.root_uri, values),
            library_path=interpolate_path(self.library_path, values),
            library_uri=interpolate_url(self.library_uri, values),
            manifest_uri=interpolate_url(self.manifest_uri, values),
        )

    def resource_uri_for_module_path(self, module_path: str) -> str:
        """Map a module path onto the backend store of its namespace."""
        if module_path.startswith("/"):
            if not self.root_uri:
                raise ConfigurationError("No root namespace is configured.")
            return self.root_uri + module_path[1:]
        if not self.library_uri:
            raise ConfigurationError("No library namespace is configured.")
        return self.library_uri + module_path
