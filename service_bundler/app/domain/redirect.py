"""
Redirects from requested module paths to their canonical form.
"""

from shared.errors import ConfigurationError
from service_bundler.app.domain.settings import ServerSettings
from service_bundler.app.routing.paths import relative_path

REDIRECT_STATUS = 307

REDIRECT_BODY = "307: Resource moved temporarily."


def location_for_module_path(settings: ServerSettings, module_path: str) -> str:
    """Public path of a module inside its namespace."""
    if module_path.startswith("/"):
        prefix, relative = settings.root_path, module_path[1:]
    else:
        prefix, relative = settings.library_path, module_path
    if prefix is None:
        raise ConfigurationError(f"No namespace is configured for {module_path!r}.")
    return prefix + relative


def redirect_location(settings: ServerSettings, request_path: str, preferred_path: str,
                      raw_query: str = "") -> str:
    """
    Location header for a request whose module path is not canonical.

    Absolute locations are only produced when a base URI is configured;
    otherwise the location is relative to the requesting path. The query
    string is carried over unchanged.
    """
    location = location_for_module_path(settings, preferred_path)
    if settings.base_uri:
        location = settings.base_uri + location.lstrip("/")
    else:
        location = relative_path(request_path, location)

    if raw_query:
        location = f"{location}?{raw_query}"
    return location
