"""
Response dispatcher: turns one module request into one status/headers/body
triple.

    parse URL -> resolve module path -> validate method
        -> direct proxy                              (no `callback`)
        -> validate callback -> canonicalise -> HEAD fan-out
           -> evaluate cache -> [GET fan-out] -> package

There is no retry anywhere in the flow; failures of the fetch collaborator
propagate to the caller.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from shared.errors import (
    BundlerException,
    InvalidCallbackError,
    MalformedURLError,
    UnresolvedPathError,
    UnsupportedMethodError,
)
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from service_bundler.app.adapters.resource_fetcher import ResourceFetcher
from service_bundler.app.associators import Alias, Associator, IdentityAssociator, Member
from service_bundler.app.caching import (
    HEADER_WHITELIST,
    merge_headers,
    not_modified,
    reduce_statuses,
    select_headers,
)
from service_bundler.app.domain.redirect import REDIRECT_BODY, REDIRECT_STATUS, redirect_location
from service_bundler.app.domain.settings import ServerSettings
from service_bundler.app.packaging import package_bundle, validate_callback
from service_bundler.app.routing import ALLOWED_METHODS, RequestRouter, RoutedRequest

JAVASCRIPT_CONTENT_TYPE = "application/javascript; charset=utf-8"
TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

NOT_FOUND_BODY = "404: The requested resource could not be found."

# Client headers that are meaningful to the backend store
FORWARDED_REQUEST_HEADERS = ("if-modified-since", "cache-control")
# Headers for the unconditional GET fan-out
UNCONDITIONAL_REQUEST_HEADERS = ("user-agent", "accept", "cache-control")


@dataclass
class BundleResponse:
    """The status, headers and body emitted for one request."""

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None


NextHandler = Callable[[], Awaitable[Any]]


class BundleDispatcher:
    """Serves modules and module bundles from a backend resource store."""

    def __init__(
        self,
        settings: ServerSettings,
        fetcher: ResourceFetcher,
        associator: Optional[Associator] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.settings = settings
        self.fetcher = fetcher
        self.associator = associator or IdentityAssociator()
        self.metrics = metrics
        self.router = RequestRouter(settings)
        self.logger = get_logger("bundler.dispatcher")

    async def handle(
        self,
        raw_url: str,
        method: str,
        headers: Optional[Mapping[str, str]] = None,
        next_handler: Optional[NextHandler] = None,
    ) -> Any:
        """
        Respond to one request.

        Returns a `BundleResponse`, or whatever `next_handler` returns when
        the path lies outside both namespaces.
        """
        client_headers = {name.lower(): value for name, value in (headers or {}).items()}

        try:
            routed = self.router.route(raw_url, method)
        except UnresolvedPathError as exc:
            if next_handler is not None:
                return await next_handler()
            return self._emit(method, self._error_response(exc))
        except (MalformedURLError, UnsupportedMethodError) as exc:
            return self._emit(method, self._error_response(exc))

        request_headers = {"user-agent": self.settings.user_agent, "accept": "*/*"}
        request_headers.update(select_headers(client_headers, FORWARDED_REQUEST_HEADERS))
        conditions = dict(request_headers)
        if "if-none-match" in client_headers:
            conditions["etag"] = client_headers["if-none-match"]

        if not routed.wants_bundle:
            response = await self._proxy(routed, request_headers, conditions)
            return self._emit(routed.method, response)

        try:
            callback = validate_callback(routed.callback)
        except InvalidCallbackError as exc:
            return self._emit(routed.method, self._error_response(exc))

        response = await self._bundle(routed, callback, request_headers, conditions)
        return self._emit(routed.method, response)

    async def _proxy(self, routed: RoutedRequest, request_headers: Dict[str, str],
                     conditions: Dict[str, str]) -> BundleResponse:
        resource_uri = self.settings.resource_uri_for_module_path(routed.module_path)
        resource = await self.fetcher.request_uri(resource_uri, "GET", request_headers)

        status, body = resource.status, resource.content
        headers = select_headers(resource.headers, HEADER_WHITELIST)
        if status == 200:
            headers["content-type"] = JAVASCRIPT_CONTENT_TYPE
        elif status == 404:
            headers["content-type"] = TEXT_CONTENT_TYPE
            body = NOT_FOUND_BODY
        else:
            if not_modified(conditions, resource.headers):
                status = 304
            headers.pop("content-type", None)
            body = None

        self.logger.debug("Module proxied", module_path=routed.module_path, status=status)
        return BundleResponse(status, headers, body)

    async def _bundle(self, routed: RoutedRequest, callback: str, request_headers: Dict[str, str],
                      conditions: Dict[str, str]) -> BundleResponse:
        module_path = routed.module_path
        preferred_path = self.associator.preferred_path(module_path)
        if preferred_path != module_path:
            return self._redirect(routed, preferred_path)

        members = self.associator.associated_module_paths(module_path)
        fetched = [member for member in members if not isinstance(member, Alias)]
        resource_uris = [self.settings.resource_uri_for_module_path(member) for member in fetched]

        statuses, header_sets, _ = await self.fetcher.request_uris(resource_uris, "HEAD", request_headers)
        status = reduce_statuses(statuses)
        merged = merge_headers(*header_sets)

        if status == 304 or not_modified(conditions, merged):
            self._record_outcome("not_modified", members)
            return self._bundle_response(304, merged, conditions)

        if routed.method == "HEAD" and status is not None and status != 405:
            self._record_outcome("head", members)
            return self._bundle_response(status, merged, conditions)

        # HEAD was inconclusive or this is a GET: fetch full content
        get_headers = select_headers(request_headers, UNCONDITIONAL_REQUEST_HEADERS)
        statuses, header_sets, contents = await self.fetcher.request_uris(resource_uris, "GET", get_headers)
        merged = merge_headers(*header_sets)

        bundle = self._bundle_result(members, statuses, contents)
        self.logger.info(
            "Bundle packaged",
            module_path=module_path,
            members=len(bundle),
            missing=sum(1 for entry in bundle.values() if entry is None),
        )
        self._record_outcome("packaged", members)
        # Missing members are null-filled, so a packaged bundle is always complete
        status = 304 if reduce_statuses(statuses) == 304 else 200
        return self._bundle_response(status, merged, conditions, package_bundle(callback, bundle))

    @staticmethod
    def _bundle_result(members: List[Member], statuses: List[int],
                       contents: List[Optional[str]]) -> Dict[str, Any]:
        """Member -> body, `None` for non-200 fetches, or the alias itself."""
        fetched = iter(zip(statuses, contents))
        bundle: Dict[str, Any] = {}
        for member in members:
            if isinstance(member, Alias):
                bundle[member.alias] = member
                continue
            status, content = next(fetched)
            bundle[member] = content if status == 200 else None
        return bundle

    def _bundle_response(self, status: Optional[int], merged: Dict[str, str], conditions: Dict[str, str],
                         body: Optional[str] = None) -> BundleResponse:
        headers = select_headers(merged, HEADER_WHITELIST + ("etag",))
        headers["content-type"] = JAVASCRIPT_CONTENT_TYPE
        # JSONP needs a guard against content sniffing
        headers["x-content-type-options"] = "nosniff"

        if status == 304 or not_modified(conditions, merged):
            return BundleResponse(304, headers)
        return BundleResponse(status or 200, headers, body)

    def _redirect(self, routed: RoutedRequest, preferred_path: str) -> BundleResponse:
        location = redirect_location(self.settings, routed.path, preferred_path, routed.raw_query)
        self.logger.debug("Redirecting to canonical module path",
                          module_path=routed.module_path, preferred_path=preferred_path, location=location)
        if self.metrics:
            self.metrics.increment_counter("bundle_requests_total", outcome="redirect")
        return BundleResponse(
            REDIRECT_STATUS,
            {"content-type": TEXT_CONTENT_TYPE, "location": location},
            REDIRECT_BODY,
        )

    def _error_response(self, exc: BundlerException) -> BundleResponse:
        headers = {"content-type": TEXT_CONTENT_TYPE}
        if isinstance(exc, UnsupportedMethodError):
            headers["allow"] = ", ".join(ALLOWED_METHODS)
        self.logger.debug("Request rejected", code=exc.code, status=exc.status_code)
        return BundleResponse(exc.status_code, headers, f"{exc.status_code}: {exc.message}")

    def _record_outcome(self, outcome: str, members: List[Member]) -> None:
        if self.metrics:
            self.metrics.increment_counter("bundle_requests_total", outcome=outcome)
            self.metrics.observe_histogram("bundle_members", len(members))

    @staticmethod
    def _emit(method: str, response: BundleResponse) -> BundleResponse:
        # HEAD responses never carry a body
        if method.upper() == "HEAD":
            response.body = None
        return response
