"""
Module Bundler Gateway service.
"""

from typing import Dict, Optional
import re

from fastapi import Request, Response

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from service_bundler.app.adapters import HTTPResourceFetcher, ManifestClient, ResourceFetcher
from service_bundler.app.associators import Associator
from service_bundler.app.domain.dispatcher import BundleDispatcher, BundleResponse
from service_bundler.app.domain.settings import ServerSettings, has_placeholders

SERVICE_NAME = "bundler"
DEFAULT_PORT = 8450

ROUTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

PLACEHOLDER_SEGMENT = re.compile(r":(\w+)")


def route_template(prefix: str) -> str:
    """FastAPI route for everything below a namespace prefix."""
    return PLACEHOLDER_SEGMENT.sub(r"{\1}", prefix) + "{module_path:path}"


def raw_request_target(request: Request) -> str:
    """Path and query exactly as the client sent them."""
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    query = request.scope.get("query_string", b"").decode("latin-1")
    return f"{path}?{query}" if query else path


class BundlerService(BaseService):
    """Bundling gateway in front of a module resource store."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        fetcher: Optional[ResourceFetcher] = None,
        associator: Optional[Associator] = None,
    ):
        super().__init__(SERVICE_NAME, DEFAULT_PORT, config or get_config(SERVICE_NAME, DEFAULT_PORT))
        self.settings = ServerSettings.from_config(self.config)
        self.fetcher = fetcher or HTTPResourceFetcher(
            timeout=self.config.request_timeout,
            metrics=self.metrics,
        )
        self.manifest_client = ManifestClient(self.fetcher, self.settings.user_agent)
        self.associator = associator
        self._per_request_manifest = has_placeholders(self.settings.manifest_uri)

        @self.app.on_event("startup")
        async def _startup():
            if self.associator is None and not self._per_request_manifest:
                self.associator = await self.manifest_client.load_associator(self.settings.manifest_uri)

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.fetcher.close()

        self._setup_bundler_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.bundler_service = self

    async def _check_dependencies(self) -> Dict[str, str]:
        if self._per_request_manifest:
            associations = "per-request"
        elif self.associator is None:
            associations = "not loaded"
        else:
            associations = type(self.associator).__name__
        return {"associations": associations}

    async def _associator_for(self, settings: ServerSettings) -> Optional[Associator]:
        if self._per_request_manifest and self.associator is None:
            return await self.manifest_client.load_associator(settings.manifest_uri)
        return self.associator

    def _setup_bundler_routes(self):
        """Register one catch-all route per configured namespace."""

        async def serve_module(request: Request):
            """Serve a module, a bundle, or a redirect to the canonical path."""
            values = {key: value for key, value in request.path_params.items() if key != "module_path"}
            settings = self.settings.interpolate(values)
            dispatcher = BundleDispatcher(
                settings,
                self.fetcher,
                associator=await self._associator_for(settings),
                metrics=self.metrics,
            )
            result = await dispatcher.handle(raw_request_target(request), request.method, request.headers)
            return self._to_response(result, request.method)

        for prefix in (self.settings.root_path, self.settings.library_path):
            if prefix:
                self.app.add_api_route(
                    route_template(prefix),
                    serve_module,
                    methods=ROUTED_METHODS,
                    include_in_schema=False,
                )

    @staticmethod
    def _to_response(result: BundleResponse, method: str) -> Response:
        response = Response(
            content=result.body or b"",
            status_code=result.status,
            headers=result.headers,
        )
        # The empty HEAD body says nothing about the length of the GET body
        if method.upper() == "HEAD" and "content-length" in response.headers:
            del response.headers["content-length"]
        return response


def create_app(config: Optional[ServiceConfig] = None, fetcher: Optional[ResourceFetcher] = None,
               associator: Optional[Associator] = None):
    """Create FastAPI application."""
    service = BundlerService(config=config, fetcher=fetcher, associator=associator)
    return service.app


if __name__ == "__main__":
    service = BundlerService()
    service.run()
