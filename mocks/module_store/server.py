"""
Mock module store serving script modules over HTTP.

Stands in for the backend resource store during local runs and integration
tests: every module is addressed by its path, answers GET and (optionally)
HEAD, and honours `If-Modified-Since`.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Dict, Optional
import hashlib

from fastapi import FastAPI, Request, Response

from shared.logging import get_logger


@dataclass
class MockModule:
    """A stored module body and its modification time."""
    body: str
    last_modified: datetime = field(default_factory=lambda: datetime(2024, 1, 1, tzinfo=timezone.utc))
    content_type: str = "application/javascript"
    max_age: int = 300

    @property
    def etag(self) -> str:
        return '"' + hashlib.sha1(self.body.encode("utf-8")).hexdigest() + '"'


class MockModuleStore:
    """Mock module store implementation."""

    def __init__(self, modules: Optional[Dict[str, MockModule]] = None, head_supported: bool = True):
        self.logger = get_logger("mock.module_store")
        self.app = FastAPI(title="Mock Module Store", version="1.0.0")
        self.modules: Dict[str, MockModule] = dict(modules or {})
        self.head_supported = head_supported
        self.requests = []

        self._setup_routes()

    def add_module(self, path: str, body: str, **kwargs) -> MockModule:
        module = MockModule(body=body, **kwargs)
        self.modules[path.lstrip("/")] = module
        return module

    def _setup_routes(self):
        """Set up mock store routes."""

        @self.app.api_route("/{path:path}", methods=["GET", "HEAD"])
        async def serve(path: str, request: Request):
            """Serve a stored module."""
            self.requests.append((request.method, path))

            if request.method == "HEAD" and not self.head_supported:
                return Response(status_code=405, headers={"allow": "GET"})

            module = self.modules.get(path)
            if module is None:
                return Response(status_code=404, content="Not found", media_type="text/plain")

            headers = {
                "date": format_datetime(datetime.now(timezone.utc), usegmt=True),
                "last-modified": format_datetime(module.last_modified, usegmt=True),
                "cache-control": f"public, max-age={module.max_age}",
                "etag": module.etag,
            }

            since = request.headers.get("if-modified-since")
            if since:
                try:
                    if module.last_modified <= parsedate_to_datetime(since):
                        return Response(status_code=304, headers=headers)
                except (TypeError, ValueError):
                    self.logger.debug("Ignoring unparseable If-Modified-Since", value=since)

            if request.method == "HEAD":
                return Response(status_code=200, headers=headers, media_type=module.content_type)
            return Response(content=module.body, status_code=200, headers=headers, media_type=module.content_type)


def create_app():
    """Create mock module store application."""
    store = MockModuleStore()
    store.add_module("root/app/main.js", "require('./util');\n")
    store.add_module("root/app/util.js", "exports.answer = 42;\n")
    store.add_module("library/jquery.js", "module.exports = window.jQuery;\n")
    store.add_module(
        "manifest.json",
        '{"/app/main.js": ["/app/main.js", "/app/util.js", {"alias": "/app", "target": "/app/main.js"}]}',
        content_type="application/json",
    )
    return store.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8460)
