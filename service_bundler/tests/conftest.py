"""
Shared fixtures for bundler unit tests.
"""

from typing import Dict, Mapping, Optional

import pytest

from service_bundler.app.adapters import ResourceFetcher, ResourceResponse
from service_bundler.app.domain.settings import ServerSettings


class FakeResourceFetcher(ResourceFetcher):
    """In-memory backend keyed by resource URI."""

    def __init__(self):
        self.responses: Dict[str, ResourceResponse] = {}
        self.head_responses: Dict[str, ResourceResponse] = {}
        self.calls = []
        self.closed = False

    def add(self, uri: str, content: str, status: int = 200, headers: Optional[Mapping[str, str]] = None):
        self.responses[uri] = ResourceResponse(status, dict(headers or {}), content)

    async def request_uri(self, uri, method, headers):
        self.calls.append((method, uri, dict(headers)))
        if method == "HEAD" and uri in self.head_responses:
            return self.head_responses[uri]

        response = self.responses.get(uri)
        if response is None:
            return ResourceResponse(404, {}, "Not found")
        if method == "HEAD":
            return ResourceResponse(response.status, dict(response.headers))
        return response

    async def close(self):
        self.closed = True

    def requested(self, method: str):
        return [uri for call_method, uri, _ in self.calls if call_method == method]


@pytest.fixture
def fetcher():
    """Empty fake backend."""
    return FakeResourceFetcher()


@pytest.fixture
def settings():
    """Settings with both namespaces configured."""
    return ServerSettings.create(
        root_uri="http://store.example/root",
        library_uri="http://store.example/library/",
    )
