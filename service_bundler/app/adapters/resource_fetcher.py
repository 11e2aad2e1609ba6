"""
Backend fetch collaborator.

The dispatcher only needs `(status, headers, content)` triples for HEAD and
GET requests against resource URIs. `HTTPResourceFetcher` provides them for
`http`, `https` and `file` URIs; tests and embedders can substitute any
`ResourceFetcher`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import unquote, urlsplit
import asyncio

import httpx

from shared.logging import get_logger
from shared.metrics import MetricsCollector


@dataclass
class ResourceResponse:
    """Status, lower-cased headers and body of one backend response."""

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    content: Optional[str] = None


class ResourceFetcher(ABC):
    """Issues HEAD/GET requests against backend resource URIs."""

    @abstractmethod
    async def request_uri(self, uri: str, method: str, headers: Mapping[str, str]) -> ResourceResponse:
        """Fetch one resource; transport failures propagate."""

    async def request_uris(
        self,
        uris: Sequence[str],
        method: str,
        headers: Mapping[str, str],
    ) -> Tuple[List[int], List[Dict[str, str]], List[Optional[str]]]:
        """
        Fetch every URI concurrently and join the results in URI order.

        The first failure cancels the fetches still in flight and is
        re-raised unchanged.
        """
        tasks = [asyncio.ensure_future(self.request_uri(uri, method, headers)) for uri in uris]
        try:
            responses = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            # Wait for the cancellations so no sibling outlives the request
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        return (
            [response.status for response in responses],
            [response.headers for response in responses],
            [response.content for response in responses],
        )

    async def close(self) -> None:
        """Release transport resources."""


class HTTPResourceFetcher(ResourceFetcher):
    """`ResourceFetcher` backed by a shared `httpx.AsyncClient`."""

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.logger = get_logger("bundler.resource_fetcher")
        self.metrics = metrics
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=False)

    async def request_uri(self, uri: str, method: str, headers: Mapping[str, str]) -> ResourceResponse:
        if urlsplit(uri).scheme == "file":
            response = await self._request_file(uri, method)
        else:
            response = await self._request_http(uri, method, headers)

        self.logger.debug("Backend resource fetched", uri=uri, method=method, status=response.status)
        if self.metrics:
            self.metrics.increment_counter("backend_fetches_total", method=method, status=str(response.status))
        return response

    async def _request_http(self, uri: str, method: str, headers: Mapping[str, str]) -> ResourceResponse:
        response = await self._client.request(method, uri, headers=dict(headers))
        return ResourceResponse(
            status=response.status_code,
            headers={name.lower(): value for name, value in response.headers.items()},
            content=response.text if method == "GET" else None,
        )

    async def _request_file(self, uri: str, method: str) -> ResourceResponse:
        if method not in ("HEAD", "GET"):
            return ResourceResponse(status=405, headers={"allow": "HEAD, GET"})

        path = Path(unquote(urlsplit(uri).path))
        if not path.is_file():
            return ResourceResponse(status=404)

        modified = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        headers = {
            "date": format_datetime(datetime.now(timezone.utc), usegmt=True),
            "last-modified": format_datetime(modified, usegmt=True),
            "content-type": "application/javascript; charset=utf-8",
        }
        content = None
        if method == "GET":
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        return ResourceResponse(status=200, headers=headers, content=content)

    async def close(self) -> None:
        await self._client.aclose()
