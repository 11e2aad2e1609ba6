"""
Adapters package for the Bundler Service.

Contains the I/O collaborators of the dispatcher:

- resource_fetcher: HEAD/GET against backend resource URIs (httpx, file:)
- manifest_client: bundle manifests turned into associators

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .resource_fetcher import ResourceFetcher, ResourceResponse, HTTPResourceFetcher
from .manifest_client import ManifestClient, parse_manifest

__all__ = [
    "ResourceFetcher",
    "ResourceResponse",
    "HTTPResourceFetcher",
    "ManifestClient",
    "parse_manifest",
]
