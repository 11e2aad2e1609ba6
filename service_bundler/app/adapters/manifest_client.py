"""
Manifest client for bundle associations.

A manifest maps bundle names to their members:

    {
        "/app/main.js": ["/app/main.js", "/app/util.js", {"alias": "/app", "target": "/app/main.js"}],
        "jquery/dist/jquery.min.js": ["jquery/dist/jquery.min.js", {"alias": "jquery", "target": "jquery/dist/jquery.min.js"}]
    }

JSON is the default; YAML is accepted when the URI or content type says so.
"""

from typing import Any, List, Optional, Tuple
import json

import httpx
import yaml

from shared.errors import ConfigurationError, ManifestError
from shared.logging import get_logger
from service_bundler.app.adapters.resource_fetcher import ResourceFetcher
from service_bundler.app.associators import (
    Alias,
    AssociationTable,
    Associator,
    Member,
    SimpleAssociator,
    StaticAssociator,
)

YAML_SUFFIXES = (".yaml", ".yml")


def _reject_duplicate_keys(pairs: List[Tuple[str, Any]]) -> dict:
    result = {}
    for key, value in pairs:
        if key in result:
            raise ManifestError(f"bundle {key!r} already defined", details={"bundle": key})
        result[key] = value
    return result


def _member(entry: Any, bundle: str) -> Member:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict) and set(entry) == {"alias", "target"} \
            and isinstance(entry["alias"], str) and isinstance(entry["target"], str):
        return Alias(entry["alias"], entry["target"])
    raise ManifestError(f"invalid member {entry!r} in bundle {bundle!r}", details={"bundle": bundle})


def is_yaml(uri: str, content_type: Optional[str] = None) -> bool:
    if content_type and "yaml" in content_type.lower():
        return True
    return uri.split("?", 1)[0].lower().endswith(YAML_SUFFIXES)


def parse_manifest(text: str, yaml_format: bool = False) -> AssociationTable:
    """Parse and validate a manifest document into an association table."""
    try:
        if yaml_format:
            document = yaml.safe_load(text)
        else:
            document = json.loads(text, object_pairs_hook=_reject_duplicate_keys)
    except (ValueError, yaml.YAMLError) as exc:
        raise ManifestError(f"unreadable manifest: {exc}") from exc

    if not isinstance(document, dict):
        raise ManifestError("manifest must map bundle names to member lists")

    pairs = []
    for bundle, entries in document.items():
        if not isinstance(bundle, str) or not isinstance(entries, list):
            raise ManifestError(f"bundle {bundle!r} must list its members", details={"bundle": str(bundle)})
        pairs.append((bundle, [_member(entry, bundle) for entry in entries]))

    return AssociationTable.from_simple_mapping(pairs).validate()


class ManifestClient:
    """Loads manifests through the backend fetch collaborator."""

    def __init__(self, fetcher: ResourceFetcher, user_agent: str = "module-bundler"):
        self.fetcher = fetcher
        self.user_agent = user_agent
        self.logger = get_logger("bundler.manifest_client")

    async def fetch_table(self, manifest_uri: str) -> AssociationTable:
        response = await self.fetcher.request_uri(
            manifest_uri,
            "GET",
            {"user-agent": self.user_agent, "accept": "application/json, application/yaml, */*"},
        )
        if response.status != 200 or response.content is None:
            raise ManifestError(
                f"manifest request failed with status {response.status}",
                details={"uri": manifest_uri, "status_code": response.status},
            )
        return parse_manifest(
            response.content,
            yaml_format=is_yaml(manifest_uri, response.headers.get("content-type")),
        )

    async def load_associator(self, manifest_uri: Optional[str]) -> Associator:
        """
        Associator for a manifest URI.

        Without a manifest, or when it cannot be fetched or parsed, modules
        are bundled by naming convention instead.
        """
        if not manifest_uri:
            return SimpleAssociator()

        try:
            table = await self.fetch_table(manifest_uri)
        except (ConfigurationError, httpx.HTTPError, OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Manifest unavailable, using convention based bundles",
                                uri=manifest_uri, error=str(exc))
            return SimpleAssociator()

        self.logger.info("Manifest loaded", uri=manifest_uri, bundles=len(table.bundles))
        return StaticAssociator(table)
