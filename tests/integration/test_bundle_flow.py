"""
Integration tests for the bundle flow against the mock module store.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from mocks.module_store.server import MockModuleStore
from shared.config import get_config
from service_bundler.app.adapters import HTTPResourceFetcher
from service_bundler.app.main import create_app

MANIFEST = (
    '{"/app/main.js": ["/app/main.js", "/app/util.js", {"alias": "/app", "target": "/app/main.js"}],'
    ' "/app/broken.js": ["/app/broken.js", "/app/gone.js"]}'
)


class TestBundleFlow:
    """Integration tests for bundler and module store."""

    @pytest.fixture
    def store(self):
        """Mock module store with a small application."""
        store = MockModuleStore()
        store.add_module("root/app/main.js", "require('./util');")
        store.add_module("root/app/util.js", "exports.answer = 42;")
        store.add_module("root/app/broken.js", "require('./gone');")
        store.add_module("library/jquery.js", "module.exports = window.jQuery;")
        store.add_module("manifest.json", MANIFEST, content_type="application/json")
        return store

    def make_client(self, store):
        fetcher = HTTPResourceFetcher(transport=httpx.ASGITransport(app=store.app))
        config = get_config(
            "bundler", 8450,
            root_uri="http://store.test/root/",
            library_uri="http://store.test/library/",
            manifest_uri="http://store.test/manifest.json",
        )
        return TestClient(create_app(config, fetcher=fetcher))

    def test_direct_proxy(self, store):
        """Test a library module passed straight through."""
        with self.make_client(store) as client:
            response = client.get("/library/jquery.js")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/javascript; charset=utf-8"
        assert response.headers["cache-control"] == "public, max-age=300"
        assert response.text == "module.exports = window.jQuery;"

    def test_member_redirects_to_bundle(self, store):
        """Test canonicalisation through the manifest."""
        with self.make_client(store) as client:
            response = client.get("/root/app/util.js?callback=require.define&v=1", follow_redirects=False)

        assert response.status_code == 307
        assert response.headers["location"] == "main.js?callback=require.define&v=1"

    def test_bundle(self, store):
        """Test a packaged bundle with an alias entry."""
        with self.make_client(store) as client:
            response = client.get("/root/app/main.js?callback=require.define")

        assert response.status_code == 200
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["cache-control"] == "max-age=300"
        assert response.headers["etag"].startswith('W/"')
        assert "exports.answer = 42;" in response.text
        assert '"/app": "/app/main.js",\n' in response.text
        assert ("HEAD", "root/app/main.js") in store.requests
        assert ("GET", "root/app/util.js") in store.requests

    def test_bundle_with_missing_member(self, store):
        """Test null entries for members the store does not have."""
        with self.make_client(store) as client:
            response = client.get("/root/app/broken.js?callback=require.define")

        assert response.status_code == 200
        assert '"/app/gone.js": null,\n' in response.text

    def test_if_modified_since(self, store):
        """Test revalidation of an unchanged bundle."""
        with self.make_client(store) as client:
            response = client.get(
                "/root/app/main.js?callback=require.define",
                headers={"If-Modified-Since": "Tue, 02 Jan 2024 00:00:00 GMT"},
            )

        assert response.status_code == 304
        assert response.content == b""
        assert ("GET", "root/app/main.js") not in store.requests

    def test_if_none_match(self, store):
        """Test revalidation against the merged etag."""
        with self.make_client(store) as client:
            etag = client.get("/root/app/main.js?callback=require.define").headers["etag"]
            response = client.get("/root/app/main.js?callback=require.define", headers={"If-None-Match": etag})

        assert response.status_code == 304

    def test_store_without_head(self):
        """Test the GET fallback when the store rejects HEAD."""
        store = MockModuleStore(head_supported=False)
        store.add_module("root/app/main.js", "exports.main = true;")
        store.add_module("manifest.json", '{"/app/main.js": ["/app/main.js"]}')

        with self.make_client(store) as client:
            head = client.head("/root/app/main.js?callback=cb")
            get = client.get("/root/app/main.js?callback=cb")

        assert head.status_code == 200
        assert head.content == b""
        assert get.status_code == 200
        assert "exports.main = true;" in get.text
