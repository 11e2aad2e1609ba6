"""
Unit tests for conditional request evaluation and header merging.
"""

import hashlib

import pytest

from service_bundler.app.caching import merge_headers, not_modified, reduce_statuses, select_headers

JAN_1 = "Mon, 01 Jan 2024 00:00:00 GMT"
JAN_2 = "Tue, 02 Jan 2024 00:00:00 GMT"
JAN_3 = "Wed, 03 Jan 2024 00:00:00 GMT"


class TestMergeHeaders:
    """Test cases for merge_headers."""

    @pytest.fixture
    def header_sets(self):
        """Headers of two bundle members."""
        return [
            {"date": JAN_2, "last-modified": JAN_1, "expires": JAN_3,
             "cache-control": "public, max-age=300", "etag": '"one"'},
            {"date": JAN_3, "last-modified": JAN_2, "expires": JAN_2,
             "cache-control": "max-age=60", "etag": '"two"'},
        ]

    def test_conjunctive_merge(self, header_sets):
        """Test that the merged set is as stale as the stalest member."""
        merged = merge_headers(*header_sets)

        assert merged["date"] == JAN_3
        assert merged["last-modified"] == JAN_2
        assert merged["expires"] == JAN_2
        assert merged["cache-control"] == "max-age=60"

    def test_order_independent(self, header_sets):
        """Test that member order does not change the merge."""
        assert merge_headers(*header_sets) == merge_headers(*reversed(header_sets))

    def test_etag_digest(self, header_sets):
        """Test the weak etag derived from all member etags."""
        digest = hashlib.sha1('"one"\n"two"'.encode("utf-8")).hexdigest()
        assert merge_headers(*header_sets)["etag"] == f'W/"{digest}"'

    def test_single_etag_passes_through(self):
        """Test that a lone member keeps its etag."""
        assert merge_headers({"etag": '"one"'})["etag"] == '"one"'

    def test_missing_value_drops_header(self, header_sets):
        """Test that a header absent from one member is omitted."""
        del header_sets[1]["expires"]
        merged = merge_headers(*header_sets)

        assert "expires" not in merged
        assert "date" in merged

    def test_unparseable_value_drops_header(self, header_sets):
        """Test that headers are never merged partially."""
        header_sets[0]["last-modified"] = "yesterday"
        header_sets[1]["cache-control"] = "no-cache"
        merged = merge_headers(*header_sets)

        assert "last-modified" not in merged
        assert "cache-control" not in merged

    def test_no_members(self):
        """Test merging nothing."""
        assert merge_headers() == {}


class TestNotModified:
    """Test cases for not_modified."""

    def test_matching_etag(self):
        """Test an exact etag match."""
        assert not_modified({"etag": '"one"'}, {"etag": '"one"'})
        assert not not_modified({"etag": '"one"'}, {"etag": '"two"'})

    def test_last_modified_not_after_if_modified_since(self):
        """Test date based revalidation."""
        assert not_modified({"if-modified-since": JAN_2}, {"last-modified": JAN_1})
        assert not_modified({"if-modified-since": JAN_2}, {"last-modified": JAN_2})
        assert not not_modified({"if-modified-since": JAN_1}, {"last-modified": JAN_2})

    def test_unparseable_dates(self):
        """Test that unparseable dates never match."""
        assert not not_modified({"if-modified-since": "soon"}, {"last-modified": JAN_1})
        assert not not_modified({}, {"last-modified": JAN_1})


class TestStatuses:
    """Test cases for status reduction and header selection."""

    def test_reduce_statuses(self):
        """Test agreement and disagreement of member statuses."""
        assert reduce_statuses([200, 200, 200]) == 200
        assert reduce_statuses([304, 304]) == 304
        assert reduce_statuses([200, 404, 200]) is None
        assert reduce_statuses([]) is None

    def test_select_headers(self):
        """Test whitelisting."""
        headers = {"date": JAN_1, "set-cookie": "a=b"}
        assert select_headers(headers, ("date", "expires")) == {"date": JAN_1}
