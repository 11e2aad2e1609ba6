"""
Unit tests for path normalisation and relative references.
"""

import pytest

from service_bundler.app.routing import normalize_path, relative_path


class TestNormalizePath:
    """Test cases for normalize_path."""

    @pytest.mark.parametrize("path,expected", [
        ("/a/./b/../c", "/a/c"),
        ("/a//b/", "/a/b/"),
        ("/../a", "/a"),
        ("/..", "/"),
        ("./../a", "../a"),
        ("../a", "../a"),
        ("./a/b", "./a/b"),
        ("/", "/"),
    ])
    def test_normalize(self, path, expected):
        """Test collapsing of empty, current and parent segments."""
        assert normalize_path(path) == expected

    def test_trailing_slash_kept(self):
        """Test that directory paths stay directory paths."""
        assert normalize_path("/library/lib/./").endswith("/")


class TestRelativePath:
    """Test cases for relative_path."""

    @pytest.mark.parametrize("from_path,to_path,expected", [
        ("/library/1/a", "/library/1/b", "b"),
        ("/library/2/a", "/library/2/a/", "a/"),
        ("/library/3/a/", "/library/3/a", "../a"),
        ("/library/4/a", "/library/4/a/b", "a/b"),
        ("/library/5/a/b", "/library/5/a", "../a"),
        ("/library/6/a/", "/library/6/a/b", "b"),
        ("/library/7/a/b", "/library/7/a/", "./"),
        ("/library/8/", "/library/8/b", "b"),
        ("/root/app/util.js", "/library/jquery.js", "../../library/jquery.js"),
    ])
    def test_relative(self, from_path, to_path, expected):
        """Test relative references between sibling and nested paths."""
        assert relative_path(from_path, to_path) == expected
