"""
Tests for the bundle manifest validation script.
"""

from scripts.validate_manifests import main, validate_manifest


class TestValidateManifests:
    """Test cases for validate_manifests."""

    def test_valid_manifest(self, tmp_path):
        """Test a manifest with a bundle and an alias."""
        manifest = tmp_path / "manifest.json"
        manifest.write_text(
            '{"/app/main.js": ["/app/main.js", {"alias": "/app", "target": "/app/main.js"}]}',
            encoding="utf-8",
        )

        assert validate_manifest(manifest) == []
        assert main([str(manifest)]) == 0

    def test_yaml_manifest(self, tmp_path):
        """Test YAML detection by file name."""
        manifest = tmp_path / "manifest.yaml"
        manifest.write_text("jquery.js:\n  - jquery.js\n", encoding="utf-8")

        assert validate_manifest(manifest) == []

    def test_invalid_manifests(self, tmp_path):
        """Test reporting of unreadable and inconsistent manifests."""
        empty = tmp_path / "empty.json"
        empty.write_text('{"/a.js": []}', encoding="utf-8")
        dangling = tmp_path / "dangling.json"
        dangling.write_text('{"/a.js": ["/a.js", {"alias": "/b", "target": "/c.js"}]}', encoding="utf-8")
        broken = tmp_path / "broken.json"
        broken.write_text("{", encoding="utf-8")

        assert validate_manifest(empty) == ["bundle '/a.js' has no members"]
        assert validate_manifest(dangling) == ["alias '/b' points at unknown module '/c.js'"]
        assert len(validate_manifest(broken)) == 1
        assert validate_manifest(tmp_path / "missing.json")[0].startswith("Error reading file")
        assert main([str(empty), str(broken)]) == 1
