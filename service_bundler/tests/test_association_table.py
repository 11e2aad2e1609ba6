"""
Unit tests for association tables.
"""

import pytest

from shared.errors import AliasCycleError, ManifestError
from service_bundler.app.associators import Alias, AssociationTable, StaticAssociator


class TestAssociationTable:
    """Test cases for AssociationTable."""

    @pytest.fixture
    def table(self):
        """Two bundles sharing one member."""
        return AssociationTable.from_simple_mapping({
            "/a.js": ["/a.js", "/b.js"],
            "/c.js": ["/c.js", "/b.js"],
        })

    def test_from_simple_mapping(self, table):
        """Test both views of the associations."""
        assert table.bundles["/a.js"] == ("/a.js", "/b.js")
        assert table.members["/a.js"] == "/a.js"
        assert table.members["/c.js"] == "/c.js"
        assert table.bundle_for("/b.js") in ("/a.js", "/c.js")
        assert table.bundle_for("/unknown.js") is None

    def test_bundle_names_stay_in_their_bundle(self):
        """Test that a bundle listed inside another bundle keeps its own name."""
        table = AssociationTable.from_simple_mapping({
            "/a.js": ["/a.js", "/c.js"],
            "/c.js": ["/c.js"],
        })
        assert table.bundle_for("/c.js") == "/c.js"

    def test_duplicate_bundle(self):
        """Test rejection of a bundle defined twice."""
        with pytest.raises(ManifestError):
            AssociationTable.from_simple_mapping([
                ("/a.js", ["/a.js"]),
                ("/a.js", ["/a.js", "/b.js"]),
            ])

    def test_conflicting_definition(self):
        """Test rejection of a name used both as alias and module."""
        with pytest.raises(ManifestError):
            AssociationTable.from_simple_mapping({
                "/a.js": ["/a.js", Alias("/b", "/a.js")],
                "/c.js": ["/c.js", "/b"],
            })

    def test_alias_chain(self):
        """Test that alias chains resolve to their final target."""
        table = AssociationTable.from_simple_mapping({
            "c": ["c", Alias("a", "b"), Alias("b", "c")],
        })

        assert table.resolve("a") == "c"
        assert table.aliases == {"a": "b", "b": "c"}
        assert StaticAssociator(table).preferred_path("a") == "c"

    def test_alias_cycle(self):
        """Test that a looping alias chain fails on lookup."""
        table = AssociationTable.from_simple_mapping({
            "x": ["x", Alias("a", "b"), Alias("b", "a")],
        })

        with pytest.raises(AliasCycleError) as exc_info:
            StaticAssociator(table).preferred_path("a")
        assert exc_info.value.details["chain"] == ["a", "b", "a"]

        with pytest.raises(AliasCycleError):
            table.validate()

    def test_complex_mapping_round_trip(self, table):
        """Test conversion to the compact form and back."""
        packages, associations = table.to_complex_mapping()

        assert packages == ["/a.js", "/c.js"]
        assert associations["/a.js"] == (0, [True, False])
        assert associations["/c.js"] == (1, [False, True])
        assert associations["/b.js"][1] == [True, True]

        restored = AssociationTable.from_complex_mapping(packages, associations)

        assert dict(restored.members) == dict(table.members)
        assert restored.to_complex_mapping() == (packages, associations)

    def test_complex_mapping_skips_aliases(self):
        """Test that aliases have no compact representation."""
        table = AssociationTable.from_simple_mapping({"/a.js": ["/a.js", Alias("/a", "/a.js")]})
        _, associations = table.to_complex_mapping()

        assert set(associations) == {"/a.js"}

    def test_complex_mapping_primary_mismatch(self):
        """Test rejection of a bundle whose primary index points elsewhere."""
        with pytest.raises(ManifestError):
            AssociationTable.from_complex_mapping(
                ["/a.js", "/c.js"],
                {"/a.js": (1, [True, False]), "/c.js": (1, [False, True])},
            )

    def test_complex_mapping_missing_primary(self):
        """Test rejection of a bundle that is nobody's primary."""
        with pytest.raises(ManifestError):
            AssociationTable.from_complex_mapping(["/a.js"], {})

    def test_table_is_read_only(self, table):
        """Test that lookups cannot mutate the table."""
        with pytest.raises(TypeError):
            table.members["/x.js"] = "/a.js"
