"""
Tests for Entity Index

Tests for scriptloom/extraction/entity_index.py
"""

from scriptloom.core.constants import EntityType
from scriptloom.extraction.entity_index import EntityIndex
from scriptloom.models.proposal import WorldSnapshot


class TestEntityIndex:
    """Tests for EntityIndex.build and lookups."""

    def test_lookup_is_normalized(self, sample_snapshot):
        index = EntityIndex.build(sample_snapshot)

        entry = index.get("  HARBOR   office ")
        assert entry.entity_id == "loc-1"
        assert entry.entity_type == EntityType.LOCATION
        assert "maya" in index
        assert len(index) == 4

    def test_later_group_overwrites(self):
        """Items are indexed after characters, so a shared name resolves to the item."""
        snapshot = WorldSnapshot.from_dict({
            "characters": [{"id": "c1", "name": "Echo"}],
            "items": [{"id": "i1", "name": "echo"}]
        })

        index = EntityIndex.build(snapshot)

        assert index.get("Echo").entity_id == "i1"
        assert index.get("Echo").entity_type == EntityType.ITEM

    def test_known_names_only_when_absent(self, sample_snapshot):
        index = EntityIndex.build(sample_snapshot, ["maya", "Captain Reyes", "  "])

        assert index.get("Maya").entity_id == "char-1"
        reyes = index.get("captain reyes")
        assert reyes.entity_type == EntityType.CHARACTER
        assert reyes.entity_id == ""
        assert len(index) == 5

    def test_empty(self):
        index = EntityIndex.build()
        assert len(index) == 0
        assert index.get("anyone") is None
        assert index.names() == []
