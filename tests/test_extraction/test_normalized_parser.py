"""
Tests for Normalized Script Parser

Tests for scriptloom/extraction/normalized_parser.py
"""

import pytest

from scriptloom.extraction.normalized_parser import NormalizedScriptParser
from scriptloom.models.documents import NormalizedScript


@pytest.fixture
def script(normalized_script_data):
    return NormalizedScript.model_validate(normalized_script_data)


class TestNormalizedScriptParser:
    """Tests for the deterministic trackers."""

    def test_page_summaries(self, script):
        bundle = NormalizedScriptParser().parse(script)

        first, second = bundle.storyboard.pages
        assert first.page_number == 1
        assert first.panel_count == 2
        assert first.characters == ["MAYA"]
        assert first.beats == ["Dialogue from MAYA", "Narrator observation present"]
        assert first.locations == ["Port Verity, 6:00 AM."]
        assert first.time_markers == ["Port Verity, 6:00 AM."]
        assert second.characters == ["ELI", "MAYA"]
        assert second.locations == ["HARBOR TOWN"]

    def test_character_tracker(self, script):
        bundle = NormalizedScriptParser().parse(script)

        eli, maya = bundle.characters.characters
        assert eli.name == "ELI"
        assert eli.lines_count == 1
        assert maya.pages_present == [1, 2]
        assert maya.first_appearance_page == 1
        assert maya.lines_count == 2
        assert maya.notable_quotes == ["We leave tonight.", "Then stop searching."]

    def test_lore_tracker(self, script):
        lore = NormalizedScriptParser().parse(script).lore

        assert [(r.name, r.pages) for r in lore.artifacts] == [("compass", [1])]
        assert [r.name for r in lore.locations] == ["HARBOR TOWN", "Port Verity, 6:00 AM."]
        assert [r.name for r in lore.canon] == ["The city was quiet before the storm."]
        assert [r.name for r in lore.events] == ["Event candidate: caption marker"]
        assert [r.name for r in lore.factions] == ["THE WARDENS"]
        assert lore.concepts == []

    def test_configurable_terms(self, script):
        parser = NormalizedScriptParser(concept_terms=["KRAAAK"], faction_roles=["WARDENS"])
        bundle = parser.parse(script)

        assert [r.name for r in bundle.lore.concepts] == ["KRAAAK"]
        assert "Concept term in SFX" in bundle.storyboard.pages[0].beats
        assert [r.name for r in bundle.lore.factions] == ["THE WARDENS", "WARDENS"]

    def test_state_change_event(self, normalized_script_data):
        normalized_script_data["pages"][1]["panels"][0]["blocks"].append(
            {"type": "NARRATOR", "text": "By morning the old bridge had collapsed."}
        )
        script = NormalizedScript.model_validate(normalized_script_data)

        lore = NormalizedScriptParser().parse(script).lore

        assert "Event candidate: collapsed" in [r.name for r in lore.events]

    def test_place_name_in_art_note_is_location(self, normalized_script_data):
        normalized_script_data["pages"][1]["panels"][0]["blocks"].append(
            {"type": "ART_NOTE", "text": "Inside the CUSTOMS OFFICE at night."}
        )
        script = NormalizedScript.model_validate(normalized_script_data)

        bundle = NormalizedScriptParser().parse(script)

        assert "CUSTOMS OFFICE" in bundle.storyboard.pages[1].locations
        assert "CUSTOMS OFFICE" not in [c.name for c in bundle.characters.characters]

    def test_beats_for_special_blocks(self, normalized_script_data):
        normalized_script_data["pages"][0]["panels"][0]["blocks"] += [
            {"type": "TITLE_CARD", "text": "CHAPTER ONE"},
            {"type": "CRAWLER", "text": "STORM WARNING ISSUED"}
        ]
        script = NormalizedScript.model_validate(normalized_script_data)

        beats = NormalizedScriptParser().parse(script).storyboard.pages[0].beats

        assert "Title card" in beats
        assert "News crawler" in beats

    def test_output_is_deterministic(self, script):
        parser = NormalizedScriptParser()
        assert parser.parse(script) == parser.parse(script)
