"""
Tests for Merge & Deduplication

Tests for scriptloom/extraction/merge.py
"""

from dataclasses import replace

from scriptloom.core.constants import (
    EntityType,
    MergePolicy,
    ProposalSource,
    TimelineAction,
    TypeConflictPolicy
)
from scriptloom.extraction.merge import merge_entities, merge_results, suppress_canon_locked
from scriptloom.models.proposal import CandidateEntity, EntityUpdate, TimelineEvent


def _entity(name, source=ProposalSource.DETERMINISTIC, entity_type=EntityType.CHARACTER, description=""):
    return CandidateEntity(
        temp_id=f"{source.value}-{name}",
        entity_type=entity_type,
        name=name,
        source=source,
        confidence=0.9,
        context_snippet=name,
        fields={'suggested_description': description} if description else {},
    )


def _update(name, change="Enrich description with: Interior"):
    return EntityUpdate(
        entity_id="loc-1",
        entity_type=EntityType.LOCATION,
        entity_name=name,
        source=ProposalSource.DETERMINISTIC,
        confidence=0.9,
        context_snippet=name,
        change_description=change,
    )


def _event(description, action=TimelineAction.CREATED):
    return TimelineEvent(
        temp_id="det-1",
        entity_type=EntityType.EVENT,
        entity_name="Timeline marker",
        action=action,
        description=description,
        confidence=0.9,
        source=ProposalSource.DETERMINISTIC,
        context_snippet=description,
    )


class TestMergeEntities:
    """Tests for entity merging."""

    def test_primary_dedupes_first_wins(self):
        merged, conflicts, _ = merge_entities([_entity("Maya"), _entity(" MAYA ")], [])

        assert [e.name for e in merged] == ["Maya"]
        assert conflicts == []

    def test_secondary_adds_only_new_names(self):
        primary = [_entity("Maya")]
        secondary = [_entity("maya", ProposalSource.LLM), _entity("Eli", ProposalSource.LLM)]

        merged, _, _ = merge_entities(primary, secondary)

        assert [(e.name, e.source) for e in merged] == [
            ("Maya", ProposalSource.DETERMINISTIC),
            ("Eli", ProposalSource.LLM),
        ]

    def test_idempotent(self):
        """Merging a result with itself changes nothing."""
        entities = [_entity("Maya"), _entity("Eli"), _entity("Lighthouse", entity_type=EntityType.LOCATION)]

        once, _, _ = merge_entities(entities, entities)
        twice, _, _ = merge_entities(once, once)

        assert once == entities
        assert twice == once

    def test_type_conflict_surfaced(self):
        primary = [_entity("Orb", entity_type=EntityType.ITEM)]
        secondary = [_entity("orb", ProposalSource.LLM, entity_type=EntityType.ARTIFACT)]

        merged, conflicts, warnings = merge_entities(primary, secondary)

        assert len(merged) == 1
        assert merged[0].entity_type == EntityType.ITEM
        assert len(conflicts) == 1
        assert conflicts[0].rejected.entity_type == EntityType.ARTIFACT
        assert "Type conflict for 'Orb'" in warnings[0]

    def test_type_conflict_keep_primary_is_silent(self):
        primary = [_entity("Orb", entity_type=EntityType.ITEM)]
        secondary = [_entity("Orb", ProposalSource.LLM, entity_type=EntityType.ARTIFACT)]

        _, conflicts, warnings = merge_entities(primary, secondary, TypeConflictPolicy.KEEP_PRIMARY)

        assert conflicts == []
        assert warnings == []

    def test_type_resolver_decides(self):
        primary = [_entity("Orb", entity_type=EntityType.ITEM)]
        secondary = [_entity("Orb", ProposalSource.LLM, entity_type=EntityType.ARTIFACT)]

        merged, conflicts, _ = merge_entities(primary, secondary, type_resolver=lambda kept, other: other)

        assert merged[0].entity_type == EntityType.ARTIFACT
        assert conflicts == []


class TestMergeResults:
    """Tests for merging both passes."""

    def test_model_primary_keeps_model_description(self):
        """Pass 1 and the model both find Maya; model-primary keeps the model's richer entry."""
        deterministic = [_entity("Maya", description="Character identified from dialogue")]
        model = [_entity("Maya", ProposalSource.LLM, description="Smuggler captain who never sleeps")]

        result = merge_results(deterministic, [], [], model, [], [], policy=MergePolicy.MODEL_PRIMARY)

        assert len(result.new_entities) == 1
        assert result.new_entities[0].fields['suggested_description'] == "Smuggler captain who never sleeps"

    def test_deterministic_primary_keeps_pass1(self):
        deterministic = [_entity("Maya", description="Character identified from dialogue")]
        model = [_entity("Maya", ProposalSource.LLM, description="Smuggler captain")]

        result = merge_results(deterministic, [], [], model, [], [])

        assert result.new_entities[0].source == ProposalSource.DETERMINISTIC

    def test_canon_locks_suppress_everything(self):
        result = merge_results(
            [_entity("The Architect")],
            [_update("the architect")],
            [],
            [_entity("THE ARCHITECT", ProposalSource.LLM)],
            canon_locks=["The Architect"],
        )

        assert result.new_entities == []
        assert result.updated_entities == []
        assert len(result.warnings) == 3

    def test_updates_and_events_deduplicated(self):
        event = _event("Caption: 2031")
        result = merge_results(
            [], [_update("Lighthouse")], [event],
            [], [replace(_update("Lighthouse"), source=ProposalSource.LLM)], [replace(event, temp_id="llm-1")],
        )

        assert len(result.updated_entities) == 1
        assert len(result.timeline_events) == 1
        assert result.timeline_events[0].temp_id == "det-1"

    def test_suppress_returns_warnings(self):
        entities, updates, warnings = suppress_canon_locked([_entity("Maya")], [], ["maya"])

        assert entities == []
        assert updates == []
        assert warnings == ["Suppressed canon-locked entity 'Maya'"]
