"""
Deterministic Extractor (Pass 1)

Single left-to-right scan over script lines. The only mutable state is the
scan state; everything else flows through the ordered line rules.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

from scriptloom.core.config import ExtractionConfig
from scriptloom.core.constants import DEFAULT_VOCABULARY, ScriptVocabulary
from scriptloom.core.logging_config import get_logger
from scriptloom.extraction.entity_index import EntityIndex
from scriptloom.extraction.line_rules import (
    DEFAULT_RULES,
    LineContext,
    LineEffect,
    LocationRef,
    PatternCache,
    Rule,
    ScanState,
)
from scriptloom.models.proposal import (
    AmbiguousPhrase,
    CandidateEntity,
    EntityUpdate,
    TimelineEvent,
    WorldSnapshot,
)
from scriptloom.utils.text_utils import normalize_name

logger = get_logger("extraction.deterministic")


@dataclass
class DeterministicResult:
    """Everything Pass 1 found."""
    new_entities: List[CandidateEntity] = field(default_factory=list)
    updated_entities: List[EntityUpdate] = field(default_factory=list)
    timeline_events: List[TimelineEvent] = field(default_factory=list)
    ambiguous_phrases: List[AmbiguousPhrase] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def discovered_names(self) -> List[str]:
        return [entity.name for entity in self.new_entities]


class DeterministicExtractor:
    """
    Pattern-based extractor.

    Vocabulary and rules are injected so tests can substitute alternate word
    lists or a reduced rule set. For identical text, config and snapshot the
    output is identical, temp ids included.
    """

    def __init__(
        self,
        config: Optional[ExtractionConfig] = None,
        vocabulary: ScriptVocabulary = DEFAULT_VOCABULARY,
        rules: Sequence[Rule] = DEFAULT_RULES,
        id_prefix: str = "det"
    ):
        self.config = config or ExtractionConfig()
        self.vocabulary = vocabulary
        self.rules = tuple(rules)
        self.id_prefix = id_prefix

    def extract(
        self,
        text: str,
        snapshot: Optional[WorldSnapshot] = None,
        index: Optional[EntityIndex] = None
    ) -> DeterministicResult:
        """
        Scan ``text`` and collect proposals.

        Args:
            text: Raw script text
            snapshot: Known world state (characters, locations, items)
            index: Pre-built entity index; built from snapshot and config if omitted

        Returns:
            DeterministicResult
        """
        snapshot = snapshot or WorldSnapshot()
        if index is None:
            index = EntityIndex.build(snapshot, self.config.known_entity_names)

        lines = text.splitlines()
        state = self._initial_state(snapshot)
        patterns = PatternCache()
        result = DeterministicResult()
        counter = 0

        for i, line in enumerate(lines):
            stripped = line.strip()
            if not stripped:
                continue

            ctx = LineContext(
                line=line,
                text=stripped,
                line_number=i + 1,
                next_line=lines[i + 1] if i + 1 < len(lines) else None,
                vocabulary=self.vocabulary,
                index=index,
                snapshot=snapshot,
                config=self.config,
                patterns=patterns,
            )

            effect = self._classify(ctx, state)
            if effect is None:
                continue
            counter = self._apply(effect, state, result, counter)

        result.warnings.extend(patterns.warnings)
        logger.debug(
            f"Pass 1: {len(result.new_entities)} entities, "
            f"{len(result.timeline_events)} events, "
            f"{len(result.ambiguous_phrases)} ambiguous phrases"
        )
        return result

    def _initial_state(self, snapshot: WorldSnapshot) -> ScanState:
        state = ScanState()
        for character in snapshot.characters:
            location = snapshot.find_location(character.current_location_id)
            state.character_locations[normalize_name(character.name)] = (
                normalize_name(location.name) if location else None
            )
        return state

    def _classify(self, ctx: LineContext, state: ScanState) -> Optional[LineEffect]:
        for rule in self.rules:
            effect = rule(ctx, state)
            if effect is not None:
                return effect
        return None

    def _apply(
        self,
        effect: LineEffect,
        state: ScanState,
        result: DeterministicResult,
        counter: int
    ) -> int:
        location = effect.set_location

        for entity in effect.new_entities:
            counter += 1
            entity = replace(entity, temp_id=f"{self.id_prefix}-{counter}")
            state.discovered[entity.normalized_name] = entity
            result.new_entities.append(entity)
            if location is not None and location.entity_id is None and location.key == entity.normalized_name:
                location = LocationRef(location.name, entity.temp_id, location.known)

        for event in effect.events:
            counter += 1
            result.timeline_events.append(replace(event, temp_id=f"{self.id_prefix}-{counter}"))

        for update in effect.updates:
            state.emitted_updates.add((update.entity_id or update.normalized_name, update.change_description))
            result.updated_entities.append(update)

        result.ambiguous_phrases.extend(effect.ambiguous)
        state.character_locations.update(effect.moves)

        if location is not None:
            state.current_location = location

        return counter
