"""
Scriptloom Proposal Models

Dataclasses for the interactive extraction output: candidate entities,
entity updates, timeline events, their evidence, and the Proposal envelope.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from scriptloom.core.constants import EntityType, ProposalSource, TimelineAction
from scriptloom.utils.text_utils import normalize_name


def _camel(key: str) -> str:
    head, *rest = key.split('_')
    return head + ''.join(part[:1].upper() + part[1:] for part in rest)


def _camel_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    return {_camel(k): v for k, v in data.items()}


# =============================================================================
# WORLD SNAPSHOT (input)
# =============================================================================

@dataclass(frozen=True)
class KnownEntity:
    """An entity that already exists in the store."""
    id: str
    name: str
    entity_type: EntityType
    current_location_id: Optional[str] = None
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict, entity_type: EntityType) -> 'KnownEntity':
        return cls(
            id=str(data.get('id', '')),
            name=data.get('name', ''),
            entity_type=entity_type,
            current_location_id=data.get('current_location_id', data.get('currentLocationId')),
            description=data.get('description', '') or ''
        )


@dataclass
class WorldSnapshot:
    """Known characters, locations and items handed in by the caller."""
    characters: List[KnownEntity] = field(default_factory=list)
    locations: List[KnownEntity] = field(default_factory=list)
    items: List[KnownEntity] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> 'WorldSnapshot':
        """Create WorldSnapshot from dictionary."""
        return cls(
            characters=[KnownEntity.from_dict(c, EntityType.CHARACTER) for c in data.get('characters', [])],
            locations=[KnownEntity.from_dict(l, EntityType.LOCATION) for l in data.get('locations', [])],
            items=[KnownEntity.from_dict(i, EntityType.ITEM) for i in data.get('items', [])]
        )

    def find_location(self, location_id: Optional[str]) -> Optional[KnownEntity]:
        if not location_id:
            return None
        for location in self.locations:
            if location.id == location_id:
                return location
        return None


# =============================================================================
# PROPOSAL ITEMS
# =============================================================================

@dataclass(frozen=True)
class Evidence:
    """A verbatim excerpt pointing at one source unit (a line or a block)."""
    block_type: str
    block_index: int
    snippet: str
    block_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'blockType': self.block_type,
            'blockIndex': self.block_index,
            'snippet': self.snippet,
        }
        if self.block_id is not None:
            data['blockId'] = self.block_id
        return data


@dataclass(frozen=True)
class CandidateEntity:
    """A proposed new entity. Never mutated; merged or filtered only."""
    temp_id: str
    entity_type: EntityType
    name: str
    source: ProposalSource
    confidence: float
    context_snippet: str
    line_number: Optional[int] = None
    panel_ref: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)
    evidence: Optional[Evidence] = None

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'tempId': self.temp_id,
            'entityType': self.entity_type.value,
            'name': self.name,
            'source': self.source.value,
            'confidence': self.confidence,
            'contextSnippet': self.context_snippet,
        }
        if self.line_number is not None:
            data['lineNumber'] = self.line_number
        if self.panel_ref is not None:
            data['panelRef'] = self.panel_ref
        data.update(_camel_keys(self.fields))
        if self.evidence is not None:
            data['evidence'] = self.evidence.to_dict()
        return data


@dataclass(frozen=True)
class EntityUpdate:
    """A proposed change to an entity that already exists."""
    entity_id: str
    entity_type: EntityType
    entity_name: str
    source: ProposalSource
    confidence: float
    context_snippet: str
    change_description: str
    updates: Dict[str, Any] = field(default_factory=dict)
    line_number: Optional[int] = None
    evidence: Optional[Evidence] = None

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.entity_name)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'entityId': self.entity_id,
            'entityType': self.entity_type.value,
            'entityName': self.entity_name,
            'source': self.source.value,
            'confidence': self.confidence,
            'contextSnippet': self.context_snippet,
            'changeDescription': self.change_description,
            'updates': dict(self.updates),
        }
        if self.line_number is not None:
            data['lineNumber'] = self.line_number
        if self.evidence is not None:
            data['evidence'] = self.evidence.to_dict()
        return data


@dataclass(frozen=True)
class TimelineEvent:
    """A proposed timeline event. Markers carry no entity id."""
    temp_id: str
    entity_type: EntityType
    entity_name: str
    action: TimelineAction
    description: str
    confidence: float
    source: ProposalSource
    context_snippet: str
    entity_id: str = ""
    payload: Dict[str, Any] = field(default_factory=dict)
    line_number: Optional[int] = None
    evidence: Optional[Evidence] = None

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.entity_name)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'tempId': self.temp_id,
            'entityType': self.entity_type.value,
            'entityId': self.entity_id,
            'entityName': self.entity_name,
            'action': self.action.value,
            'payload': dict(self.payload),
            'description': self.description,
            'confidence': self.confidence,
            'source': self.source.value,
            'contextSnippet': self.context_snippet,
        }
        if self.line_number is not None:
            data['lineNumber'] = self.line_number
        if self.evidence is not None:
            data['evidence'] = self.evidence.to_dict()
        return data


@dataclass(frozen=True)
class AmbiguousPhrase:
    """An unexplained ALL-CAPS phrase that justifies a model pass."""
    text: str
    line_number: int


@dataclass(frozen=True)
class TypeConflict:
    """The same normalized name proposed with two entity types."""
    name: str
    kept: CandidateEntity
    rejected: CandidateEntity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'kept': self.kept.to_dict(),
            'rejected': self.rejected.to_dict(),
        }


# =============================================================================
# PROPOSAL
# =============================================================================

@dataclass
class ProposalMeta:
    parsed_at: str
    raw_length: int
    line_count: int
    duration_ms: int = 0
    llm_used: bool = False
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'parsedAt': self.parsed_at,
            'rawLength': self.raw_length,
            'lineCount': self.line_count,
            'durationMs': self.duration_ms,
            'llmUsed': self.llm_used,
            'warnings': list(self.warnings),
        }


@dataclass
class Proposal:
    """Terminal output of an interactive extraction, awaiting review."""
    meta: ProposalMeta
    new_entities: List[CandidateEntity] = field(default_factory=list)
    updated_entities: List[EntityUpdate] = field(default_factory=list)
    timeline_events: List[TimelineEvent] = field(default_factory=list)
    type_conflicts: List[TypeConflict] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'meta': self.meta.to_dict(),
            'newEntities': [e.to_dict() for e in self.new_entities],
            'updatedEntities': [u.to_dict() for u in self.updated_entities],
            'timelineEvents': [t.to_dict() for t in self.timeline_events],
            'typeConflicts': [c.to_dict() for c in self.type_conflicts],
        }
