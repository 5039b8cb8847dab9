"""
Entity Index

O(1) lookup of already-known entities by normalized name.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional

from scriptloom.core.constants import EntityType
from scriptloom.models.proposal import KnownEntity, WorldSnapshot
from scriptloom.utils.text_utils import normalize_name


@dataclass(frozen=True)
class IndexedEntity:
    entity_type: EntityType
    entity_id: str
    name: str


class EntityIndex:
    """
    Map of NormalizedName -> IndexedEntity.

    Snapshot entities are indexed characters first, then locations, then
    items; a later duplicate replaces an earlier one. Bare known names are
    added only when absent and are typed as characters with an empty id.
    """

    def __init__(self, entries: Optional[Dict[str, IndexedEntity]] = None):
        self._entries: Dict[str, IndexedEntity] = dict(entries or {})

    @classmethod
    def build(
        cls,
        snapshot: Optional[WorldSnapshot] = None,
        known_entity_names: Iterable[str] = ()
    ) -> 'EntityIndex':
        snapshot = snapshot or WorldSnapshot()
        entries: Dict[str, IndexedEntity] = {}

        def add(entity: KnownEntity) -> None:
            if entity.name:
                entries[normalize_name(entity.name)] = IndexedEntity(
                    entity.entity_type, entity.id, entity.name
                )

        for group in (snapshot.characters, snapshot.locations, snapshot.items):
            for entity in group:
                add(entity)

        for name in known_entity_names:
            key = normalize_name(name)
            if key and key not in entries:
                entries[key] = IndexedEntity(EntityType.CHARACTER, "", name.strip())

        return cls(entries)

    def get(self, name: str) -> Optional[IndexedEntity]:
        return self._entries.get(normalize_name(name))

    def __contains__(self, name: str) -> bool:
        return normalize_name(name) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def names(self) -> List[str]:
        """Display names in index order."""
        return [entry.name for entry in self._entries.values()]
