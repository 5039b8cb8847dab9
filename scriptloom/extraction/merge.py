"""
Merge & Deduplication Engine

Reconciles Pass 1 and Pass 2 under an explicit merge policy. NormalizedName
is the only identity: the primary side's entry wins, and a secondary entry is
appended only when its name is new. Canon-locked names are removed before
merging.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Set, Tuple

from scriptloom.core.constants import MergePolicy, TypeConflictPolicy
from scriptloom.core.logging_config import get_logger
from scriptloom.models.proposal import CandidateEntity, EntityUpdate, TimelineEvent, TypeConflict
from scriptloom.utils.text_utils import normalize_name

logger = get_logger("extraction.merge")

TypeResolver = Callable[[CandidateEntity, CandidateEntity], CandidateEntity]


@dataclass
class MergeResult:
    new_entities: List[CandidateEntity] = field(default_factory=list)
    updated_entities: List[EntityUpdate] = field(default_factory=list)
    timeline_events: List[TimelineEvent] = field(default_factory=list)
    type_conflicts: List[TypeConflict] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def suppress_canon_locked(
    entities: Iterable[CandidateEntity],
    updates: Iterable[EntityUpdate],
    canon_locks: Iterable[str]
) -> Tuple[List[CandidateEntity], List[EntityUpdate], List[str]]:
    """Drop every proposal that touches a canon-locked name."""
    locked = {normalize_name(name) for name in canon_locks}
    warnings = []

    kept_entities = []
    for entity in entities:
        if entity.normalized_name in locked:
            warnings.append(f"Suppressed canon-locked entity '{entity.name}'")
        else:
            kept_entities.append(entity)

    kept_updates = []
    for update in updates:
        if update.normalized_name in locked:
            warnings.append(f"Suppressed update to canon-locked entity '{update.entity_name}'")
        else:
            kept_updates.append(update)

    return kept_entities, kept_updates, warnings


def merge_entities(
    primary: Sequence[CandidateEntity],
    secondary: Sequence[CandidateEntity],
    conflict_policy: TypeConflictPolicy = TypeConflictPolicy.SURFACE,
    type_resolver: Optional[TypeResolver] = None
) -> Tuple[List[CandidateEntity], List[TypeConflict], List[str]]:
    """
    Deduplicate ``primary`` (first wins) and append new names from ``secondary``.

    When a secondary entity shares a name with a primary one but has another
    entity type, ``type_resolver`` decides if given. Otherwise the primary is
    kept and, under the SURFACE policy, the pair is reported as a conflict.

    Returns:
        (merged, conflicts, warnings)
    """
    merged: List[CandidateEntity] = []
    positions = {}
    conflicts: List[TypeConflict] = []
    warnings: List[str] = []

    for entity in primary:
        if entity.normalized_name not in positions:
            positions[entity.normalized_name] = len(merged)
            merged.append(entity)

    for entity in secondary:
        key = entity.normalized_name
        if key not in positions:
            positions[key] = len(merged)
            merged.append(entity)
            continue

        existing = merged[positions[key]]
        if existing.entity_type == entity.entity_type:
            continue

        if type_resolver is not None:
            merged[positions[key]] = type_resolver(existing, entity)
        elif conflict_policy == TypeConflictPolicy.SURFACE:
            conflicts.append(TypeConflict(name=existing.name, kept=existing, rejected=entity))
            warnings.append(
                f"Type conflict for '{existing.name}': kept {existing.entity_type.value}, "
                f"also proposed as {entity.entity_type.value}"
            )

    return merged, conflicts, warnings


def _dedupe(items: Iterable, key: Callable) -> List:
    seen: Set = set()
    unique = []
    for item in items:
        k = key(item)
        if k not in seen:
            seen.add(k)
            unique.append(item)
    return unique


def _update_key(update: EntityUpdate) -> Tuple[str, str]:
    return (update.entity_id or update.normalized_name, update.change_description)


def _event_key(event: TimelineEvent) -> Tuple[str, str, str]:
    return (event.normalized_name, event.action.value, normalize_name(event.description))


def merge_results(
    deterministic_entities: Sequence[CandidateEntity],
    deterministic_updates: Sequence[EntityUpdate],
    deterministic_events: Sequence[TimelineEvent],
    model_entities: Sequence[CandidateEntity] = (),
    model_updates: Sequence[EntityUpdate] = (),
    model_events: Sequence[TimelineEvent] = (),
    policy: MergePolicy = MergePolicy.DETERMINISTIC_PRIMARY,
    canon_locks: Iterable[str] = (),
    conflict_policy: TypeConflictPolicy = TypeConflictPolicy.SURFACE,
    type_resolver: Optional[TypeResolver] = None
) -> MergeResult:
    """
    Merge both passes.

    Args:
        deterministic_*: Pass 1 proposals
        model_*: Pass 2 proposals
        policy: Which side is primary
        canon_locks: Names that must never be proposed or updated
        conflict_policy: Handling of same-name, different-type pairs
        type_resolver: Caller-supplied tie-break for type conflicts

    Returns:
        MergeResult
    """
    canon_locks = list(canon_locks)
    result = MergeResult()

    det_entities, det_updates, det_warnings = suppress_canon_locked(
        deterministic_entities, deterministic_updates, canon_locks
    )
    llm_entities, llm_updates, llm_warnings = suppress_canon_locked(
        model_entities, model_updates, canon_locks
    )
    result.warnings.extend(det_warnings + llm_warnings)

    if policy == MergePolicy.MODEL_PRIMARY:
        ordered = ((llm_entities, det_entities), (llm_updates, det_updates), (model_events, deterministic_events))
    else:
        ordered = ((det_entities, llm_entities), (det_updates, llm_updates), (deterministic_events, model_events))

    (primary, secondary), (first_updates, second_updates), (first_events, second_events) = ordered

    result.new_entities, result.type_conflicts, conflict_warnings = merge_entities(
        primary, secondary, conflict_policy, type_resolver
    )
    result.warnings.extend(conflict_warnings)
    result.updated_entities = _dedupe(list(first_updates) + list(second_updates), _update_key)
    result.timeline_events = _dedupe(list(first_events) + list(second_events), _event_key)

    logger.debug(
        f"Merged ({policy.value}): {len(result.new_entities)} entities, "
        f"{len(result.type_conflicts)} type conflicts"
    )
    return result
