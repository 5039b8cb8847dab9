"""
Grounding Validator

Every evidence item must point at a real source unit of the declared type and
quote at most a fixed number of words from it, verbatim and case-sensitive.
Interactive callers drop failing items; batch callers get one GroundingError.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from scriptloom.core.constants import LINE_BLOCK_TYPE, MAX_EVIDENCE_WORDS
from scriptloom.core.exceptions import GroundingError
from scriptloom.core.logging_config import get_logger
from scriptloom.models.documents import NormalizedScript, StoryboardBatch
from scriptloom.utils.text_utils import count_words

logger = get_logger("validation.grounding")

T = TypeVar('T')


@dataclass(frozen=True)
class SourceUnit:
    """A line of raw script or a block of a normalized panel."""
    unit_type: str
    text: str


def check_snippet(
    where: str,
    ref: str,
    unit: Optional[SourceUnit],
    declared_type: Optional[str],
    snippet: str,
    max_words: int = MAX_EVIDENCE_WORDS
) -> List[str]:
    """Return every violation for one evidence item (empty when grounded)."""
    if unit is None:
        return [f"{where}: unknown source unit {ref}"]

    violations = []
    if declared_type is not None and declared_type != unit.unit_type:
        violations.append(f"{where}: evidence type {declared_type} does not match {unit.unit_type} at {ref}")
    words = count_words(snippet)
    if words > max_words:
        violations.append(f"{where}: snippet exceeds word limit ({words} > {max_words})")
    if not snippet or snippet not in unit.text:
        violations.append(f"{where}: snippet not verbatim in {ref}")
    return violations


# =============================================================================
# INTERACTIVE (line-level)
# =============================================================================

class LineGroundingValidator:
    """Grounds proposals against the 1-indexed lines of the raw script."""

    def __init__(self, text: str, max_words: int = MAX_EVIDENCE_WORDS):
        self.units: Dict[int, SourceUnit] = {
            n: SourceUnit(LINE_BLOCK_TYPE, line) for n, line in enumerate(text.splitlines(), 1)
        }
        self.max_words = max_words

    def violations(self, item, label: str) -> List[str]:
        evidence = getattr(item, 'evidence', None)
        if evidence is None:
            return [f"{label}: missing evidence"]
        return check_snippet(
            label,
            f"line {evidence.block_index}",
            self.units.get(evidence.block_index),
            evidence.block_type,
            evidence.snippet,
            self.max_words,
        )

    def filter(self, items: Sequence[T], kind: str) -> Tuple[List[T], List[str]]:
        """
        Keep grounded items; drop the rest with a warning each.

        Args:
            items: Proposals carrying an ``evidence`` attribute
            kind: Label used in warnings ("entity", "update", "event")

        Returns:
            (kept, warnings)
        """
        kept, warnings = [], []
        for item in items:
            label = f"{kind} '{_item_name(item)}'"
            problems = self.violations(item, label)
            if problems:
                message = "Dropped ungrounded " + "; ".join(problems)
                logger.warning(message)
                warnings.append(message)
            else:
                kept.append(item)
        return kept, warnings


def _item_name(item) -> str:
    return getattr(item, 'name', None) or getattr(item, 'entity_name', None) or getattr(item, 'description', '?')


# =============================================================================
# BATCH (block-level)
# =============================================================================

def _panel_blocks(script: NormalizedScript) -> Dict[Tuple[int, int], Dict[str, SourceUnit]]:
    panels = {}
    for page in script.pages:
        for panel in page.panels:
            panels[(page.page_number, panel.panel_number)] = {
                block.block_id: SourceUnit(block.type.value, block.text)
                for block in panel.blocks
                if block.block_id
            }
    return panels


def storyboard_grounding_violations(
    batch: StoryboardBatch,
    script: NormalizedScript,
    max_words: int = MAX_EVIDENCE_WORDS
) -> List[str]:
    """All grounding problems in a storyboard batch. Block ids must already be assigned."""
    panels = _panel_blocks(script)
    violations = []

    for page in batch.pages:
        for panel in page.panels:
            key = (page.page_number, panel.panel_number)
            where = f"Panel {key[0]}:{key[1]}"
            blocks = panels.get(key, {})
            if not panel.evidence:
                violations.append(f"{where}: missing evidence")
            for evidence in panel.evidence:
                violations.extend(check_snippet(
                    where,
                    f"block {evidence.block_id}",
                    blocks.get(evidence.block_id),
                    evidence.block_type.value if evidence.block_type else None,
                    evidence.snippet,
                    max_words,
                ))

    return violations


def validate_storyboard_grounding(
    batch: StoryboardBatch,
    script: NormalizedScript,
    max_words: int = MAX_EVIDENCE_WORDS
) -> None:
    """Raise GroundingError listing every violation, if any."""
    violations = storyboard_grounding_violations(batch, script, max_words)
    if violations:
        raise GroundingError(violations)
