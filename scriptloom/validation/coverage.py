"""
Coverage Validator

For manifest-driven batches, every required (page, panel) pair must appear in
every required output collection, and nothing else may. A collection that
collapses many pairs into one is rejected as well.
"""

from collections import Counter
from typing import Iterable, List, Tuple

from scriptloom.core.exceptions import CoverageError
from scriptloom.core.logging_config import get_logger
from scriptloom.models.documents import CoverageStatus, ManifestEntry, NormalizedScript, StoryboardBatch

logger = get_logger("validation.coverage")

Pair = Tuple[int, int]


def build_manifest(script: NormalizedScript) -> List[ManifestEntry]:
    """One entry per panel, in document order."""
    return [
        ManifestEntry(page=page.page_number, panel=panel.panel_number)
        for page in script.pages
        for panel in page.panels
    ]


def check_coverage(manifest: Iterable[Pair], collection: Iterable[Pair], name: str) -> None:
    """
    Compare one output collection with the manifest.

    Raises:
        CoverageError: Missing or unexpected pairs, duplicated pairs, or a
            suspicious collapse to a single pair
    """
    required = list(manifest)
    produced = list(collection)
    required_set, produced_set = set(required), set(produced)

    missing = required_set - produced_set
    extra = produced_set - required_set
    collapsed = len(required_set) > 1 and len(produced_set) == 1
    duplicated = sorted(pair for pair, count in Counter(produced).items() if count > 1)

    if missing or extra or collapsed or duplicated:
        raise CoverageError(name, missing=missing, extra=extra, collapsed=collapsed, duplicated=duplicated)


def validate_batch_coverage(manifest: List[ManifestEntry], batch: StoryboardBatch) -> None:
    """Check the panel entries, the coverage list, and the echoed manifest."""
    required = [entry.key for entry in manifest]

    check_coverage(required, batch.panel_pairs(), "pages.panels")
    check_coverage(required, [(c.page, c.panel) for c in batch.coverage], "coverage")
    if batch.manifest is not None:
        check_coverage(required, [entry.key for entry in batch.manifest], "manifest")

    flagged = [f"{c.page}:{c.panel}" for c in batch.coverage if c.status == CoverageStatus.MISSING]
    if flagged:
        logger.warning(f"Model marked panels as missing content: {', '.join(flagged)}")
