"""
Scriptloom Models Module

Proposal dataclasses and pydantic document schemas.
"""

from .proposal import (
    KnownEntity,
    WorldSnapshot,
    Evidence,
    CandidateEntity,
    EntityUpdate,
    TimelineEvent,
    AmbiguousPhrase,
    TypeConflict,
    ProposalMeta,
    Proposal,
)
from .documents import (
    NormalizedScript,
    ScriptPage,
    ScriptPanel,
    ScriptBlock,
    ManifestEntry,
    StoryboardBatch,
    StoryboardPage,
    StoryboardPanel,
    PanelEvidence,
    CoverageEntry,
    CoverageStatus,
    StoryboardSummary,
    CharacterTracker,
    LoreTracker,
    LLMExtractionResponse,
    validate_document,
)

__all__ = [
    'KnownEntity',
    'WorldSnapshot',
    'Evidence',
    'CandidateEntity',
    'EntityUpdate',
    'TimelineEvent',
    'AmbiguousPhrase',
    'TypeConflict',
    'ProposalMeta',
    'Proposal',
    'NormalizedScript',
    'ScriptPage',
    'ScriptPanel',
    'ScriptBlock',
    'ManifestEntry',
    'StoryboardBatch',
    'StoryboardPage',
    'StoryboardPanel',
    'PanelEvidence',
    'CoverageEntry',
    'CoverageStatus',
    'StoryboardSummary',
    'CharacterTracker',
    'LoreTracker',
    'LLMExtractionResponse',
    'validate_document',
]
