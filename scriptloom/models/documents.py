"""
Document Models

Pydantic schemas for the JSON documents Scriptloom reads and writes:
the normalized script, the storyboard batch, the page trackers, and the
model's extraction response.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from scriptloom.core.constants import BlockType, CharacterRole, TimelineAction
from scriptloom.core.exceptions import DocumentValidationError


def validation_messages(error: ValidationError) -> List[str]:
    """Flatten a pydantic error into ``/path: message`` lines."""
    lines = []
    for err in error.errors():
        path = "/" + "/".join(str(part) for part in err.get("loc", ()))
        lines.append(f"{path}: {err.get('msg', 'invalid')}")
    return lines


def validate_document(model: type, data: Any, document: str):
    """Validate ``data`` against ``model`` or raise DocumentValidationError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise DocumentValidationError(document, validation_messages(e))


# =============================================================================
# NORMALIZED SCRIPT
# =============================================================================

class ScriptBlock(BaseModel):
    """Smallest content unit of a panel."""
    type: BlockType
    text: str
    speaker: Optional[str] = None
    block_id: Optional[str] = None


class ScriptPanel(BaseModel):
    panel_number: int = Field(ge=1)
    blocks: List[ScriptBlock] = Field(default_factory=list)


class ScriptPage(BaseModel):
    page_number: int = Field(ge=1)
    panels: List[ScriptPanel] = Field(min_length=1)


class NormalizedScript(BaseModel):
    """Comic script split into pages, panels and typed blocks."""
    source_hash: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)
    pages: List[ScriptPage] = Field(min_length=1)

    @field_validator('source_hash')
    @classmethod
    def _hash_prefix(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.startswith('sha256:'):
            raise ValueError("source_hash must start with 'sha256:'")
        return value

    def ensure_block_ids(self) -> 'NormalizedScript':
        """Fill missing block ids with ``p{page}-pa{panel}-b{index}``."""
        for page in self.pages:
            for panel in page.panels:
                for index, block in enumerate(panel.blocks):
                    if not block.block_id:
                        block.block_id = f"p{page.page_number}-pa{panel.panel_number}-b{index}"
        return self


# =============================================================================
# STORYBOARD BATCH
# =============================================================================

class CoverageStatus(str, Enum):
    OK = "ok"
    MISSING = "missing"


class ManifestEntry(BaseModel):
    """One required (page, panel) unit."""
    model_config = ConfigDict(frozen=True)

    page: int
    panel: int

    @property
    def key(self) -> tuple:
        return (self.page, self.panel)


class PanelEvidence(BaseModel):
    block_id: str = Field(min_length=1)
    snippet: str = Field(min_length=1)
    block_type: Optional[BlockType] = None


class StoryboardPanel(BaseModel):
    panel_number: int
    beat: str
    tone: str = "OTHER"
    characters: List[str] = Field(default_factory=list)
    evidence: List[PanelEvidence] = Field(min_length=1)


class StoryboardPage(BaseModel):
    page_number: int
    panels: List[StoryboardPanel] = Field(default_factory=list)


class CoverageEntry(BaseModel):
    page: int
    panel: int
    status: CoverageStatus


class StoryboardBatch(BaseModel):
    """Model-compiled storyboard: one panel entry and one coverage entry per manifest pair."""
    manifest: Optional[List[ManifestEntry]] = None
    pages: List[StoryboardPage]
    coverage: List[CoverageEntry]

    def panel_pairs(self) -> List[tuple]:
        return [
            (page.page_number, panel.panel_number)
            for page in self.pages
            for panel in page.panels
        ]


# =============================================================================
# TRACKERS (deterministic batch parse)
# =============================================================================

class StoryboardPageSummary(BaseModel):
    page_number: int
    panel_count: int = Field(ge=0)
    locations: List[str] = Field(default_factory=list)
    time_markers: List[str] = Field(default_factory=list)
    characters: List[str] = Field(default_factory=list)
    beats: List[str] = Field(default_factory=list)


class StoryboardSummary(BaseModel):
    pages: List[StoryboardPageSummary]


class CharacterRecord(BaseModel):
    name: str = Field(min_length=1)
    pages_present: List[int] = Field(min_length=1)
    first_appearance_page: int
    lines_count: int = Field(ge=0)
    notable_quotes: List[str] = Field(default_factory=list, max_length=2)


class CharacterTracker(BaseModel):
    characters: List[CharacterRecord] = Field(default_factory=list)


class LoreRecord(BaseModel):
    name: str = Field(min_length=1)
    pages: List[int] = Field(min_length=1)


class LoreTracker(BaseModel):
    artifacts: List[LoreRecord] = Field(default_factory=list)
    locations: List[LoreRecord] = Field(default_factory=list)
    concepts: List[LoreRecord] = Field(default_factory=list)
    events: List[LoreRecord] = Field(default_factory=list)
    canon: List[LoreRecord] = Field(default_factory=list)
    factions: List[LoreRecord] = Field(default_factory=list)


# =============================================================================
# MODEL EXTRACTION RESPONSE (interactive pass 2)
# =============================================================================

class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class LineEvidence(_CamelModel):
    line_number: int = Field(alias='lineNumber')
    snippet: str


class LLMNewEntity(_CamelModel):
    name: str = Field(min_length=1)
    entity_type: str = Field(alias='entityType')
    confidence: float = Field(ge=0, le=1)
    context_snippet: str = Field(default='', alias='contextSnippet')
    line_number: Optional[int] = Field(default=None, alias='lineNumber')
    evidence: Optional[LineEvidence] = None
    suggested_role: Optional[CharacterRole] = Field(default=None, alias='suggestedRole')
    suggested_description: Optional[str] = Field(default=None, alias='suggestedDescription')
    suggested_region: Optional[str] = Field(default=None, alias='suggestedRegion')
    suggested_time_of_day: Optional[str] = Field(default=None, alias='suggestedTimeOfDay')
    suggested_holder_id: Optional[str] = Field(default=None, alias='suggestedHolderId')
    suggested_item_description: Optional[str] = Field(default=None, alias='suggestedItemDescription')


class LLMEntityUpdate(_CamelModel):
    entity_id: str = Field(alias='entityId')
    entity_type: str = Field(alias='entityType')
    entity_name: str = Field(alias='entityName')
    confidence: float = Field(ge=0, le=1)
    context_snippet: str = Field(default='', alias='contextSnippet')
    line_number: Optional[int] = Field(default=None, alias='lineNumber')
    change_description: str = Field(alias='changeDescription')
    updates: Dict[str, Any] = Field(default_factory=dict)
    evidence: Optional[LineEvidence] = None


class LLMTimelineEvent(_CamelModel):
    entity_type: str = Field(alias='entityType')
    entity_id: str = Field(default='', alias='entityId')
    entity_name: str = Field(alias='entityName')
    action: TimelineAction
    payload: Dict[str, Any] = Field(default_factory=dict)
    description: str = ''
    confidence: float = Field(ge=0, le=1)
    context_snippet: str = Field(default='', alias='contextSnippet')
    line_number: Optional[int] = Field(default=None, alias='lineNumber')
    evidence: Optional[LineEvidence] = None


class LLMExtractionResponse(_CamelModel):
    new_entities: List[LLMNewEntity] = Field(default_factory=list, alias='newEntities')
    updated_entities: List[LLMEntityUpdate] = Field(default_factory=list, alias='updatedEntities')
    new_timeline_events: List[LLMTimelineEvent] = Field(default_factory=list, alias='newTimelineEvents')
