"""
Scriptloom Constants

Global constants, enumerations and vocabularies used throughout Scriptloom.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

# =============================================================================
# VERSION INFO
# =============================================================================
VERSION = "1.0.0"
PROJECT_NAME = "Scriptloom"

# =============================================================================
# ENTITY / TIMELINE ENUMS
# =============================================================================

class EntityType(Enum):
    """Kinds of entity the extractors can propose."""
    CHARACTER = "character"
    LOCATION = "location"
    ITEM = "item"
    FACTION = "faction"
    EVENT = "event"
    CONCEPT = "concept"
    ARTIFACT = "artifact"
    RULE = "rule"


class ProposalSource(Enum):
    """Which pass produced a proposal."""
    DETERMINISTIC = "deterministic"
    LLM = "llm"


class TimelineAction(Enum):
    """Timeline event actions."""
    CREATED = "created"
    MOVED_TO = "moved_to"
    ACQUIRED = "acquired"
    DROPPED = "dropped"
    STATUS_CHANGED = "status_changed"
    UPDATED = "updated"
    DELETED = "deleted"
    RELATIONSHIP_CHANGED = "relationship_changed"


class CharacterRole(Enum):
    """Suggested narrative role for a character."""
    PROTAGONIST = "Protagonist"
    ANTAGONIST = "Antagonist"
    SUPPORTING = "Supporting"
    MINOR = "Minor"


class BlockType(Enum):
    """Block types in a normalized comic script."""
    ART_NOTE = "ART_NOTE"
    DIALOGUE = "DIALOGUE"
    CAPTION = "CAPTION"
    NARRATOR = "NARRATOR"
    SFX = "SFX"
    THOUGHT = "THOUGHT"
    CRAWLER = "CRAWLER"
    TITLE_CARD = "TITLE_CARD"
    OTHER = "OTHER"


# Source-unit type used for evidence taken from raw script lines
LINE_BLOCK_TYPE = "LINE"

# Block types that must carry a speaker
SPEAKER_REQUIRED_TYPES = frozenset({BlockType.DIALOGUE, BlockType.THOUGHT})


class MergePolicy(Enum):
    """Which pass wins when both propose the same normalized name."""
    DETERMINISTIC_PRIMARY = "deterministic_primary"
    MODEL_PRIMARY = "model_primary"


class TypeConflictPolicy(Enum):
    """How to treat one name proposed with two different entity types."""
    SURFACE = "surface"
    KEEP_PRIMARY = "keep_primary"


# =============================================================================
# LLM PROVIDERS
# =============================================================================

class LLMProvider(Enum):
    """Supported LLM providers."""
    GEMINI = "gemini"
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GROQ = "groq"
    GROK = "grok"
    DEEPSEEK = "deepseek"


# First key present wins
PROVIDER_ENV_ORDER: List[Tuple[LLMProvider, str]] = [
    (LLMProvider.GEMINI, "GEMINI_API_KEY"),
    (LLMProvider.ANTHROPIC, "ANTHROPIC_API_KEY"),
    (LLMProvider.OPENAI, "OPENAI_API_KEY"),
    (LLMProvider.GROQ, "GROQ_API_KEY"),
    (LLMProvider.GROK, "GROK_API_KEY"),
    (LLMProvider.DEEPSEEK, "DEEPSEEK_API_KEY"),
]

DEFAULT_MODELS: Dict[LLMProvider, str] = {
    LLMProvider.ANTHROPIC: "claude-sonnet-4-5-20250929",
    LLMProvider.GEMINI: "gemini-2.0-flash",
    LLMProvider.OPENAI: "gpt-4o",
    LLMProvider.GROK: "grok-2-latest",
    LLMProvider.DEEPSEEK: "deepseek-chat",
    LLMProvider.GROQ: "llama-3.3-70b-versatile",
}

OPENAI_COMPATIBLE_ENDPOINTS: Dict[LLMProvider, str] = {
    LLMProvider.OPENAI: "https://api.openai.com/v1/chat/completions",
    LLMProvider.GROQ: "https://api.groq.com/openai/v1/chat/completions",
    LLMProvider.GROK: "https://api.x.ai/v1/chat/completions",
    LLMProvider.DEEPSEEK: "https://api.deepseek.com/v1/chat/completions",
}

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

EXTRACTION_TEMPERATURE = 0.1

# =============================================================================
# EXTRACTION LIMITS
# =============================================================================

MAX_EVIDENCE_WORDS = 12
MAX_SNIPPET_CHARS = 200
MAX_LLM_INPUT_CHARS = 30000
MAX_BLOCK_PROMPT_CHARS = 500
MAX_CHARACTER_NAME_LENGTH = 30
MIN_LOCATION_NAME_LENGTH = 3
MAX_LOCATION_NAME_LENGTH = 50
MIN_AMBIGUOUS_PHRASE_LENGTH = 3
MAX_AMBIGUOUS_PHRASE_LENGTH = 30
ITEM_WINDOW_WORDS = 6

# Pass 1 confidences
CONFIDENCE_SLUG_LINE = 0.95
CONFIDENCE_PANEL_HEADING = 0.9
CONFIDENCE_PROSE_HEADING = 0.85
CONFIDENCE_SPEAKER = 0.9
CONFIDENCE_MOVE_KNOWN = 0.85
CONFIDENCE_MOVE_PROPOSED = 0.75
CONFIDENCE_CUSTOM_PATTERN = 0.7
CONFIDENCE_SETTING_MARKER = 0.95
CONFIDENCE_CAPTION_MARKER = 0.9
CONFIDENCE_ITEM_KEYWORD = 0.8
CONFIDENCE_ITEM_CAPITALIZED = 0.7
CONFIDENCE_ENRICHMENT = 0.9

# =============================================================================
# VOCABULARY
# =============================================================================

SCREENPLAY_KEYWORDS = frozenset({
    'INT', 'EXT', 'CUT', 'FADE', 'DISSOLVE', 'SMASH', 'MATCH', 'CONTINUED',
    'CONT', 'ANGLE', 'CLOSE', 'WIDE', 'PAN', 'ZOOM', 'SFX', 'VO', 'OS', 'OC',
    'POV', 'INSERT', 'SUPER', 'TITLE', 'THE', 'AND', 'BUT', 'FOR', 'NOT',
    'WITH', 'FROM', 'PAGE', 'PANEL', 'SCENE', 'ACT', 'END', 'DAY', 'NIGHT',
    'MORNING', 'EVENING', 'LATER', 'CONTINUOUS', 'INTERCUT', 'FLASHBACK',
    'MONTAGE', 'BEGIN', 'RESUME', 'BACK', 'SAME', 'TIME', 'CAPTION', 'SETTING',
    'NARRATOR', 'NARRATION', 'DESCRIPTION', 'NOTE', 'ACTION', 'ESTABLISHING',
    'SHOT', 'EXTERIOR', 'INTERIOR', 'TO', 'IN', 'OUT', 'ON', 'AT', 'OF', 'A',
    'AN', 'IS', 'ARE', 'WAS', 'WERE', 'BE', 'BEEN',
})

PLACE_INDICATORS = frozenset({
    'CENTER', 'CENTRE', 'ROOM', 'BUILDING', 'STREET', 'LAB', 'LABORATORY',
    'HOSPITAL', 'GARAGE', 'OFFICE', 'BUREAU', 'HEADQUARTERS', 'HQ', 'APARTMENT',
    'HOUSE', 'MANSION', 'CHURCH', 'TEMPLE', 'SCHOOL', 'STATION', 'WAREHOUSE',
    'PARK', 'ALLEY', 'BRIDGE', 'TOWER', 'PRISON', 'JAIL', 'COURT', 'COURTROOM',
    'DINER', 'BAR', 'RESTAURANT', 'CAFÉ', 'CAFE', 'MALL', 'SHOP', 'STORE',
    'MARKET', 'ARENA', 'STADIUM', 'LIBRARY', 'MUSEUM', 'HALL', 'HALLWAY',
    'CORRIDOR', 'BASEMENT', 'ROOFTOP', 'ROOF', 'BUNKER', 'CAVE', 'FOREST',
    'DOCK', 'PORT', 'HARBOR', 'HANGAR', 'FACILITY', 'THEATRE', 'THEATER',
    'LOBBY', 'ELEVATOR', 'STUDIO', 'CLINIC',
})

ITEM_KEYWORDS = frozenset({
    'SWORD', 'BLADE', 'DAGGER', 'KNIFE', 'AXE', 'HAMMER', 'SPEAR', 'BOW',
    'GUN', 'PISTOL', 'RIFLE', 'WEAPON', 'SHIELD', 'ARMOR', 'RING', 'AMULET',
    'NECKLACE', 'PENDANT', 'STAFF', 'WAND', 'SCEPTER', 'CRYSTAL', 'ORB', 'GEM',
    'STONE', 'POTION', 'ELIXIR', 'VIAL', 'FLASK', 'SERUM', 'SHARD', 'SCROLL',
    'BOOK', 'TOME', 'MANUSCRIPT', 'LETTER', 'MAP', 'COMPASS', 'KEY', 'CROWN',
    'TIARA', 'HELMET', 'MASK', 'ARTIFACT', 'RELIC', 'TALISMAN', 'CHARM',
    'BADGE', 'DEVICE', 'GADGET', 'BAG', 'POUCH', 'SATCHEL', 'BACKPACK',
    'CLOAK', 'ROBE', 'CAPE', 'HOOD',
})

# Multi-word phrases first so "picks up" wins over "picks"
ITEM_ACTION_VERBS = (
    'picks up', 'pulls out', 'holds up', 'hands over',
    'holds', 'draws', 'picks', 'wields', 'carries', 'takes', 'grabs',
    'grasps', 'clutches', 'brandishes', 'lifts', 'retrieves', 'raises',
    'produces', 'unsheathes', 'hands', 'activates',
)

ARTICLE_WORDS = frozenset({'a', 'an', 'the', 'his', 'her', 'its', 'their', 'my', 'your', 'our'})


@dataclass(frozen=True)
class ScriptVocabulary:
    """Immutable word lists the deterministic extractor works from."""
    screenplay_keywords: FrozenSet[str] = SCREENPLAY_KEYWORDS
    place_indicators: FrozenSet[str] = PLACE_INDICATORS
    item_keywords: FrozenSet[str] = ITEM_KEYWORDS
    item_verbs: Tuple[str, ...] = ITEM_ACTION_VERBS
    article_words: FrozenSet[str] = ARTICLE_WORDS


DEFAULT_VOCABULARY = ScriptVocabulary()
