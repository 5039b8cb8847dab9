"""
Line Rules

Ordered, pure line classifiers for the deterministic pass. Each rule takes
the current line and a read-only view of the scan state and returns a
LineEffect when it claims the line, or None to let the next rule try.
"""

import calendar
import re
import string
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Pattern, Set, Tuple

from scriptloom.core.config import ExtractionConfig
from scriptloom.core.constants import (
    CONFIDENCE_CAPTION_MARKER,
    CONFIDENCE_CUSTOM_PATTERN,
    CONFIDENCE_ENRICHMENT,
    CONFIDENCE_ITEM_CAPITALIZED,
    CONFIDENCE_ITEM_KEYWORD,
    CONFIDENCE_MOVE_KNOWN,
    CONFIDENCE_MOVE_PROPOSED,
    CONFIDENCE_PANEL_HEADING,
    CONFIDENCE_PROSE_HEADING,
    CONFIDENCE_SETTING_MARKER,
    CONFIDENCE_SLUG_LINE,
    CONFIDENCE_SPEAKER,
    ITEM_WINDOW_WORDS,
    LINE_BLOCK_TYPE,
    MAX_AMBIGUOUS_PHRASE_LENGTH,
    MAX_CHARACTER_NAME_LENGTH,
    MAX_EVIDENCE_WORDS,
    MAX_LOCATION_NAME_LENGTH,
    MAX_SNIPPET_CHARS,
    MIN_AMBIGUOUS_PHRASE_LENGTH,
    MIN_LOCATION_NAME_LENGTH,
    CharacterRole,
    EntityType,
    ProposalSource,
    ScriptVocabulary,
    TimelineAction,
)
from scriptloom.core.exceptions import InvalidPatternError
from scriptloom.core.logging_config import get_logger
from scriptloom.extraction.entity_index import EntityIndex
from scriptloom.models.proposal import (
    AmbiguousPhrase,
    CandidateEntity,
    EntityUpdate,
    Evidence,
    TimelineEvent,
    WorldSnapshot,
)
from scriptloom.utils.text_utils import leading_words, normalize_name, title_case, truncate

logger = get_logger("extraction.rules")

SLUG_LINE = re.compile(r'^(INT|EXT)\.\s+([^-]+?)(?:\s+-\s+(.+))?$', re.IGNORECASE)
PROSE_HEADING = re.compile(
    r'^(?:(Panel\s+\d+)[.:]?\s+)?(Interior|Exterior)[.\s]+([^.]+)',
    re.IGNORECASE
)
SPEAKER_LINE = re.compile(r"^([A-Z][A-Z\s'.,-]{0,29}?)\s*(?:\(.*?\))?$")
INLINE_DIALOGUE = re.compile(r"^([A-Z][A-Z'.\- ]{0,29}?)\s*(?:\(([^)]*)\))?:\s*(\S.*)$")
SETTING_MARKER = re.compile(r'^Setting:\s*(.+)$', re.IGNORECASE)
CAPTION_MONTH_YEAR = re.compile(
    r'^CAPTION:\s*"?([A-Za-z]+)\s+(\d{4})(?:\s*[—-]\s*([^"]*))?"?\s*$',
    re.IGNORECASE
)
CAPTION_YEAR = re.compile(r'^CAPTION:\s*"?(\d{4})\b\s*(?:[—,.:-]\s*)?([^"]*)"?\s*$', re.IGNORECASE)
CAPS_PHRASE = re.compile(r"\b[A-Z][A-Z\s'.,-]{2,}\b")

_MONTHS = {name.lower() for name in calendar.month_name if name}
_PUNCT = string.punctuation + '—’“”'


# =============================================================================
# RULE INPUT / OUTPUT
# =============================================================================

@dataclass(frozen=True)
class LocationRef:
    """The scene the scan is currently in."""
    name: str
    entity_id: Optional[str]
    known: bool

    @property
    def key(self) -> str:
        return normalize_name(self.name)


@dataclass
class ScanState:
    """Mutable scan state. Rules only read it; the extractor applies effects."""
    current_location: Optional[LocationRef] = None
    discovered: Dict[str, CandidateEntity] = field(default_factory=dict)
    character_locations: Dict[str, Optional[str]] = field(default_factory=dict)
    emitted_updates: Set[Tuple[str, str]] = field(default_factory=set)


@dataclass
class LineEffect:
    new_entities: List[CandidateEntity] = field(default_factory=list)
    updates: List[EntityUpdate] = field(default_factory=list)
    events: List[TimelineEvent] = field(default_factory=list)
    ambiguous: List[AmbiguousPhrase] = field(default_factory=list)
    set_location: Optional[LocationRef] = None
    moves: Dict[str, str] = field(default_factory=dict)


class PatternCache:
    """Compiles each custom pattern once; a bad pattern becomes one warning."""

    def __init__(self):
        self._compiled: Dict[str, Optional[Pattern]] = {}
        self.warnings: List[str] = []

    def get(self, pattern: str) -> Optional[Pattern]:
        if pattern not in self._compiled:
            try:
                self._compiled[pattern] = re.compile(pattern, re.IGNORECASE)
            except re.error as e:
                self.fail(pattern, str(e))
        return self._compiled.get(pattern)

    def fail(self, pattern: str, reason: str) -> None:
        error = InvalidPatternError(pattern, reason)
        logger.warning(error.message)
        self.warnings.append(error.message)
        self._compiled[pattern] = None


@dataclass(frozen=True)
class LineContext:
    line: str
    text: str
    line_number: int
    next_line: Optional[str]
    vocabulary: ScriptVocabulary
    index: EntityIndex
    snapshot: WorldSnapshot
    config: ExtractionConfig
    patterns: PatternCache

    @property
    def snippet(self) -> str:
        return truncate(self.text, MAX_SNIPPET_CHARS)

    def evidence(self, start: int = 0) -> Evidence:
        """Verbatim evidence taken from ``text[start:]``, capped in words."""
        return Evidence(
            block_type=LINE_BLOCK_TYPE,
            block_index=self.line_number,
            snippet=leading_words(self.text[start:], MAX_EVIDENCE_WORDS),
        )


Rule = Callable[[LineContext, ScanState], Optional[LineEffect]]


def _is_taken(name: str, ctx: LineContext, state: ScanState) -> bool:
    key = normalize_name(name)
    return key in ctx.index or key in state.discovered


def _is_stop_phrase(phrase: str, vocabulary: ScriptVocabulary) -> bool:
    words = [w.strip(_PUNCT) for w in phrase.upper().split()]
    words = [w for w in words if w]
    if not words:
        return True
    if ' '.join(words) in vocabulary.screenplay_keywords:
        return True
    return all(w in vocabulary.screenplay_keywords for w in words)


# =============================================================================
# LOCATIONS
# =============================================================================

def _location_effect(
    ctx: LineContext,
    state: ScanState,
    name: str,
    region: str,
    time_of_day: str,
    confidence: float,
    description: str
) -> LineEffect:
    effect = LineEffect()
    key = normalize_name(name)
    known = ctx.index.get(name)

    if known is not None:
        effect.set_location = LocationRef(known.name, known.entity_id or None, True)
        if known.entity_type == EntityType.LOCATION:
            update = _enrichment_update(ctx, state, known.entity_id, known.name, region, time_of_day)
            if update is not None:
                effect.updates.append(update)
        return effect

    if key in state.discovered:
        existing = state.discovered[key]
        effect.set_location = LocationRef(existing.name, existing.temp_id, False)
        return effect

    fields = {'suggested_description': description, 'suggested_region': region}
    if time_of_day:
        fields['suggested_time_of_day'] = time_of_day

    effect.new_entities.append(CandidateEntity(
        temp_id="",
        entity_type=EntityType.LOCATION,
        name=name,
        source=ProposalSource.DETERMINISTIC,
        confidence=confidence,
        context_snippet=ctx.snippet,
        line_number=ctx.line_number,
        fields=fields,
        evidence=ctx.evidence(),
    ))
    effect.set_location = LocationRef(name, None, False)
    return effect


def _enrichment_update(
    ctx: LineContext,
    state: ScanState,
    entity_id: str,
    entity_name: str,
    region: str,
    time_of_day: str
) -> Optional[EntityUpdate]:
    """Propose folding heading details into a known location's description."""
    details = ", ".join(part for part in (region, time_of_day) if part)
    if not details:
        return None

    known = next((loc for loc in ctx.snapshot.locations if loc.id == entity_id), None)
    description = known.description if known else ""
    if details.lower() in description.lower():
        return None

    change = f"Enrich description with: {details}"
    if ((entity_id or normalize_name(entity_name)), change) in state.emitted_updates:
        return None

    return EntityUpdate(
        entity_id=entity_id,
        entity_type=EntityType.LOCATION,
        entity_name=entity_name,
        source=ProposalSource.DETERMINISTIC,
        confidence=CONFIDENCE_ENRICHMENT,
        context_snippet=ctx.snippet,
        change_description=change,
        updates={'description': f"{description}; {details}" if description else details},
        line_number=ctx.line_number,
        evidence=ctx.evidence(),
    )


def slug_line_rule(ctx: LineContext, state: ScanState) -> Optional[LineEffect]:
    """``INT. APARTMENT - NIGHT``"""
    match = SLUG_LINE.match(ctx.text)
    if not match:
        return None

    raw_name = match.group(2).strip()
    if len(raw_name) < MIN_LOCATION_NAME_LENGTH:
        return None

    region = "Interior" if match.group(1).upper() == "INT" else "Exterior"
    time_of_day = (match.group(3) or "").strip()
    return _location_effect(
        ctx, state,
        name=title_case(raw_name),
        region=region,
        time_of_day=time_of_day,
        confidence=CONFIDENCE_SLUG_LINE,
        description=f"Location from slug-line: {ctx.text}",
    )


def prose_heading_rule(ctx: LineContext, state: ScanState) -> Optional[LineEffect]:
    """``Panel 2 Interior. The old lighthouse.``"""
    match = PROSE_HEADING.match(ctx.text)
    if not match:
        return None

    raw_name = match.group(3).strip().strip(_PUNCT).strip()
    if not MIN_LOCATION_NAME_LENGTH <= len(raw_name) <= MAX_LOCATION_NAME_LENGTH:
        return None

    confidence = CONFIDENCE_PANEL_HEADING if match.group(1) else CONFIDENCE_PROSE_HEADING
    return _location_effect(
        ctx, state,
        name=title_case(raw_name),
        region=match.group(2).capitalize(),
        time_of_day="",
        confidence=confidence,
        description=f"Location from interior/exterior heading: {ctx.text}",
    )


# =============================================================================
# SPEAKERS
# =============================================================================

def _speaker_effect(
    ctx: LineContext,
    state: ScanState,
    raw_name: str,
    context_snippet: str
) -> Optional[LineEffect]:
    name = raw_name.strip().rstrip(_PUNCT).strip()
    if len(name) < 2 or len(name) > MAX_CHARACTER_NAME_LENGTH:
        return None
    if _is_stop_phrase(name, ctx.vocabulary):
        return None

    effect = LineEffect()
    key = normalize_name(name)
    known = ctx.index.get(name)

    if known is None:
        if key not in state.discovered:
            effect.new_entities.append(CandidateEntity(
                temp_id="",
                entity_type=EntityType.CHARACTER,
                name=title_case(name),
                source=ProposalSource.DETERMINISTIC,
                confidence=CONFIDENCE_SPEAKER,
                context_snippet=truncate(context_snippet, MAX_SNIPPET_CHARS),
                line_number=ctx.line_number,
                fields={
                    'suggested_role': CharacterRole.SUPPORTING.value,
                    'suggested_description': "Character identified from dialogue",
                },
                evidence=ctx.evidence(),
            ))
        return effect

    location = state.current_location
    # Names known only from config have no store id, so a move cannot be applied
    if known.entity_type != EntityType.CHARACTER or not known.entity_id or location is None:
        return effect

    if state.character_locations.get(key) == location.key:
        return effect

    confidence = CONFIDENCE_MOVE_KNOWN if location.known else CONFIDENCE_MOVE_PROPOSED
    effect.events.append(TimelineEvent(
        temp_id="",
        entity_type=EntityType.CHARACTER,
        entity_id=known.entity_id,
        entity_name=known.name,
        action=TimelineAction.MOVED_TO,
        payload={'locationId': location.entity_id or "", 'locationName': location.name},
        description=f"{known.name} moved to {location.name}",
        confidence=confidence,
        source=ProposalSource.DETERMINISTIC,
        context_snippet=ctx.snippet,
        line_number=ctx.line_number,
        evidence=ctx.evidence(),
    ))
    effect.moves[key] = location.key
    return effect


def speaker_rule(ctx: LineContext, state: ScanState) -> Optional[LineEffect]:
    """An ALL-CAPS cue line followed by an indented or quoted line."""
    match = SPEAKER_LINE.match(ctx.text)
    if not match or ctx.next_line is None:
        return None

    following = ctx.next_line.strip()
    if not following:
        return None
    if not (ctx.next_line[:1] in (' ', '\t') or following[:1] in ('"', "'", '“')):
        return None

    return _speaker_effect(ctx, state, match.group(1), f"{ctx.text}\n{following}")


def inline_dialogue_rule(ctx: LineContext, state: ScanState) -> Optional[LineEffect]:
    """``MAYA: "We leave tonight."`` or ``MAYA (whispering): go``"""
    match = INLINE_DIALOGUE.match(ctx.text)
    if not match:
        return None
    return _speaker_effect(ctx, state, match.group(1), ctx.text)


# =============================================================================
# CUSTOM PATTERNS
# =============================================================================

def custom_pattern_rule(ctx: LineContext, state: ScanState) -> Optional[LineEffect]:
    effect = LineEffect()
    seen: Set[str] = set()

    for custom in ctx.config.custom_patterns:
        compiled = ctx.patterns.get(custom.pattern)
        if compiled is None:
            continue
        match = compiled.search(ctx.text)
        if not match:
            continue

        raw = match.group(1) if compiled.groups and match.group(1) else match.group(0)
        name = title_case(raw)
        key = normalize_name(name)
        if not key or key in seen or _is_taken(name, ctx, state):
            continue
        seen.add(key)

        label = custom.label or custom.pattern
        effect.new_entities.append(CandidateEntity(
            temp_id="",
            entity_type=custom.entity_type,
            name=name,
            source=ProposalSource.DETERMINISTIC,
            confidence=CONFIDENCE_CUSTOM_PATTERN,
            context_snippet=ctx.snippet,
            line_number=ctx.line_number,
            fields={'suggested_description': f"Matched custom pattern: {label}"},
            evidence=ctx.evidence(match.start()),
        ))

    return effect if effect.new_entities else None


# =============================================================================
# TEMPORAL MARKERS
# =============================================================================

def _marker(
    ctx: LineContext,
    action: TimelineAction,
    description: str,
    payload: dict,
    confidence: float
) -> LineEffect:
    return LineEffect(events=[TimelineEvent(
        temp_id="",
        entity_type=EntityType.EVENT,
        entity_name="Timeline marker",
        action=action,
        payload=payload,
        description=description,
        confidence=confidence,
        source=ProposalSource.DETERMINISTIC,
        context_snippet=ctx.snippet,
        line_number=ctx.line_number,
        evidence=ctx.evidence(),
    )])


def temporal_marker_rule(ctx: LineContext, state: ScanState) -> Optional[LineEffect]:
    """``Setting: October 2025`` and ``CAPTION: 2035 - After the fall``"""
    setting = SETTING_MARKER.match(ctx.text)
    if setting:
        date_text = setting.group(1).strip()
        return _marker(
            ctx, TimelineAction.UPDATED,
            description=f"Setting: {date_text}",
            payload={'setting': date_text},
            confidence=CONFIDENCE_SETTING_MARKER,
        )

    month_year = CAPTION_MONTH_YEAR.match(ctx.text)
    if month_year and month_year.group(1).lower() in _MONTHS:
        month = month_year.group(1).capitalize()
        year = int(month_year.group(2))
        caption = (month_year.group(3) or "").strip() or f"{month} {year}"
        return _marker(
            ctx, TimelineAction.CREATED,
            description=f"Caption: {caption}",
            payload={'year': year, 'month': month, 'caption': caption},
            confidence=CONFIDENCE_CAPTION_MARKER,
        )

    year_only = CAPTION_YEAR.match(ctx.text)
    if year_only:
        year = int(year_only.group(1))
        caption = year_only.group(2).strip() or str(year)
        return _marker(
            ctx, TimelineAction.CREATED,
            description=f"Caption: {caption}",
            payload={'year': year, 'caption': caption},
            confidence=CONFIDENCE_CAPTION_MARKER,
        )

    return None


# =============================================================================
# ITEMS
# =============================================================================

def _clean_word(word: str) -> str:
    return word.strip(_PUNCT)


def item_action_rule(ctx: LineContext, state: ScanState) -> Optional[LineEffect]:
    """``Maya picks up the rusted key.``"""
    lowered = ctx.text.lower()
    vocabulary = ctx.vocabulary

    for verb in vocabulary.item_verbs:
        found = re.search(r'\b' + re.escape(verb) + r'\b', lowered)
        if found:
            break
    else:
        return None

    words = [_clean_word(w) for w in ctx.text[found.end():].split()[:ITEM_WINDOW_WORDS]]
    name, confidence = None, 0.0

    for position, word in enumerate(words):
        if word.upper() in vocabulary.item_keywords:
            modifier = words[position - 1] if position > 0 else ""
            if modifier and modifier.isalpha() and modifier.lower() not in vocabulary.article_words:
                name = f"{modifier} {word}"
            else:
                name = word
            confidence = CONFIDENCE_ITEM_KEYWORD
            break

    if name is None:
        start = 0
        while start < len(words) and words[start].lower() in vocabulary.article_words:
            start += 1
        phrase = []
        for word in words[start:]:
            if not word or not word[0].isupper():
                break
            phrase.append(word)
        if phrase:
            name = ' '.join(phrase)
            confidence = CONFIDENCE_ITEM_CAPITALIZED

    if not name:
        return None

    name = title_case(name)
    if _is_taken(name, ctx, state) or _is_stop_phrase(name, vocabulary):
        return None

    return LineEffect(new_entities=[CandidateEntity(
        temp_id="",
        entity_type=EntityType.ITEM,
        name=name,
        source=ProposalSource.DETERMINISTIC,
        confidence=confidence,
        context_snippet=ctx.snippet,
        line_number=ctx.line_number,
        fields={'suggested_item_description': f"Item detected with action: {verb}"},
        evidence=ctx.evidence(found.start()),
    )])


# =============================================================================
# AMBIGUOUS PHRASES
# =============================================================================

def ambiguous_phrase_rule(ctx: LineContext, state: ScanState) -> Optional[LineEffect]:
    for phrase in CAPS_PHRASE.findall(ctx.text):
        clean = phrase.strip().strip(_PUNCT).strip()
        if not MIN_AMBIGUOUS_PHRASE_LENGTH <= len(clean) <= MAX_AMBIGUOUS_PHRASE_LENGTH:
            continue
        if _is_stop_phrase(clean, ctx.vocabulary) or _is_taken(clean, ctx, state):
            continue
        return LineEffect(ambiguous=[AmbiguousPhrase(text=clean, line_number=ctx.line_number)])
    return None


DEFAULT_RULES: Tuple[Rule, ...] = (
    slug_line_rule,
    prose_heading_rule,
    speaker_rule,
    inline_dialogue_rule,
    custom_pattern_rule,
    temporal_marker_rule,
    item_action_rule,
    ambiguous_phrase_rule,
)
