"""
Normalized Script Parser

Deterministic batch pass over a NormalizedScript producing three trackers:
a per-page storyboard summary, a character tracker and a lore tracker.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set

from scriptloom.core.constants import DEFAULT_VOCABULARY, BlockType, ScriptVocabulary
from scriptloom.core.logging_config import get_logger
from scriptloom.models.documents import (
    CharacterRecord,
    CharacterTracker,
    LoreRecord,
    LoreTracker,
    NormalizedScript,
    StoryboardPageSummary,
    StoryboardSummary,
)

logger = get_logger("extraction.normalized_parser")

ART_NOTE_NAME = re.compile(r'\b([A-Z][A-Z]+(?:\s+[A-Z][A-Z]+)*)\s*(?:\((?:\d+|[A-Z]+)\))?')
WELCOME_TO = re.compile(r"WELCOME TO\s+([A-Z][A-Z'\s-]*[A-Z])")
CAPS_GROUP = re.compile(r'\bTHE\s+[A-Z][A-Z\s]+\b')
LOCATION_CAPTION = re.compile(
    r'^[A-Z0-9][^\n]*[,.-][^\n]*(MORNING|AFTERNOON|EVENING|NIGHT|DAY|DAWN|DUSK|AM|PM)?\.?$',
    re.IGNORECASE
)
CANON_STATEMENT = re.compile(r'^The\b|\bwas\b|\bbegan\b', re.IGNORECASE)
STATE_CHANGE = re.compile(
    r'\b(died|dies|killed|destroyed|collapsed|exploded|began to rise|jaws closing)\b',
    re.IGNORECASE
)


def _sorted_unique(values: Iterable[str]) -> List[str]:
    return sorted(set(values), key=lambda s: (s.lower(), s))


def _word_pattern(terms: Iterable[str], flags: int = 0) -> Optional[re.Pattern]:
    terms = sorted({t for t in terms if t}, key=len, reverse=True)
    if not terms:
        return None
    return re.compile(r'\b(' + '|'.join(re.escape(t) for t in terms) + r')\b', flags)


class _PageIndex:
    """name -> set of pages"""

    def __init__(self):
        self._pages: Dict[str, Set[int]] = {}

    def add(self, name: str, page: int) -> None:
        key = (name or "").strip()
        if key:
            self._pages.setdefault(key, set()).add(page)

    def records(self) -> List[LoreRecord]:
        return [
            LoreRecord(name=name, pages=sorted(self._pages[name]))
            for name in _sorted_unique(self._pages)
        ]


@dataclass
class _CharacterStats:
    pages: Set[int]
    lines: int = 0
    quotes: List[str] = None

    def __post_init__(self):
        if self.quotes is None:
            self.quotes = []


@dataclass
class TrackerBundle:
    storyboard: StoryboardSummary
    characters: CharacterTracker
    lore: LoreTracker


class NormalizedScriptParser:
    """
    Derives trackers from block types and a few textual cues.

    Artifact cues default to the item keywords of the vocabulary. Concept
    terms and faction roles are project specific and empty by default.
    """

    def __init__(
        self,
        vocabulary: ScriptVocabulary = DEFAULT_VOCABULARY,
        artifact_terms: Optional[Iterable[str]] = None,
        concept_terms: Iterable[str] = (),
        faction_roles: Iterable[str] = ()
    ):
        self.vocabulary = vocabulary
        terms = artifact_terms if artifact_terms is not None else vocabulary.item_keywords
        self._artifacts = _word_pattern(terms, re.IGNORECASE)
        self._concepts = _word_pattern(concept_terms)
        self._factions = _word_pattern(faction_roles)

    def parse(self, script: NormalizedScript) -> TrackerBundle:
        characters: Dict[str, _CharacterStats] = {}
        artifacts, locations, concepts = _PageIndex(), _PageIndex(), _PageIndex()
        events, canon, factions = _PageIndex(), _PageIndex(), _PageIndex()
        summaries = []

        for page in script.pages:
            number = page.page_number
            page_chars, page_locations, page_markers, beats = set(), set(), set(), set()

            for panel in page.panels:
                for block in panel.blocks:
                    text = block.text or ""

                    if block.type == BlockType.NARRATOR:
                        beats.add("Narrator observation present")
                        statement = text.strip()
                        if CANON_STATEMENT.search(statement):
                            canon.add(statement, number)
                        change = STATE_CHANGE.search(statement)
                        if change:
                            events.add(f"Event candidate: {change.group(1).lower()}", number)

                    elif block.type == BlockType.TITLE_CARD:
                        beats.add("Title card")

                    elif block.type == BlockType.CRAWLER:
                        beats.add("News crawler")

                    elif block.type in (BlockType.DIALOGUE, BlockType.THOUGHT):
                        speaker = (block.speaker or "").strip()
                        if speaker:
                            page_chars.add(speaker)
                            beats.add(f"Dialogue from {speaker}")
                            stats = characters.setdefault(speaker, _CharacterStats(pages=set()))
                            stats.pages.add(number)
                            stats.lines += 1
                            if len(stats.quotes) < 2:
                                stats.quotes.append(text)
                        self._add_terms(self._concepts, text, concepts, number)

                    elif block.type == BlockType.SFX:
                        if self._add_terms(self._concepts, text, concepts, number):
                            beats.add("Concept term in SFX")

                    elif block.type == BlockType.ART_NOTE:
                        for name in self._art_note_names(text):
                            if name.split()[-1] in self.vocabulary.place_indicators:
                                page_locations.add(name)
                                locations.add(name, number)
                                continue
                            page_chars.add(name)
                            characters.setdefault(name, _CharacterStats(pages=set())).pages.add(number)
                        welcome = WELCOME_TO.search(text)
                        if welcome:
                            place = welcome.group(1).strip()
                            page_locations.add(place)
                            locations.add(place, number)
                        if self._artifacts is not None:
                            for match in self._artifacts.finditer(text):
                                artifacts.add(match.group(1).lower(), number)
                        for group in CAPS_GROUP.findall(text):
                            factions.add(group.strip(), number)
                        self._add_terms(self._factions, text, factions, number)

                    elif block.type == BlockType.CAPTION:
                        caption = text.strip()
                        if caption and LOCATION_CAPTION.match(caption):
                            page_locations.add(caption)
                            page_markers.add(caption)
                            locations.add(caption, number)
                            events.add("Event candidate: caption marker", number)

            summaries.append(StoryboardPageSummary(
                page_number=number,
                panel_count=len(page.panels),
                locations=_sorted_unique(page_locations),
                time_markers=_sorted_unique(page_markers),
                characters=_sorted_unique(page_chars),
                beats=_sorted_unique(beats),
            ))

        records = []
        for name in _sorted_unique(characters):
            stats = characters[name]
            pages = sorted(stats.pages)
            records.append(CharacterRecord(
                name=name,
                pages_present=pages,
                first_appearance_page=pages[0],
                lines_count=stats.lines,
                notable_quotes=stats.quotes,
            ))

        logger.info(f"Parsed {len(summaries)} pages, {len(records)} characters")
        return TrackerBundle(
            storyboard=StoryboardSummary(pages=summaries),
            characters=CharacterTracker(characters=records),
            lore=LoreTracker(
                artifacts=artifacts.records(),
                locations=locations.records(),
                concepts=concepts.records(),
                events=events.records(),
                canon=canon.records(),
                factions=factions.records(),
            ),
        )

    @staticmethod
    def _add_terms(pattern: Optional[re.Pattern], text: str, target: _PageIndex, page: int) -> bool:
        if pattern is None:
            return False
        found = False
        for match in pattern.finditer(text):
            target.add(match.group(1), page)
            found = True
        return found

    def _art_note_names(self, text: str) -> List[str]:
        names = []
        for match in ART_NOTE_NAME.finditer(text):
            candidate = match.group(1).strip()
            words = candidate.split()
            if len(candidate) < 2 or words[0] == "THE":
                continue
            ignored = self.vocabulary.screenplay_keywords | self.vocabulary.item_keywords
            if all(w in ignored for w in words):
                continue
            if candidate.startswith("WELCOME TO"):
                continue
            names.append(candidate)
        return _sorted_unique(names)
