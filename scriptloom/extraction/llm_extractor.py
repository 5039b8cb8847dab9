"""
External-Model Extractor (Pass 2)

Builds one constrained prompt, makes one provider call, and converts the
validated JSON into proposals. Any provider or format failure degrades to an
empty result plus a warning.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from scriptloom.core.constants import (
    EXTRACTION_TEMPERATURE,
    LINE_BLOCK_TYPE,
    MAX_LLM_INPUT_CHARS,
    MAX_SNIPPET_CHARS,
    EntityType,
    ProposalSource,
)
from scriptloom.core.exceptions import LLMError
from scriptloom.core.logging_config import get_logger
from scriptloom.extraction.entity_index import EntityIndex
from scriptloom.extraction.prompts import build_extraction_system_prompt, number_lines
from scriptloom.llm.providers import BaseLLMProvider
from scriptloom.llm.response_parsing import parse_model_response
from scriptloom.models.documents import (
    LineEvidence,
    LLMEntityUpdate,
    LLMExtractionResponse,
    LLMNewEntity,
    LLMTimelineEvent,
)
from scriptloom.models.proposal import CandidateEntity, EntityUpdate, Evidence, TimelineEvent
from scriptloom.utils.text_utils import truncate

logger = get_logger("extraction.llm")

_SUGGESTED_FIELDS = (
    'suggested_role',
    'suggested_description',
    'suggested_region',
    'suggested_time_of_day',
    'suggested_holder_id',
    'suggested_item_description',
)


@dataclass
class LLMExtractionResult:
    new_entities: List[CandidateEntity] = field(default_factory=list)
    updated_entities: List[EntityUpdate] = field(default_factory=list)
    timeline_events: List[TimelineEvent] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    used: bool = False


def _evidence(evidence: Optional[LineEvidence]) -> Optional[Evidence]:
    if evidence is None:
        return None
    return Evidence(block_type=LINE_BLOCK_TYPE, block_index=evidence.line_number, snippet=evidence.snippet)


def _entity_type(value: str) -> Optional[EntityType]:
    try:
        return EntityType(value.strip().lower())
    except ValueError:
        return None


class LLMExtractor:
    """Pass 2 over one script."""

    def __init__(
        self,
        provider: BaseLLMProvider,
        max_input_chars: int = MAX_LLM_INPUT_CHARS,
        id_prefix: str = "llm"
    ):
        self.provider = provider
        self.max_input_chars = max_input_chars
        self.id_prefix = id_prefix

    async def extract(
        self,
        text: str,
        index: EntityIndex,
        discovered_names: List[str],
        canon_locks: List[str]
    ) -> LLMExtractionResult:
        """
        Run one model extraction.

        Args:
            text: Raw script text
            index: Known entities (forbidden as new proposals)
            discovered_names: Pass 1 names (model told not to duplicate)
            canon_locks: Locked names (model told never to touch)

        Returns:
            LLMExtractionResult; empty with a warning on any failure
        """
        result = LLMExtractionResult()

        if len(text) > self.max_input_chars:
            text = text[:self.max_input_chars]
            result.warnings.append(
                f"Script truncated to {self.max_input_chars} characters for model extraction"
            )

        system_prompt = build_extraction_system_prompt(canon_locks, index.names(), discovered_names)

        try:
            raw = await self.provider.generate(
                number_lines(text),
                system_prompt=system_prompt,
                temperature=EXTRACTION_TEMPERATURE
            )
            response = parse_model_response(raw, LLMExtractionResponse)
        except LLMError as e:
            logger.warning(f"LLM extraction failed: {e.message}")
            result.warnings.append(f"LLM extraction failed: {e.message}")
            return result

        result.used = True
        self._convert(response, index, result)
        logger.info(
            f"Pass 2: {len(result.new_entities)} entities, "
            f"{len(result.updated_entities)} updates, {len(result.timeline_events)} events"
        )
        return result

    def _convert(self, response: LLMExtractionResponse, index: EntityIndex, result: LLMExtractionResult) -> None:
        counter = 0

        for raw in response.new_entities:
            entity_type = _entity_type(raw.entity_type)
            if entity_type is None:
                result.warnings.append(f"Model entity '{raw.name}' has unknown type '{raw.entity_type}'; ignored")
                continue
            if raw.name in index:
                result.warnings.append(f"Model proposed existing entity '{raw.name}'; ignored")
                continue
            counter += 1
            result.new_entities.append(self._candidate(raw, entity_type, f"{self.id_prefix}-{counter}"))

        for raw in response.updated_entities:
            update = self._update(raw, index)
            if update is None:
                result.warnings.append(f"Model update for unknown entity '{raw.entity_name}'; ignored")
                continue
            result.updated_entities.append(update)

        for raw in response.new_timeline_events:
            counter += 1
            result.timeline_events.append(self._event(raw, index, f"{self.id_prefix}-{counter}"))

    def _candidate(self, raw: LLMNewEntity, entity_type: EntityType, temp_id: str) -> CandidateEntity:
        fields = {}
        for name in _SUGGESTED_FIELDS:
            value = getattr(raw, name)
            if value is not None:
                fields[name] = getattr(value, 'value', value)

        return CandidateEntity(
            temp_id=temp_id,
            entity_type=entity_type,
            name=raw.name.strip(),
            source=ProposalSource.LLM,
            confidence=raw.confidence,
            context_snippet=truncate(raw.context_snippet, MAX_SNIPPET_CHARS),
            line_number=raw.line_number,
            fields=fields,
            evidence=_evidence(raw.evidence),
        )

    def _update(self, raw: LLMEntityUpdate, index: EntityIndex) -> Optional[EntityUpdate]:
        known = index.get(raw.entity_name)
        if known is None:
            return None
        return EntityUpdate(
            entity_id=known.entity_id or raw.entity_id,
            entity_type=known.entity_type,
            entity_name=known.name,
            source=ProposalSource.LLM,
            confidence=raw.confidence,
            context_snippet=truncate(raw.context_snippet, MAX_SNIPPET_CHARS),
            change_description=raw.change_description,
            updates=dict(raw.updates),
            line_number=raw.line_number,
            evidence=_evidence(raw.evidence),
        )

    def _event(self, raw: LLMTimelineEvent, index: EntityIndex, temp_id: str) -> TimelineEvent:
        known = index.get(raw.entity_name)
        entity_type = _entity_type(raw.entity_type) or EntityType.EVENT
        return TimelineEvent(
            temp_id=temp_id,
            entity_type=entity_type,
            entity_id=raw.entity_id or (known.entity_id if known else ""),
            entity_name=raw.entity_name,
            action=raw.action,
            payload=dict(raw.payload),
            description=raw.description,
            confidence=raw.confidence,
            source=ProposalSource.LLM,
            context_snippet=truncate(raw.context_snippet, MAX_SNIPPET_CHARS),
            line_number=raw.line_number,
            evidence=_evidence(raw.evidence),
        )
