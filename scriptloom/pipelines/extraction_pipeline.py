"""
Scriptloom Extraction Pipeline

Interactive extraction: raw script text in, reviewable Proposal out.

Steps: index -> pass1 -> pass2 (optional) -> merge -> ground -> finalize.
Model proposals are grounded inside pass2, before the merge. Pass 2 never
fails the pipeline; every problem there ends up in the proposal warnings.
"""

import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from scriptloom.core.config import ScriptloomConfig
from scriptloom.core.constants import DEFAULT_VOCABULARY, ScriptVocabulary
from scriptloom.core.exceptions import ConfigError
from scriptloom.core.logging_config import get_logger
from scriptloom.extraction.deterministic_extractor import DeterministicExtractor, DeterministicResult
from scriptloom.extraction.entity_index import EntityIndex
from scriptloom.extraction.llm_extractor import LLMExtractor
from scriptloom.extraction.merge import MergeResult, TypeResolver, merge_results
from scriptloom.llm.providers import BaseLLMProvider
from scriptloom.llm.registry import create_provider
from scriptloom.models.proposal import Proposal, ProposalMeta, WorldSnapshot
from scriptloom.pipelines.base_pipeline import BasePipeline, PipelineStep
from scriptloom.validation.grounding import LineGroundingValidator

logger = get_logger("pipelines.extraction")


class ExtractionPipeline(BasePipeline[str, Proposal]):
    """
    Two-pass extraction over one script.

    The model pass runs only when it is enabled and either Pass 1 left
    ambiguous phrases or ``always_run_llm`` is set. Without an injected
    provider, one is created from the environment on demand.
    """

    def __init__(
        self,
        config: Optional[ScriptloomConfig] = None,
        provider: Optional[BaseLLMProvider] = None,
        snapshot: Optional[WorldSnapshot] = None,
        vocabulary: ScriptVocabulary = DEFAULT_VOCABULARY,
        type_resolver: Optional[TypeResolver] = None
    ):
        self.config = config or ScriptloomConfig()
        self.provider = provider
        self.snapshot = snapshot or WorldSnapshot()
        self.vocabulary = vocabulary
        self.type_resolver = type_resolver
        super().__init__("extraction")

    def _define_steps(self) -> None:
        self._steps = [
            PipelineStep("index", "Build the known-entity index"),
            PipelineStep("pass1", "Deterministic line scan"),
            PipelineStep("pass2", "External-model extraction", required=False),
            PipelineStep("merge", "Merge and deduplicate both passes"),
            PipelineStep("ground", "Drop proposals without verbatim evidence"),
            PipelineStep("finalize", "Assemble the proposal"),
        ]

    async def extract(self, text: str) -> Proposal:
        """Run the pipeline and return the proposal."""
        return await self.run_or_raise(text)

    async def _execute_step(
        self,
        step: PipelineStep,
        input_data: Any,
        context: Dict[str, Any]
    ) -> Any:
        if step.name == "index":
            return self._build_index(input_data, context)
        if step.name == "pass1":
            return self._run_pass1(input_data, context)
        if step.name == "pass2":
            return await self._run_pass2(input_data, context)
        if step.name == "merge":
            return self._merge(input_data, context)
        if step.name == "ground":
            return self._ground(input_data, context)
        if step.name == "finalize":
            return self._finalize(input_data, context)
        raise ValueError(f"Unknown step: {step.name}")

    def _build_index(self, text: str, context: Dict[str, Any]) -> str:
        context['started'] = time.monotonic()
        context.setdefault('warnings', [])
        context['text'] = text
        context['index'] = EntityIndex.build(self.snapshot, self.config.extraction.known_entity_names)
        context['llm_used'] = False
        context['model'] = None
        return text

    def _run_pass1(self, text: str, context: Dict[str, Any]) -> str:
        extractor = DeterministicExtractor(self.config.extraction, vocabulary=self.vocabulary)
        result = extractor.extract(text, self.snapshot, context['index'])
        context['deterministic'] = result
        context['warnings'].extend(result.warnings)
        return text

    async def _run_pass2(self, text: str, context: Dict[str, Any]) -> str:
        settings = self.config.pipeline
        deterministic: DeterministicResult = context['deterministic']

        if not settings.enable_llm:
            return text
        if not deterministic.ambiguous_phrases and not settings.always_run_llm:
            logger.debug("No ambiguous phrases; skipping model pass")
            return text

        provider = self.provider
        if provider is None:
            try:
                provider = create_provider(self.config.llm)
            except ConfigError as e:
                context['warnings'].append(f"LLM pass skipped: {e.message}")
                return text

        extractor = LLMExtractor(provider, max_input_chars=settings.max_llm_input_chars)
        result = await extractor.extract(
            text,
            context['index'],
            deterministic.discovered_names,
            self.config.extraction.canon_locks,
        )
        context['warnings'].extend(result.warnings)
        context['llm_used'] = result.used

        # Ground before merging so an ungrounded model duplicate cannot
        # displace a grounded Pass 1 entry under model-primary.
        validator = LineGroundingValidator(text, settings.max_evidence_words)
        result.new_entities, entity_warnings = validator.filter(result.new_entities, "entity")
        result.updated_entities, update_warnings = validator.filter(result.updated_entities, "update")
        result.timeline_events, event_warnings = validator.filter(result.timeline_events, "event")
        context['warnings'].extend(entity_warnings + update_warnings + event_warnings)

        context['model'] = result
        return text

    def _merge(self, text: str, context: Dict[str, Any]) -> MergeResult:
        deterministic: DeterministicResult = context['deterministic']
        model = context['model']

        merged = merge_results(
            deterministic.new_entities,
            deterministic.updated_entities,
            deterministic.timeline_events,
            model.new_entities if model else (),
            model.updated_entities if model else (),
            model.timeline_events if model else (),
            policy=self.config.pipeline.merge_policy,
            canon_locks=self.config.extraction.canon_locks,
            conflict_policy=self.config.pipeline.type_conflict_policy,
            type_resolver=self.type_resolver,
        )
        context['warnings'].extend(merged.warnings)
        return merged

    def _ground(self, merged: MergeResult, context: Dict[str, Any]) -> MergeResult:
        validator = LineGroundingValidator(context['text'], self.config.pipeline.max_evidence_words)

        merged.new_entities, entity_warnings = validator.filter(merged.new_entities, "entity")
        merged.updated_entities, update_warnings = validator.filter(merged.updated_entities, "update")
        merged.timeline_events, event_warnings = validator.filter(merged.timeline_events, "event")

        context['warnings'].extend(entity_warnings + update_warnings + event_warnings)
        return merged

    def _finalize(self, merged: MergeResult, context: Dict[str, Any]) -> Proposal:
        text = context['text']
        duration_ms = int((time.monotonic() - context['started']) * 1000)

        meta = ProposalMeta(
            parsed_at=datetime.now(timezone.utc).isoformat(),
            raw_length=len(text),
            line_count=len(text.splitlines()),
            duration_ms=duration_ms,
            llm_used=context['llm_used'],
            warnings=list(context['warnings']),
        )

        logger.info(
            f"Proposal ready: {len(merged.new_entities)} entities, "
            f"{len(merged.updated_entities)} updates, {len(merged.timeline_events)} events"
        )
        return Proposal(
            meta=meta,
            new_entities=merged.new_entities,
            updated_entities=merged.updated_entities,
            timeline_events=merged.timeline_events,
            type_conflicts=merged.type_conflicts,
        )
