"""
Scriptloom Storyboard Pipeline

Batch storyboard compilation: NormalizedScript in, StoryboardBatch out.
Any grounding or coverage failure fails the whole batch.
"""

from typing import Any, Dict, Optional

from scriptloom.core.config import LLMConfig
from scriptloom.core.constants import MAX_EVIDENCE_WORDS
from scriptloom.core.logging_config import get_logger
from scriptloom.extraction.storyboard_compiler import compile_storyboard
from scriptloom.llm.providers import BaseLLMProvider
from scriptloom.llm.registry import create_provider
from scriptloom.models.documents import NormalizedScript, StoryboardBatch
from scriptloom.pipelines.base_pipeline import BasePipeline, PipelineStep
from scriptloom.validation.coverage import build_manifest, validate_batch_coverage
from scriptloom.validation.grounding import validate_storyboard_grounding

logger = get_logger("pipelines.storyboard")


class StoryboardPipeline(BasePipeline[NormalizedScript, StoryboardBatch]):
    """One model call per script, then strict grounding and coverage checks."""

    def __init__(
        self,
        provider: Optional[BaseLLMProvider] = None,
        llm_config: Optional[LLMConfig] = None,
        max_evidence_words: int = MAX_EVIDENCE_WORDS
    ):
        self.provider = provider
        self.llm_config = llm_config
        self.max_evidence_words = max_evidence_words
        super().__init__("storyboard")

    def _define_steps(self) -> None:
        self._steps = [
            PipelineStep("prepare", "Assign block ids and build the manifest"),
            PipelineStep("compile", "Ask the model for one entry per panel"),
            PipelineStep("ground", "Check every evidence snippet against its block"),
            PipelineStep("coverage", "Check every manifest pair is covered exactly once"),
        ]

    async def compile(self, script: NormalizedScript) -> StoryboardBatch:
        """Run the pipeline and return the validated batch."""
        return await self.run_or_raise(script)

    async def _execute_step(
        self,
        step: PipelineStep,
        input_data: Any,
        context: Dict[str, Any]
    ) -> Any:
        if step.name == "prepare":
            script = input_data.ensure_block_ids()
            context['script'] = script
            context['manifest'] = build_manifest(script)
            return script

        if step.name == "compile":
            provider = self.provider or create_provider(self.llm_config)
            return await compile_storyboard(provider, input_data, context['manifest'])

        if step.name == "ground":
            validate_storyboard_grounding(input_data, context['script'], self.max_evidence_words)
            return input_data

        if step.name == "coverage":
            validate_batch_coverage(context['manifest'], input_data)
            logger.info(f"Storyboard validated: {len(context['manifest'])} panels")
            return input_data

        raise ValueError(f"Unknown step: {step.name}")
