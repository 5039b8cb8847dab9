"""
Storyboard Compiler

Builds the batch prompt payload from a normalized script and asks the model
for one storyboard entry per manifest pair. Validation happens in the
storyboard pipeline.
"""

import json
from typing import Any, Dict, List

from scriptloom.core.constants import EXTRACTION_TEMPERATURE, MAX_BLOCK_PROMPT_CHARS
from scriptloom.core.logging_config import get_logger
from scriptloom.extraction.prompts import STORYBOARD_SYSTEM_PROMPT
from scriptloom.llm.providers import BaseLLMProvider
from scriptloom.llm.response_parsing import parse_model_response
from scriptloom.models.documents import ManifestEntry, NormalizedScript, StoryboardBatch
from scriptloom.utils.text_utils import compact_whitespace

logger = get_logger("extraction.storyboard")

STORYBOARD_MAX_TOKENS = 7000


def build_payload(script: NormalizedScript, manifest: List[ManifestEntry]) -> Dict[str, Any]:
    """``{manifest, panels}`` with block text compacted for the prompt."""
    panels = []
    for page in script.pages:
        for panel in page.panels:
            blocks = []
            for block in panel.blocks:
                entry = {'block_id': block.block_id, 'type': block.type.value}
                if block.speaker:
                    entry['speaker'] = block.speaker
                entry['text'] = compact_whitespace(block.text, MAX_BLOCK_PROMPT_CHARS)
                blocks.append(entry)
            panels.append({'page': page.page_number, 'panel': panel.panel_number, 'blocks': blocks})

    return {
        'manifest': [entry.model_dump() for entry in manifest],
        'panels': panels,
    }


def build_prompt(payload: Dict[str, Any]) -> str:
    return f"{STORYBOARD_SYSTEM_PROMPT}\n\nINPUT_JSON:\n{json.dumps(payload, ensure_ascii=False)}"


async def compile_storyboard(
    provider: BaseLLMProvider,
    script: NormalizedScript,
    manifest: List[ManifestEntry]
) -> StoryboardBatch:
    """
    One model call for the whole script.

    Raises:
        ProviderError: Transport or HTTP failure
        ResponseFormatError: Response is not a StoryboardBatch
    """
    prompt = build_prompt(build_payload(script, manifest))
    logger.info(f"Compiling storyboard for {len(manifest)} panels")
    raw = await provider.generate(
        prompt,
        temperature=EXTRACTION_TEMPERATURE,
        max_tokens=STORYBOARD_MAX_TOKENS
    )
    return parse_model_response(raw, StoryboardBatch)
