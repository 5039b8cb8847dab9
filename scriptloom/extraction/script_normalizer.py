"""
Script Normalizer

Model-backed conversion of a raw comic script into a NormalizedScript.
"""

import hashlib

from scriptloom.core.constants import EXTRACTION_TEMPERATURE, SPEAKER_REQUIRED_TYPES
from scriptloom.core.exceptions import DocumentValidationError, ResponseFormatError, ScriptloomError
from scriptloom.core.logging_config import get_logger
from scriptloom.extraction.prompts import build_normalization_prompt
from scriptloom.llm.providers import BaseLLMProvider
from scriptloom.llm.response_parsing import parse_json_text
from scriptloom.models.documents import NormalizedScript, validate_document

logger = get_logger("extraction.normalizer")

NORMALIZE_MAX_TOKENS = 4000


def source_hash(text: str) -> str:
    return "sha256:" + hashlib.sha256(text.encode("utf-8")).hexdigest()


async def normalize_script(provider: BaseLLMProvider, raw_script: str) -> NormalizedScript:
    """
    Ask the model to split ``raw_script`` into pages, panels and blocks.

    The returned document always carries the hash of the input text, and a
    warning for every dialogue or thought block without a speaker.

    Raises:
        ScriptloomError: Empty input
        ProviderError: Transport or HTTP failure
        ResponseFormatError: Non-JSON or schema-invalid response
    """
    if not raw_script.strip():
        raise ScriptloomError("Input script is empty.")

    digest = source_hash(raw_script)
    prompt = f"{build_normalization_prompt(digest)}\n\nSCRIPT:\n{raw_script}"

    raw = await provider.generate(prompt, temperature=EXTRACTION_TEMPERATURE, max_tokens=NORMALIZE_MAX_TOKENS)
    data = parse_json_text(raw)
    if not isinstance(data, dict):
        raise ResponseFormatError("expected a JSON object", raw)
    data['source_hash'] = digest

    try:
        script = validate_document(NormalizedScript, data, "Normalized script")
    except DocumentValidationError as e:
        raise ResponseFormatError("; ".join(e.errors), raw)

    for page in script.pages:
        for panel in page.panels:
            for block in panel.blocks:
                if block.type in SPEAKER_REQUIRED_TYPES and not block.speaker:
                    script.warnings.append(
                        f"Page {page.page_number} Panel {panel.panel_number}: "
                        f"{block.type.value} block missing speaker."
                    )

    logger.info(f"Normalized script into {len(script.pages)} pages")
    return script
