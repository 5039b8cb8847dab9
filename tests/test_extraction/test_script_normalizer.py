"""
Tests for Script Normalizer and Storyboard Compiler

Tests for scriptloom/extraction/script_normalizer.py and storyboard_compiler.py
"""

import hashlib
import json
import pytest

from scriptloom.core.exceptions import ResponseFormatError, ScriptloomError
from scriptloom.extraction.script_normalizer import normalize_script, source_hash
from scriptloom.extraction.storyboard_compiler import build_payload, build_prompt, compile_storyboard
from scriptloom.models.documents import NormalizedScript
from scriptloom.validation.coverage import build_manifest


RAW_SCRIPT = "PAGE ONE\nPanel 1\nMAYA: We leave tonight.\n"


class TestNormalizeScript:
    """Tests for normalize_script."""

    def test_source_hash(self):
        expected = "sha256:" + hashlib.sha256(RAW_SCRIPT.encode("utf-8")).hexdigest()
        assert source_hash(RAW_SCRIPT) == expected

    @pytest.mark.asyncio
    async def test_hash_overrides_model_value(self, make_provider, normalized_script_data):
        normalized_script_data["source_hash"] = "sha256:made-up"
        provider = make_provider(normalized_script_data)

        script = await normalize_script(provider, RAW_SCRIPT)

        assert script.source_hash == source_hash(RAW_SCRIPT)
        assert len(script.pages) == 2
        prompt = provider.generate.call_args.args[0]
        assert prompt.endswith("SCRIPT:\n" + RAW_SCRIPT)
        assert provider.generate.call_args.kwargs["max_tokens"] == 4000

    @pytest.mark.asyncio
    async def test_missing_speaker_warns(self, make_provider):
        provider = make_provider({
            "pages": [{"page_number": 1, "panels": [{"panel_number": 1, "blocks": [
                {"type": "DIALOGUE", "text": "Who's there?"},
                {"type": "THOUGHT", "text": "Not again.", "speaker": "ELI"}
            ]}]}]
        })

        script = await normalize_script(provider, RAW_SCRIPT)

        assert script.warnings == ["Page 1 Panel 1: DIALOGUE block missing speaker."]

    @pytest.mark.asyncio
    async def test_empty_input(self, make_provider):
        provider = make_provider({})

        with pytest.raises(ScriptloomError, match="Input script is empty."):
            await normalize_script(provider, "   \n")

        provider.generate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_schema_violation(self, make_provider):
        provider = make_provider({"pages": []})

        with pytest.raises(ResponseFormatError):
            await normalize_script(provider, RAW_SCRIPT)

    @pytest.mark.asyncio
    async def test_non_object_response(self, make_provider):
        provider = make_provider([1, 2, 3])

        with pytest.raises(ResponseFormatError):
            await normalize_script(provider, RAW_SCRIPT)


class TestStoryboardCompiler:
    """Tests for the storyboard payload and model call."""

    def test_payload_compacts_blocks(self, normalized_script_data):
        normalized_script_data["pages"][0]["panels"][1]["blocks"][0]["text"] = "We   leave\n\n" + "x" * 600
        script = NormalizedScript.model_validate(normalized_script_data).ensure_block_ids()

        payload = build_payload(script, build_manifest(script))

        assert payload["manifest"] == [
            {"page": 1, "panel": 1}, {"page": 1, "panel": 2}, {"page": 2, "panel": 1}
        ]
        block = payload["panels"][1]["blocks"][0]
        assert block["block_id"] == "p1-pa2-b0"
        assert block["speaker"] == "MAYA"
        assert block["text"].startswith("We leave x")
        assert len(block["text"]) == 500

    def test_prompt_embeds_payload(self):
        prompt = build_prompt({"manifest": [], "panels": []})
        assert prompt.endswith('INPUT_JSON:\n{"manifest": [], "panels": []}')

    @pytest.mark.asyncio
    async def test_compile_storyboard(self, make_provider, normalized_script_data, storyboard_response_data):
        script = NormalizedScript.model_validate(normalized_script_data).ensure_block_ids()
        provider = make_provider("```json\n" + json.dumps(storyboard_response_data) + "\n```")

        batch = await compile_storyboard(provider, script, build_manifest(script))

        assert batch.panel_pairs() == [(1, 1), (1, 2), (2, 1)]
        assert provider.generate.call_args.kwargs == {"temperature": 0.1, "max_tokens": 7000}
