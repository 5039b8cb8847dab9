"""
Tests for Storyboard Pipeline

Tests for scriptloom/pipelines/storyboard_pipeline.py
"""

import pytest

from scriptloom.core.exceptions import CoverageError, GroundingError, ProviderError
from scriptloom.models.documents import NormalizedScript
from scriptloom.pipelines.storyboard_pipeline import StoryboardPipeline


@pytest.fixture
def script(normalized_script_data):
    return NormalizedScript.model_validate(normalized_script_data)


class TestStoryboardPipeline:
    """Tests for StoryboardPipeline.compile."""

    @pytest.mark.asyncio
    async def test_valid_batch(self, make_provider, script, storyboard_response_data):
        pipeline = StoryboardPipeline(provider=make_provider(storyboard_response_data))

        batch = await pipeline.compile(script)

        assert batch.panel_pairs() == [(1, 1), (1, 2), (2, 1)]
        assert script.pages[0].panels[0].blocks[0].block_id == "p1-pa1-b0"

    @pytest.mark.asyncio
    async def test_missing_panel_fails_batch(self, make_provider, script, storyboard_response_data):
        storyboard_response_data["pages"].pop()
        pipeline = StoryboardPipeline(provider=make_provider(storyboard_response_data))

        with pytest.raises(CoverageError) as exc_info:
            await pipeline.compile(script)

        assert exc_info.value.missing == [(2, 1)]

    @pytest.mark.asyncio
    async def test_paraphrased_evidence_fails_batch(self, make_provider, script, storyboard_response_data):
        storyboard_response_data["pages"][1]["panels"][0]["evidence"][0]["snippet"] = "I have searched for years."
        pipeline = StoryboardPipeline(provider=make_provider(storyboard_response_data))

        with pytest.raises(GroundingError):
            await pipeline.compile(script)

    @pytest.mark.asyncio
    async def test_tight_word_limit(self, make_provider, script, storyboard_response_data):
        pipeline = StoryboardPipeline(provider=make_provider(storyboard_response_data), max_evidence_words=3)

        with pytest.raises(GroundingError) as exc_info:
            await pipeline.compile(script)

        assert any("(5 > 3)" in v for v in exc_info.value.violations)

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self, make_provider, script):
        pipeline = StoryboardPipeline(provider=make_provider(side_effect=ProviderError("fake", "timeout")))

        with pytest.raises(ProviderError):
            await pipeline.compile(script)
