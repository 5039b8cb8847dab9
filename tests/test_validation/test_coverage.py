"""
Tests for Coverage Validator

Tests for scriptloom/validation/coverage.py
"""

import logging

import pytest

from scriptloom.core.exceptions import CoverageError
from scriptloom.models.documents import NormalizedScript, StoryboardBatch
from scriptloom.validation.coverage import build_manifest, check_coverage, validate_batch_coverage


class TestCheckCoverage:
    """Tests for a single collection against the manifest."""

    def test_exact_cover_passes(self):
        check_coverage([(1, 1), (1, 2)], [(1, 2), (1, 1)], "coverage")

    def test_missing_pair_named(self):
        """Five required pairs, four produced: the missing one is reported."""
        manifest = [(1, 1), (1, 2), (1, 3), (2, 1), (2, 2)]
        produced = [(1, 1), (1, 2), (2, 1), (2, 2)]

        with pytest.raises(CoverageError) as exc_info:
            check_coverage(manifest, produced, "pages.panels")

        error = exc_info.value
        assert error.missing == [(1, 3)]
        assert error.collection == "pages.panels"
        assert error.message == "Coverage failed for 'pages.panels': missing 1:3"

    def test_extra_pair(self):
        with pytest.raises(CoverageError) as exc_info:
            check_coverage([(1, 1), (1, 2)], [(1, 1), (1, 2), (3, 1)], "coverage")

        assert exc_info.value.extra == [(3, 1)]

    def test_duplicated_pair(self):
        with pytest.raises(CoverageError) as exc_info:
            check_coverage([(1, 1), (1, 2)], [(1, 1), (1, 2), (1, 2)], "coverage")

        assert exc_info.value.duplicated == [(1, 2)]
        assert "duplicated 1:2" in exc_info.value.message

    def test_collapse_rejected(self):
        with pytest.raises(CoverageError) as exc_info:
            check_coverage([(1, 1), (1, 2), (2, 1)], [(1, 1)], "pages.panels")

        assert exc_info.value.collapsed is True
        assert "collapsed to a single page/panel" in exc_info.value.message

    def test_single_pair_manifest_is_not_a_collapse(self):
        check_coverage([(1, 1)], [(1, 1)], "coverage")


class TestBatchCoverage:
    """Tests for validate_batch_coverage and build_manifest."""

    @pytest.fixture
    def manifest(self, normalized_script_data):
        return build_manifest(NormalizedScript.model_validate(normalized_script_data))

    def test_build_manifest_in_document_order(self, manifest):
        assert [entry.key for entry in manifest] == [(1, 1), (1, 2), (2, 1)]

    def test_complete_batch(self, manifest, storyboard_response_data):
        validate_batch_coverage(manifest, StoryboardBatch.model_validate(storyboard_response_data))

    def test_missing_coverage_entry(self, manifest, storyboard_response_data):
        storyboard_response_data["coverage"].pop()
        batch = StoryboardBatch.model_validate(storyboard_response_data)

        with pytest.raises(CoverageError) as exc_info:
            validate_batch_coverage(manifest, batch)

        assert exc_info.value.collection == "coverage"
        assert exc_info.value.missing == [(2, 1)]

    def test_echoed_manifest_checked(self, manifest, storyboard_response_data):
        storyboard_response_data["manifest"] = [{"page": 1, "panel": 1}]
        batch = StoryboardBatch.model_validate(storyboard_response_data)

        with pytest.raises(CoverageError) as exc_info:
            validate_batch_coverage(manifest, batch)

        assert exc_info.value.collection == "manifest"

    def test_absent_manifest_is_allowed(self, manifest, storyboard_response_data):
        del storyboard_response_data["manifest"]
        validate_batch_coverage(manifest, StoryboardBatch.model_validate(storyboard_response_data))

    def test_missing_status_only_warns(self, manifest, storyboard_response_data, caplog):
        storyboard_response_data["coverage"][0]["status"] = "missing"
        batch = StoryboardBatch.model_validate(storyboard_response_data)

        with caplog.at_level(logging.WARNING, logger="scriptloom"):
            validate_batch_coverage(manifest, batch)

        assert "missing content: 1:1" in caplog.text
