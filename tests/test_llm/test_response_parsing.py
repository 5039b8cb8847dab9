"""
Tests for Response Parsing

Tests for scriptloom/llm/response_parsing.py
"""

import pytest

from scriptloom.core.exceptions import ResponseFormatError
from scriptloom.llm.response_parsing import parse_json_text, parse_model_response
from scriptloom.models.documents import LLMExtractionResponse


class TestParseJsonText:
    """Tests for parse_json_text."""

    def test_plain_json(self):
        assert parse_json_text('{"a": 1}') == {"a": 1}

    def test_fenced_json(self):
        assert parse_json_text('```json\n{"a": [1, 2]}\n```') == {"a": [1, 2]}

    def test_empty(self):
        with pytest.raises(ResponseFormatError, match="empty response"):
            parse_json_text("```\n```")

    def test_prose(self):
        with pytest.raises(ResponseFormatError) as exc_info:
            parse_json_text("Here you go!")

        assert exc_info.value.details["response_preview"] == "Here you go!"


class TestParseModelResponse:
    """Tests for schema-checked parsing."""

    def test_camel_case_fields(self):
        response = parse_model_response(
            '{"newEntities": [{"name": "Eli", "entityType": "character", "confidence": 0.7}]}',
            LLMExtractionResponse,
        )

        assert response.new_entities[0].entity_type == "character"
        assert response.updated_entities == []

    def test_schema_mismatch(self):
        with pytest.raises(ResponseFormatError, match="schema mismatch"):
            parse_model_response(
                '{"newEntities": [{"name": "Eli", "entityType": "character", "confidence": 3}]}',
                LLMExtractionResponse,
            )
