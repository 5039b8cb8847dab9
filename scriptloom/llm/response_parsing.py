"""
Response Parsing

Turns raw model text into validated pydantic objects.
"""

import json
from typing import Any, Type, TypeVar

from pydantic import BaseModel, ValidationError

from scriptloom.core.exceptions import ResponseFormatError
from scriptloom.models.documents import validation_messages
from scriptloom.utils.text_utils import strip_code_fences

ModelT = TypeVar('ModelT', bound=BaseModel)


def parse_json_text(text: str) -> Any:
    """Parse model text as JSON, ignoring a markdown code fence."""
    cleaned = strip_code_fences(text)
    if not cleaned:
        raise ResponseFormatError("empty response", text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseFormatError(f"not valid JSON ({e})", text)


def parse_model_response(text: str, model: Type[ModelT]) -> ModelT:
    """
    Parse and schema-check a model response.

    Raises:
        ResponseFormatError: Non-JSON text or JSON that does not fit ``model``
    """
    data = parse_json_text(text)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ResponseFormatError("schema mismatch: " + "; ".join(validation_messages(e)), text)
