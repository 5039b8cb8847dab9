"""
Scriptloom LLM Module

Provider clients, environment-based provider selection, and response parsing.
"""

from .providers import (
    BaseLLMProvider,
    AnthropicProvider,
    OpenAIProvider,
    OpenAICompatibleProvider,
    GeminiProvider,
    PROVIDER_CLASSES,
)
from .registry import select_provider, create_provider
from .response_parsing import parse_json_text, parse_model_response

__all__ = [
    'BaseLLMProvider',
    'AnthropicProvider',
    'OpenAIProvider',
    'OpenAICompatibleProvider',
    'GeminiProvider',
    'PROVIDER_CLASSES',
    'select_provider',
    'create_provider',
    'parse_json_text',
    'parse_model_response',
]
