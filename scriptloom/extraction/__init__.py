"""
Scriptloom Extraction Module

Two-pass entity extraction (deterministic rules, then an optional model
pass), merging, and the batch normalization and storyboard passes.
"""

from .entity_index import EntityIndex, IndexedEntity
from .line_rules import DEFAULT_RULES, LineContext, LineEffect, ScanState
from .deterministic_extractor import DeterministicExtractor, DeterministicResult
from .llm_extractor import LLMExtractor, LLMExtractionResult
from .merge import MergeResult, merge_entities, merge_results, suppress_canon_locked
from .normalized_parser import NormalizedScriptParser, TrackerBundle
from .script_normalizer import normalize_script, source_hash
from .storyboard_compiler import build_payload, compile_storyboard

__all__ = [
    'EntityIndex',
    'IndexedEntity',
    'DEFAULT_RULES',
    'LineContext',
    'LineEffect',
    'ScanState',
    'DeterministicExtractor',
    'DeterministicResult',
    'LLMExtractor',
    'LLMExtractionResult',
    'MergeResult',
    'merge_entities',
    'merge_results',
    'suppress_canon_locked',
    'NormalizedScriptParser',
    'TrackerBundle',
    'normalize_script',
    'source_hash',
    'build_payload',
    'compile_storyboard',
]
