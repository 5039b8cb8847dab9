"""
Scriptloom Utilities Module
"""

from .file_utils import read_json, read_text, write_json, write_json_many, ensure_directory
from .text_utils import (
    normalize_name,
    title_case,
    compact_whitespace,
    truncate,
    count_words,
    leading_words,
    strip_code_fences,
)

__all__ = [
    'read_json',
    'read_text',
    'write_json',
    'write_json_many',
    'ensure_directory',
    'normalize_name',
    'title_case',
    'compact_whitespace',
    'truncate',
    'count_words',
    'leading_words',
    'strip_code_fences',
]
