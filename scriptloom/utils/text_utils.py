"""
Scriptloom Text Utilities

Name normalization and snippet helpers shared by the extractors and validators.
"""

import re
from typing import Optional

_WHITESPACE = re.compile(r'\s+')
_WORD = re.compile(r'\S+')
_LEADING_WORDS = re.compile(r'\S+(?:\s+\S+){0,%d}')


def normalize_name(name: str) -> str:
    """Lowercase, trim and collapse whitespace. This is the dedup key."""
    return _WHITESPACE.sub(' ', (name or '').strip().lower())


def title_case(text: str) -> str:
    """``SOUTH  DOCK`` -> ``South Dock``."""
    words = _WHITESPACE.split(text.strip().lower())
    return ' '.join(w[:1].upper() + w[1:] for w in words if w)


def compact_whitespace(text: str, max_length: Optional[int] = None) -> str:
    """Collapse whitespace runs; optionally hard-cap the length."""
    compacted = _WHITESPACE.sub(' ', str(text or '')).strip()
    if max_length is not None:
        return compacted[:max_length]
    return compacted


def truncate(text: str, max_length: int) -> str:
    """Truncate with an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + '...'


def count_words(text: str) -> int:
    return len(_WORD.findall(str(text or '')))


def leading_words(text: str, max_words: int) -> str:
    """
    First ``max_words`` words of ``text`` copied verbatim.

    Original spacing between the words is kept, so the result is always a
    substring of the input.
    """
    pattern = re.compile(_LEADING_WORDS.pattern % max(max_words - 1, 0))
    match = pattern.search(text or '')
    return match.group(0) if match else ''


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` wrapper, if any."""
    cleaned = (text or '').strip()
    cleaned = re.sub(r'^```(?:json)?\s*', '', cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r'\s*```$', '', cleaned)
    return cleaned.strip()
