"""
Scriptloom Validation Module

Grounding and coverage checks.
"""

from .grounding import (
    SourceUnit,
    LineGroundingValidator,
    check_snippet,
    storyboard_grounding_violations,
    validate_storyboard_grounding,
)
from .coverage import build_manifest, check_coverage, validate_batch_coverage

__all__ = [
    'SourceUnit',
    'LineGroundingValidator',
    'check_snippet',
    'storyboard_grounding_violations',
    'validate_storyboard_grounding',
    'build_manifest',
    'check_coverage',
    'validate_batch_coverage',
]
