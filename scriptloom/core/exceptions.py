"""
Scriptloom Custom Exceptions

Custom exception classes for error handling throughout Scriptloom.
"""

from typing import Iterable, List, Tuple


class ScriptloomError(Exception):
    """Base exception for all Scriptloom errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigError(ScriptloomError):
    """Raised when there's an issue with configuration."""
    pass


class MissingConfigError(ConfigError):
    """Raised when a required configuration (e.g. an API key) is missing."""
    pass


class InvalidConfigError(ConfigError):
    """Raised when a configuration value is invalid."""
    pass


class InvalidPatternError(ConfigError):
    """Raised when a user-supplied custom pattern cannot be compiled or run."""

    def __init__(self, pattern: str, reason: str):
        message = f"Invalid custom pattern '{pattern}': {reason}"
        super().__init__(message, {"pattern": pattern, "reason": reason})
        self.pattern = pattern
        self.reason = reason


# =============================================================================
# LLM ERRORS
# =============================================================================

class LLMError(ScriptloomError):
    """Base exception for LLM-related errors."""
    pass


class ProviderError(LLMError):
    """Raised on a network failure or non-2xx response from a provider."""

    def __init__(self, provider: str, reason: str):
        message = f"LLM provider '{provider}' error: {reason}"
        super().__init__(message, {"provider": provider, "reason": reason})
        self.provider = provider
        self.reason = reason


class ResponseFormatError(LLMError):
    """Raised when model output is not JSON or does not match the schema."""

    def __init__(self, reason: str, raw_text: str = None):
        details = {"reason": reason}
        if raw_text is not None:
            details["response_preview"] = raw_text[:200]
        super().__init__(f"Model response rejected: {reason}", details)
        self.reason = reason


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class GroundingError(ScriptloomError):
    """Raised when evidence fails the verbatim, length or index checks."""

    def __init__(self, violations: List[str]):
        self.violations = list(violations)
        message = "; ".join(self.violations) if self.violations else "grounding failed"
        super().__init__(message, {"violation_count": len(self.violations)})


class CoverageError(ScriptloomError):
    """Raised when an output collection does not cover the manifest exactly."""

    def __init__(
        self,
        collection: str,
        missing: Iterable[Tuple[int, int]] = (),
        extra: Iterable[Tuple[int, int]] = (),
        collapsed: bool = False,
        duplicated: Iterable[Tuple[int, int]] = ()
    ):
        self.collection = collection
        self.missing = sorted(missing)
        self.extra = sorted(extra)
        self.collapsed = collapsed
        self.duplicated = sorted(duplicated)

        parts = []
        if self.missing:
            parts.append(f"missing {_format_pairs(self.missing)}")
        if self.extra:
            parts.append(f"unexpected {_format_pairs(self.extra)}")
        if self.duplicated:
            parts.append(f"duplicated {_format_pairs(self.duplicated)}")
        if collapsed:
            parts.append("collapsed to a single page/panel")
        message = f"Coverage failed for '{collection}': " + ", ".join(parts)

        super().__init__(message, {"collection": collection})


class DocumentValidationError(ScriptloomError):
    """Raised when an input or output document fails schema validation."""

    def __init__(self, document: str, errors: List[str]):
        self.document = document
        self.errors = list(errors)
        lines = "\n".join(f"- {e}" for e in self.errors)
        super().__init__(f"{document} invalid:\n{lines}")


# =============================================================================
# PIPELINE ERRORS
# =============================================================================

class PipelineError(ScriptloomError):
    """Base exception for pipeline errors."""
    pass


class PipelineStageError(PipelineError):
    """Raised when a specific pipeline stage fails."""

    def __init__(self, stage_name: str, reason: str):
        message = f"Pipeline stage '{stage_name}' failed: {reason}"
        super().__init__(message, {"stage": stage_name, "reason": reason})


def _format_pairs(pairs: List[Tuple[int, int]]) -> str:
    return ", ".join(f"{page}:{panel}" for page, panel in pairs)
