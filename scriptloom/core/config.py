"""
Scriptloom Configuration Management

Dataclass configuration with JSON loading and validation.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import ConfigError, InvalidConfigError
from .constants import (
    DEFAULT_MODELS,
    EXTRACTION_TEMPERATURE,
    MAX_EVIDENCE_WORDS,
    MAX_LLM_INPUT_CHARS,
    PROVIDER_ENV_ORDER,
    EntityType,
    LLMProvider,
    MergePolicy,
    TypeConflictPolicy,
)


def _pick(data: dict, snake: str, camel: str, default: Any = None) -> Any:
    """Read a key that may be spelled in snake_case or camelCase."""
    if snake in data:
        return data[snake]
    return data.get(camel, default)


@dataclass(frozen=True)
class CustomPattern:
    """A user-supplied extraction regex."""
    pattern: str
    entity_type: EntityType
    label: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> 'CustomPattern':
        """Create CustomPattern from dictionary."""
        if 'pattern' not in data:
            raise InvalidConfigError("Custom pattern is missing 'pattern'", {"entry": data})
        raw_type = _pick(data, 'entity_type', 'entityType', 'item')
        try:
            entity_type = EntityType(raw_type)
        except ValueError:
            raise InvalidConfigError(f"Unknown entity type in custom pattern: {raw_type}")
        return cls(
            pattern=data['pattern'],
            entity_type=entity_type,
            label=data.get('label', '')
        )


@dataclass
class ExtractionConfig:
    """Read-only project extraction settings."""
    known_entity_names: List[str] = field(default_factory=list)
    canon_locks: List[str] = field(default_factory=list)
    custom_patterns: List[CustomPattern] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> 'ExtractionConfig':
        """Create ExtractionConfig from dictionary."""
        return cls(
            known_entity_names=list(_pick(data, 'known_entity_names', 'knownEntityNames', [])),
            canon_locks=list(_pick(data, 'canon_locks', 'canonLocks', [])),
            custom_patterns=[
                CustomPattern.from_dict(p)
                for p in _pick(data, 'custom_patterns', 'customPatterns', [])
            ]
        )


@dataclass
class LLMConfig:
    """Configuration for a specific LLM provider."""
    provider: LLMProvider
    model: str
    api_key_env: str  # Environment variable name for API key
    temperature: float = EXTRACTION_TEMPERATURE
    max_tokens: int = 8192
    timeout: int = 120

    @classmethod
    def from_dict(cls, data: dict) -> 'LLMConfig':
        """Create LLMConfig from dictionary."""
        try:
            provider = LLMProvider(data['provider'])
        except (KeyError, ValueError) as e:
            raise InvalidConfigError(f"Invalid LLM provider: {e}")
        return cls(
            provider=provider,
            model=data.get('model', DEFAULT_MODELS[provider]),
            api_key_env=data.get('api_key_env', _default_key_env(provider)),
            temperature=data.get('temperature', EXTRACTION_TEMPERATURE),
            max_tokens=data.get('max_tokens', 8192),
            timeout=data.get('timeout', 120)
        )

    @classmethod
    def for_provider(cls, provider: LLMProvider) -> 'LLMConfig':
        """Default configuration for a provider."""
        return cls(
            provider=provider,
            model=DEFAULT_MODELS[provider],
            api_key_env=_default_key_env(provider)
        )


@dataclass
class PipelineConfig:
    """Pipeline behaviour settings."""
    enable_llm: bool = False
    always_run_llm: bool = False
    merge_policy: MergePolicy = MergePolicy.DETERMINISTIC_PRIMARY
    type_conflict_policy: TypeConflictPolicy = TypeConflictPolicy.SURFACE
    max_llm_input_chars: int = MAX_LLM_INPUT_CHARS
    max_evidence_words: int = MAX_EVIDENCE_WORDS

    @classmethod
    def from_dict(cls, data: dict) -> 'PipelineConfig':
        """Create PipelineConfig from dictionary."""
        try:
            return cls(
                enable_llm=data.get('enable_llm', False),
                always_run_llm=data.get('always_run_llm', False),
                merge_policy=MergePolicy(data.get('merge_policy', MergePolicy.DETERMINISTIC_PRIMARY.value)),
                type_conflict_policy=TypeConflictPolicy(
                    data.get('type_conflict_policy', TypeConflictPolicy.SURFACE.value)
                ),
                max_llm_input_chars=int(data.get('max_llm_input_chars', MAX_LLM_INPUT_CHARS)),
                max_evidence_words=int(data.get('max_evidence_words', MAX_EVIDENCE_WORDS))
            )
        except ValueError as e:
            raise InvalidConfigError(f"Invalid pipeline setting: {e}")


@dataclass
class ScriptloomConfig:
    """Main configuration class for Scriptloom."""
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    llm: Optional[LLMConfig] = None
    verbose_logging: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> 'ScriptloomConfig':
        """Create ScriptloomConfig from dictionary.

        The extraction block may be nested under ``extraction`` or sit at the
        top level, which is how project configs are usually exported.
        """
        config = cls()
        config.verbose_logging = data.get('verbose_logging', config.verbose_logging)
        config.extraction = ExtractionConfig.from_dict(data.get('extraction', data))

        if 'pipeline' in data:
            config.pipeline = PipelineConfig.from_dict(data['pipeline'])

        if 'llm' in data:
            config.llm = LLMConfig.from_dict(data['llm'])

        return config


def _default_key_env(provider: LLMProvider) -> str:
    for candidate, env_name in PROVIDER_ENV_ORDER:
        if candidate == provider:
            return env_name
    raise InvalidConfigError(f"No API key variable for provider: {provider.value}")


def load_config(config_path: Path = None) -> ScriptloomConfig:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to configuration file. If None, uses default.

    Returns:
        Loaded ScriptloomConfig instance
    """
    if config_path is None:
        config_path = Path("scriptloom.config.json")
    config_path = Path(config_path)

    if not config_path.exists():
        # Return default config if file doesn't exist
        return ScriptloomConfig()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return ScriptloomConfig.from_dict(data)
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in config file: {e}")
    except ConfigError:
        raise
    except Exception as e:
        raise ConfigError(f"Failed to load config: {e}")
