"""
Provider Registry

Selects the provider from the environment: the first API key variable that
is set (in priority order) picks the provider and its default model.
"""

import os
from typing import Mapping, Optional, Tuple

import httpx

from scriptloom.core.config import LLMConfig
from scriptloom.core.constants import PROVIDER_ENV_ORDER, LLMProvider
from scriptloom.core.env_loader import ensure_env_loaded
from scriptloom.core.exceptions import MissingConfigError
from scriptloom.core.logging_config import get_logger
from scriptloom.llm.providers import PROVIDER_CLASSES, BaseLLMProvider

logger = get_logger("llm.registry")


def select_provider(environ: Optional[Mapping[str, str]] = None) -> Tuple[LLMProvider, str]:
    """
    Pick the configured provider.

    Args:
        environ: Environment mapping. When omitted, .env is loaded and
            ``os.environ`` is used.

    Returns:
        (provider, api_key)

    Raises:
        MissingConfigError: If none of the provider keys is set
    """
    if environ is None:
        ensure_env_loaded()
        environ = os.environ

    for provider, key_name in PROVIDER_ENV_ORDER:
        value = (environ.get(key_name) or "").strip()
        if value:
            return provider, value

    names = ", ".join(key for _, key in PROVIDER_ENV_ORDER)
    raise MissingConfigError(f"No API key found. Set one of: {names}.")


def create_provider(
    config: Optional[LLMConfig] = None,
    environ: Optional[Mapping[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> BaseLLMProvider:
    """
    Build a provider from explicit config or from the environment.

    Args:
        config: Explicit provider config; selected from the environment if None
        environ: Environment mapping (see ``select_provider``)
        transport: Optional httpx transport, used by tests

    Returns:
        Ready-to-call provider
    """
    if config is None:
        provider, api_key = select_provider(environ)
        config = LLMConfig.for_provider(provider)
    else:
        api_key = environ.get(config.api_key_env) if environ is not None else None

    logger.info(f"Using provider: {config.provider.value} ({config.model})")
    provider_class = PROVIDER_CLASSES[config.provider]
    return provider_class(config, api_key=api_key, transport=transport)
