"""
Centralized environment variable loading for Scriptloom.

Ensures .env is loaded once and consistently. Values already present in the
process environment take precedence over the file.

Usage:
    from scriptloom.core.env_loader import ensure_env_loaded
    ensure_env_loaded()
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_env_loaded = False


def ensure_env_loaded(env_path: Optional[Path] = None, override: bool = False) -> bool:
    """
    Ensure environment variables from .env are loaded.

    Args:
        env_path: Explicit .env path (default: ``.env`` in the working directory)
        override: If True, .env values replace existing environment variables

    Returns:
        True if .env was loaded, False if already loaded or file not found
    """
    global _env_loaded

    if _env_loaded:
        return False

    env_path = Path(env_path) if env_path else Path.cwd() / ".env"

    if not env_path.exists():
        return False

    load_dotenv(env_path, override=override)
    _env_loaded = True
    return True


def get_api_key(key_name: str) -> Optional[str]:
    """
    Get a non-blank API key from the environment.

    Args:
        key_name: Environment variable name

    Returns:
        Stripped key value or None if unset or blank
    """
    ensure_env_loaded()
    value = (os.getenv(key_name) or "").strip()
    return value or None
