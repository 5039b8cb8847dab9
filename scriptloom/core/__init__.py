"""
Scriptloom Core Module

Contains core systems including configuration, constants, exceptions, and logging.
"""

from .config import (
    CustomPattern,
    ExtractionConfig,
    LLMConfig,
    PipelineConfig,
    ScriptloomConfig,
    load_config,
)
from .constants import *
from .exceptions import *
from .logging_config import setup_logging, get_logger, LogLevel

__all__ = [
    'CustomPattern',
    'ExtractionConfig',
    'LLMConfig',
    'PipelineConfig',
    'ScriptloomConfig',
    'load_config',
    'setup_logging',
    'get_logger',
    'LogLevel',
]
