"""
Scriptloom - Grounded Entity and Storyboard Extraction for Scripts

Turns screenplay- and comic-formatted script text into reviewable entity
proposals, timeline events and per-panel storyboard annotations. Every
extracted item quotes its source verbatim, and batch output must cover
every panel of the input.

Version: 1.0.0
"""

__version__ = "1.0.0"
__project__ = "Scriptloom"

from pathlib import Path

# Package root directory
PACKAGE_ROOT = Path(__file__).parent

from .core.config import ScriptloomConfig, load_config
from .pipelines import ExtractionPipeline, StoryboardPipeline

__all__ = [
    "__version__",
    "__project__",
    "PACKAGE_ROOT",
    "ScriptloomConfig",
    "load_config",
    "ExtractionPipeline",
    "StoryboardPipeline",
]
