"""
Scriptloom Pipelines Module

Step pipelines for interactive extraction and batch storyboard compilation.
"""

from .base_pipeline import BasePipeline, PipelineResult, PipelineStatus, PipelineStep
from .extraction_pipeline import ExtractionPipeline
from .storyboard_pipeline import StoryboardPipeline

__all__ = [
    'BasePipeline',
    'PipelineResult',
    'PipelineStatus',
    'PipelineStep',
    'ExtractionPipeline',
    'StoryboardPipeline',
]
