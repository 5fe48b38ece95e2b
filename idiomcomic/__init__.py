"""
IdiomComic package turning an idiom into a narrated, illustrated, optionally animated comic.
"""

from .common import PipelineRunError
from .pipeline import (
    Artifact,
    IdiomComicOrchestrator,
    PipelineConfig,
    RunStatus,
    request_animation,
    run_idiom_pipeline,
)
from .story_generation import AudienceClass, IdiomRequest, resolve_audience

__all__ = [
    "Artifact",
    "AudienceClass",
    "IdiomComicOrchestrator",
    "IdiomRequest",
    "PipelineConfig",
    "PipelineRunError",
    "RunStatus",
    "request_animation",
    "resolve_audience",
    "run_idiom_pipeline",
]
