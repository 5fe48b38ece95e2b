"""
End-to-end orchestration for IdiomComic runs.
"""

from .config import BackendClientFactory, PipelineConfig, load_mapping_file
from .pipeline import (
    Artifact,
    IdiomComicOrchestrator,
    fatal_message,
    request_animation,
    run_idiom_pipeline,
)
from .status import ProgressCallback, RunStatus, StatusListener, StatusTracker

__all__ = [
    "Artifact",
    "BackendClientFactory",
    "IdiomComicOrchestrator",
    "PipelineConfig",
    "ProgressCallback",
    "RunStatus",
    "StatusListener",
    "StatusTracker",
    "fatal_message",
    "load_mapping_file",
    "request_animation",
    "run_idiom_pipeline",
]
