"""
Media generation stages for IdiomComic: panels, narration, and animation.
"""

from .animation import (
    DEFAULT_MAX_POLL_ITERATIONS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_VIDEO_MODEL,
    POLLING_LABEL,
    AnimationJob,
    AnimationState,
    VideoAnimator,
    default_media_dir,
)
from .illustration import DEFAULT_ASPECT_RATIO, DEFAULT_IMAGE_MODEL, Panel, PanelIllustrator
from .narration import DEFAULT_SPEECH_MODEL, StoryNarrator
from .prompting import build_animation_prompt, build_panel_prompt, voice_for
from .replicate_service import LiteLLMReplicateBackend, build_default_backend

__all__ = [
    "AnimationJob",
    "AnimationState",
    "DEFAULT_ASPECT_RATIO",
    "DEFAULT_IMAGE_MODEL",
    "DEFAULT_MAX_POLL_ITERATIONS",
    "DEFAULT_POLL_INTERVAL",
    "DEFAULT_SPEECH_MODEL",
    "DEFAULT_VIDEO_MODEL",
    "LiteLLMReplicateBackend",
    "POLLING_LABEL",
    "Panel",
    "PanelIllustrator",
    "StoryNarrator",
    "VideoAnimator",
    "build_animation_prompt",
    "build_default_backend",
    "build_panel_prompt",
    "default_media_dir",
    "voice_for",
]
