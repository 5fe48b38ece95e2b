"""
Narrative and visual direction stages for IdiomComic.
"""

from .audience import (
    ANIMATION_ELIGIBLE_AUDIENCES,
    DEFAULT_STORY_LANGUAGE,
    AudienceClass,
    IdiomRequest,
    resolve_audience,
)
from .narrative_service import DEFAULT_TEXT_MODEL, NarrativeBundle, NarrativeGenerator
from .prompting import (
    SCENE_COUNT,
    STYLE_PRESETS,
    StagePrompt,
    build_narrative_prompt,
    build_visual_bible_prompt,
)
from .visual_bible import VisualBible, VisualBibleDirector

__all__ = [
    "ANIMATION_ELIGIBLE_AUDIENCES",
    "AudienceClass",
    "DEFAULT_STORY_LANGUAGE",
    "DEFAULT_TEXT_MODEL",
    "IdiomRequest",
    "NarrativeBundle",
    "NarrativeGenerator",
    "SCENE_COUNT",
    "STYLE_PRESETS",
    "StagePrompt",
    "VisualBible",
    "VisualBibleDirector",
    "build_narrative_prompt",
    "build_visual_bible_prompt",
    "resolve_audience",
]
