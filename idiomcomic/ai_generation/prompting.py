"""
Prompt construction utilities for IdiomComic panel, narration, and animation requests.
"""

from __future__ import annotations

from idiomcomic.story_generation import SCENE_COUNT, AudienceClass, VisualBible

QUALITY_DIRECTIVE = "Masterpiece, high-definition comic panel, clean composition, no text, no watermark"

ANIMATION_SCENE_INDEX = 2

VOICE_PROFILES: dict[AudienceClass, str] = {
    AudienceClass.KINDERGARTEN: "nova",
    AudienceClass.PRIMARY_SCHOOL: "nova",
    AudienceClass.MIDDLE_SCHOOL: "alloy",
    AudienceClass.ADULT: "alloy",
    AudienceClass.SENIOR: "onyx",
}


def build_panel_prompt(scene: str, bible: VisualBible) -> str:
    """
    Compose the render prompt for one panel from the shared visual bible and the scene text.
    """
    if not scene or not scene.strip():
        raise ValueError("scene must be a non-empty string.")

    return (
        f"{QUALITY_DIRECTIVE}. {bible.style_description}. "
        f"Characters: {bible.character_description}. "
        f"Colors: {', '.join(bible.palette_tokens())}. "
        f"Scene: {scene.strip()}."
    )


def build_animation_prompt(scenes: tuple[str, ...] | list[str], bible: VisualBible) -> str:
    """
    Build the video prompt from the visual bible and the designated story scene.
    """
    if len(scenes) != SCENE_COUNT:
        raise ValueError(f"Expected {SCENE_COUNT} scenes, received {len(scenes)}.")

    return (
        f"Cinematic animation, {bible.style_description}. "
        f"Characters: {bible.character_description}. "
        f"Story: {scenes[ANIMATION_SCENE_INDEX]}"
    )


def voice_for(audience: AudienceClass) -> str:
    return VOICE_PROFILES[audience]
