"""
Prompt construction utilities for the IdiomComic narrative and visual direction stages.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .audience import AudienceClass

SCENE_COUNT = 4

NARRATIVE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "explanation": {"type": "string"},
        "origin": {"type": "string"},
        "story": {"type": "string"},
        "scenes": {
            "type": "array",
            "items": {"type": "string"},
            "minItems": SCENE_COUNT,
            "maxItems": SCENE_COUNT,
        },
    },
    "required": ["explanation", "origin", "story", "scenes"],
    "additionalProperties": False,
}

VISUAL_BIBLE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "styleDescription": {"type": "string"},
        "characterDescription": {"type": "string"},
        "colorPalette": {"type": "string"},
    },
    "required": ["styleDescription", "characterDescription", "colorPalette"],
    "additionalProperties": False,
}

STYLE_PRESETS: dict[AudienceClass, str] = {
    AudienceClass.KINDERGARTEN: "Claymation style, vibrant pastel colors, soft lighting",
    AudienceClass.PRIMARY_SCHOOL: "Modern hand-drawn storybook style, bright and cheerful",
    AudienceClass.MIDDLE_SCHOOL: "Detailed digital painting, historical atmosphere",
    AudienceClass.ADULT: "Cinematic concept art, moody lighting, realistic textures",
    AudienceClass.SENIOR: "Traditional Chinese ink wash painting, elegant, fluid brushstrokes",
}


@dataclass(frozen=True)
class StagePrompt:
    """
    Container for the system and user prompts passed to the text model.
    """

    system: str
    user: str


def style_preset_for(audience: AudienceClass) -> str:
    return STYLE_PRESETS[audience]


def build_narrative_prompt(
    idiom: str,
    audience: AudienceClass,
    *,
    language: str,
    scene_count: int = SCENE_COUNT,
) -> StagePrompt:
    """
    Build the prompt pair asking for a culturally grounded breakdown of the idiom.
    """
    if not idiom or not idiom.strip():
        raise ValueError("idiom must be a non-empty string.")

    system_prompt = f"""You are an idiom scholar and a seasoned comic script writer.
You turn a single idiom into a short illustrated comic for a specific audience.

Writing directives:
- Ground the explanation in the idiom's real cultural and historical background; never invent sources.
- Name the classical text or historical period the idiom comes from in the origin note.
- Tell the full story in vivid, sensory prose that can be adapted into exactly {scene_count} comic panels.
- Each scene description must stand alone so an illustrator can draw it without reading the others.
- Keep one recurring protagonist across all scenes and describe what they do, not what they think.
- Match vocabulary, sentence length, and tone to the audience.
- Always write in {language}. Keep the idiom itself in its original script.

Safety guardrails:
- Keep the content respectful, inclusive, and free of graphic violence.
- Do not include author notes or meta commentary.
"""

    user_prompt = f"""Idiom: {idiom.strip()}
Audience: {audience.reader_label}

Return JSON with:
- "explanation": a short plain-language meaning of the idiom.
- "origin": where the idiom comes from.
- "story": the complete story.
- "scenes": exactly {scene_count} scene descriptions, one per comic panel, in story order."""

    return StagePrompt(system=system_prompt, user=user_prompt)


def build_visual_bible_prompt(
    idiom: str,
    audience: AudienceClass,
    story: str,
) -> StagePrompt:
    """
    Build the prompt pair asking for a single visual reference shared by every panel.
    """
    if not story or not story.strip():
        raise ValueError("story must be a non-empty string.")

    style_directive = style_preset_for(audience)

    system_prompt = f"""You are a visual director defining the look of a four-panel comic.
Every panel will be drawn by a different render call, so your description is the only thing
that keeps the panels consistent.

Directives:
- Art style must follow this preset: {style_directive}.
- Describe the recurring protagonist precisely: age, build, hair, face, clothing, and one signature prop.
- Describe supporting characters only if they appear in more than one scene.
- Give the color palette as a short comma-separated list of color names.
- Write descriptions in English so the image model can follow them.
"""

    user_prompt = f"""Idiom: {idiom.strip()}
Audience: {audience.reader_label}

Story:
\"\"\"
{story.strip()}
\"\"\"

Return JSON with "styleDescription", "characterDescription", and "colorPalette"."""

    return StagePrompt(system=system_prompt, user=user_prompt)
