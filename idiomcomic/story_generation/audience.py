"""
Audience classification and the caller-facing idiom request.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

DEFAULT_STORY_LANGUAGE = "Simplified Chinese"


class AudienceClass(str, Enum):
    """Target audience of a run; drives style and voice selection."""

    KINDERGARTEN = "kindergarten"
    PRIMARY_SCHOOL = "primary_school"
    MIDDLE_SCHOOL = "middle_school"
    ADULT = "adult"
    SENIOR = "senior"

    @classmethod
    def parse(cls, value: Any) -> "AudienceClass":
        """
        Accept an enum member, its value, its name, or a loose spelling such as "Primary School".
        """
        if isinstance(value, cls):
            return value
        if value is None:
            raise ValueError("Audience must be provided.")

        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        for member in cls:
            if key in (member.value, member.name.lower()):
                return member

        choices = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown audience {value!r}. Expected one of: {choices}.")

    @property
    def is_animation_eligible(self) -> bool:
        return self in ANIMATION_ELIGIBLE_AUDIENCES

    @property
    def reader_label(self) -> str:
        return _READER_LABELS[self]


ANIMATION_ELIGIBLE_AUDIENCES = frozenset(
    {AudienceClass.KINDERGARTEN, AudienceClass.PRIMARY_SCHOOL}
)

_READER_LABELS: dict[AudienceClass, str] = {
    AudienceClass.KINDERGARTEN: "kindergarten children (ages 3-6) hearing the story read aloud",
    AudienceClass.PRIMARY_SCHOOL: "primary school pupils (ages 6-12) reading on their own",
    AudienceClass.MIDDLE_SCHOOL: "middle school students (ages 12-15) studying classical culture",
    AudienceClass.ADULT: "adult readers interested in history and usage",
    AudienceClass.SENIOR: "senior readers who enjoy classical literature and calligraphy",
}

_CHILD_LEVELS = (
    AudienceClass.KINDERGARTEN,
    AudienceClass.PRIMARY_SCHOOL,
    AudienceClass.MIDDLE_SCHOOL,
)


def resolve_audience(category: str, child_level: Any = None) -> AudienceClass:
    """
    Map the two-level audience picker (child / adult / senior plus a child sub-level).

    ``child`` falls back to primary school when no sub-level is chosen.
    """
    normalized = str(category or "").strip().lower()
    if normalized == "adult":
        return AudienceClass.ADULT
    if normalized == "senior":
        return AudienceClass.SENIOR
    if normalized != "child":
        raise ValueError(
            f"Unknown audience category {category!r}. Expected child, adult, or senior."
        )

    if child_level is None or str(child_level).strip() == "":
        return AudienceClass.PRIMARY_SCHOOL

    level = AudienceClass.parse(child_level)
    if level not in _CHILD_LEVELS:
        raise ValueError(f"{level.value!r} is not a child audience level.")
    return level


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return bool(value)


@dataclass(frozen=True)
class IdiomRequest:
    """
    Canonical representation of a single pipeline request.

    Attributes
    ----------
    idiom:
        The idiom to explain and illustrate (required, non-blank).
    audience:
        Resolved audience class for the run.
    include_video:
        Whether the caller opted in to the animated video.
    language:
        Language the narrative text should be written in.
    """

    idiom: str
    audience: AudienceClass = AudienceClass.PRIMARY_SCHOOL
    include_video: bool = False
    language: str = DEFAULT_STORY_LANGUAGE

    def __post_init__(self) -> None:
        if not self.idiom or not self.idiom.strip():
            raise ValueError("Idiom text must be a non-empty string.")

    @property
    def wants_animation(self) -> bool:
        return self.include_video and self.audience.is_animation_eligible

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "IdiomRequest":
        """
        Build a request from a dict-like object (e.g., parsed JSON/YAML or CLI arguments).
        """
        idiom = str(data.get("idiom") or "").strip()
        if not idiom:
            raise ValueError("Request data must include a non-empty 'idiom' field.")

        if data.get("audience"):
            audience = AudienceClass.parse(data["audience"])
        elif data.get("category"):
            audience = resolve_audience(data["category"], data.get("child_level"))
        else:
            audience = AudienceClass.PRIMARY_SCHOOL

        language = str(data.get("language") or "").strip() or DEFAULT_STORY_LANGUAGE

        return cls(
            idiom=idiom,
            audience=audience,
            include_video=_coerce_bool(data.get("include_video")),
            language=language,
        )
