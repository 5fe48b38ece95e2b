"""
Visual direction stage: one shared style, character, and palette reference per run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from idiomcomic.common import RetryExecutor
from idiomcomic.common.backend import ClientFactory
from idiomcomic.common.validation import load_json_object, require_text_fields

from .audience import AudienceClass
from .narrative_service import DEFAULT_TEXT_MODEL
from .prompting import VISUAL_BIBLE_SCHEMA, StagePrompt, build_visual_bible_prompt

_FIELDS = ("styleDescription", "characterDescription", "colorPalette")


@dataclass(frozen=True)
class VisualBible:
    """
    Style, recurring character, and palette reused by every panel render.
    """

    style_description: str
    character_description: str
    color_palette: str

    def palette_tokens(self) -> list[str]:
        return [token.strip() for token in self.color_palette.split(",") if token.strip()]

    def as_dict(self) -> dict[str, Any]:
        return {
            "style_description": self.style_description,
            "character_description": self.character_description,
            "color_palette": self.color_palette,
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "VisualBible":
        try:
            return cls(
                style_description=str(data["style_description"]).strip(),
                character_description=str(data["character_description"]).strip(),
                color_palette=str(data["color_palette"]).strip(),
            )
        except KeyError as exc:
            raise ValueError(f"Visual bible payload missing {exc.args[0]!r}.") from exc


class VisualBibleDirector:
    """
    Derives the VisualBible from the story text, conditioned on the audience style preset.
    """

    def __init__(
        self,
        *,
        client_factory: ClientFactory,
        executor: RetryExecutor | None = None,
        model: str = DEFAULT_TEXT_MODEL,
    ) -> None:
        self._client_factory = client_factory
        self._executor = executor or RetryExecutor()
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def run(self, idiom: str, audience: AudienceClass, story: str) -> VisualBible:
        prompt = build_visual_bible_prompt(idiom, audience, story)

        async def attempt() -> VisualBible:
            return await self._generate_once(prompt)

        return await self._executor.execute(attempt, label=f"visual bible for {idiom!r}")

    async def _generate_once(self, prompt: StagePrompt) -> VisualBible:
        backend = self._client_factory()
        raw_text = await backend.generate_structured(
            model=self._model,
            prompt=prompt.user,
            system=prompt.system,
            schema=VISUAL_BIBLE_SCHEMA,
            schema_name="visual_bible",
        )
        payload = load_json_object(raw_text, what="Visual bible")
        fields = require_text_fields(payload, _FIELDS, what="Visual bible")
        return VisualBible(
            style_description=fields["styleDescription"],
            character_description=fields["characterDescription"],
            color_palette=fields["colorPalette"],
        )
