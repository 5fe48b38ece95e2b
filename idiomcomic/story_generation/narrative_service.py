"""
Service layer producing the structured narrative for an idiom.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from idiomcomic.common import GenerationValidationError, RetryExecutor
from idiomcomic.common.backend import ClientFactory
from idiomcomic.common.validation import load_json_object, require_text_fields

from .audience import DEFAULT_STORY_LANGUAGE, AudienceClass
from .prompting import NARRATIVE_SCHEMA, SCENE_COUNT, StagePrompt, build_narrative_prompt

DEFAULT_TEXT_MODEL = "gpt-4.1-mini"


@dataclass(frozen=True)
class NarrativeBundle:
    """
    Explanation, origin, story, and the fixed set of panel scene descriptions.
    """

    explanation: str
    origin: str
    story: str
    scenes: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.scenes) != SCENE_COUNT:
            raise GenerationValidationError(
                f"Expected exactly {SCENE_COUNT} scenes, received {len(self.scenes)}."
            )

    def as_dict(self) -> dict[str, Any]:
        return {
            "explanation": self.explanation,
            "origin": self.origin,
            "story": self.story,
            "scenes": list(self.scenes),
        }


class NarrativeGenerator:
    """
    Turns an idiom and audience into a NarrativeBundle, retrying malformed output.
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
        """Return the model identifier in use."""
        return self._model

    async def run(
        self,
        idiom: str,
        audience: AudienceClass,
        *,
        language: str = DEFAULT_STORY_LANGUAGE,
    ) -> NarrativeBundle:
        prompt = build_narrative_prompt(idiom, audience, language=language)

        async def attempt() -> NarrativeBundle:
            return await self._generate_once(prompt)

        return await self._executor.execute(attempt, label=f"narrative for {idiom!r}")

    async def _generate_once(self, prompt: StagePrompt) -> NarrativeBundle:
        backend = self._client_factory()
        raw_text = await backend.generate_structured(
            model=self._model,
            prompt=prompt.user,
            system=prompt.system,
            schema=NARRATIVE_SCHEMA,
            schema_name="idiom_narrative",
        )
        return self._parse_bundle(raw_text)

    def _parse_bundle(self, raw_text: str) -> NarrativeBundle:
        payload = load_json_object(raw_text, what="Narrative")
        fields = require_text_fields(
            payload, ("explanation", "origin", "story"), what="Narrative"
        )

        scenes_data = payload.get("scenes")
        if not isinstance(scenes_data, list):
            raise GenerationValidationError("Narrative response must contain a 'scenes' list.")
        if len(scenes_data) != SCENE_COUNT:
            raise GenerationValidationError(
                f"Expected exactly {SCENE_COUNT} scenes, received {len(scenes_data)}."
            )

        scenes: list[str] = []
        for index, item in enumerate(scenes_data, start=1):
            if not isinstance(item, str) or not item.strip():
                raise GenerationValidationError(f"Scene {index} is empty or not text.")
            scenes.append(item.strip())

        return NarrativeBundle(
            explanation=fields["explanation"],
            origin=fields["origin"],
            story=fields["story"],
            scenes=tuple(scenes),
        )
