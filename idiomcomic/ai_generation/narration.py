"""
Best-effort narration of the story text.
"""

from __future__ import annotations

import logging

from idiomcomic.common import MediaAsset, RetryExecutor
from idiomcomic.common.backend import ClientFactory
from idiomcomic.story_generation import AudienceClass

from .prompting import voice_for

DEFAULT_SPEECH_MODEL = "openai/tts-1"

logger = logging.getLogger(__name__)


class StoryNarrator:
    """
    Synthesizes narration audio with a voice picked from the audience.
    """

    def __init__(
        self,
        *,
        client_factory: ClientFactory,
        executor: RetryExecutor | None = None,
        model: str = DEFAULT_SPEECH_MODEL,
    ) -> None:
        self._client_factory = client_factory
        self._executor = executor or RetryExecutor()
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def run(self, story: str, audience: AudienceClass) -> MediaAsset | None:
        """
        Return the narration audio, or ``None`` when the backend produced no payload.
        """
        voice = voice_for(audience)

        async def attempt() -> MediaAsset | None:
            backend = self._client_factory()
            return await backend.synthesize_speech(model=self._model, text=story, voice=voice)

        asset = await self._executor.execute(attempt, label="narration")
        if asset is None or not asset.data:
            logger.warning("Narration response carried no audio payload; continuing without it.")
            return None
        return asset
