"""
Concurrent panel rendering that keeps every panel on the shared visual bible.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from idiomcomic.common import MissingPayloadError, RetryExecutor
from idiomcomic.common.backend import ClientFactory
from idiomcomic.story_generation import VisualBible

from .prompting import build_panel_prompt

DEFAULT_IMAGE_MODEL = "black-forest-labs/flux-1.1-pro"
DEFAULT_ASPECT_RATIO = "1:1"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Panel:
    """A rendered comic panel; ``image_url`` is a data URI of the image bytes."""

    image_url: str
    description: str

    def as_dict(self) -> dict[str, Any]:
        return {"image_url": self.image_url, "description": self.description}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Panel":
        try:
            return cls(
                image_url=str(data["image_url"]),
                description=str(data.get("description", "")).strip(),
            )
        except KeyError as exc:
            raise ValueError(f"Invalid panel entry: {data}") from exc


class PanelIllustrator:
    """
    Renders every scene concurrently; each render has its own retry budget.
    """

    def __init__(
        self,
        *,
        client_factory: ClientFactory,
        executor: RetryExecutor | None = None,
        model: str = DEFAULT_IMAGE_MODEL,
        aspect_ratio: str = DEFAULT_ASPECT_RATIO,
    ) -> None:
        self._client_factory = client_factory
        self._executor = executor or RetryExecutor()
        self._model = model
        self._aspect_ratio = aspect_ratio

    @property
    def model(self) -> str:
        return self._model

    async def render_all(
        self,
        scenes: Sequence[str],
        bible: VisualBible,
    ) -> tuple[Panel, ...]:
        """
        Render all scenes and return panels in scene order.

        Every render is allowed to settle; the first failure (by scene index) is then raised.
        """
        results = await asyncio.gather(
            *(self.render(index, scene, bible) for index, scene in enumerate(scenes)),
            return_exceptions=True,
        )

        failures = [
            (index, result)
            for index, result in enumerate(results)
            if isinstance(result, BaseException)
        ]
        if failures:
            index, error = failures[0]
            logger.error(
                "%d of %d panel render(s) failed; first failure at panel %d",
                len(failures),
                len(results),
                index + 1,
            )
            raise error

        return tuple(results)  # type: ignore[arg-type]

    async def render(self, index: int, scene: str, bible: VisualBible) -> Panel:
        prompt = build_panel_prompt(scene, bible)

        async def attempt() -> Panel:
            backend = self._client_factory()
            payloads = await backend.render_image(
                model=self._model,
                prompt=prompt,
                aspect_ratio=self._aspect_ratio,
            )
            if len(payloads) != 1:
                raise MissingPayloadError(
                    f"Panel {index + 1} render returned {len(payloads)} image payloads; expected 1."
                )
            return Panel(image_url=payloads[0].to_data_uri(), description=scene)

        return await self._executor.execute(attempt, label=f"panel {index + 1} render")
