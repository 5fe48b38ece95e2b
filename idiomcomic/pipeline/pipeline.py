"""
Orchestrates the full IdiomComic pipeline from idiom to narrative, panels, audio, and video.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from idiomcomic.ai_generation import (
    Panel,
    PanelIllustrator,
    StoryNarrator,
    VideoAnimator,
    build_animation_prompt,
)
from idiomcomic.common import (
    CredentialNotFoundError,
    MediaAsset,
    PipelineRunError,
    RetryExecutor,
    SleepCallable,
)
from idiomcomic.story_generation import (
    AudienceClass,
    IdiomRequest,
    NarrativeGenerator,
    VisualBible,
    VisualBibleDirector,
)

from .config import PipelineConfig
from .status import ProgressCallback, RunStatus, StatusListener, StatusTracker

logger = logging.getLogger(__name__)

STEP_STARTING = ("Starting the idiom pipeline...", 5)
STEP_NARRATIVE = ("Writing the story script...", 15)
STEP_VISUAL_BIBLE = ("Establishing the visual bible...", 35)
STEP_ILLUSTRATION = ("Drawing comic panels...", 60)
STEP_NARRATION = ("Recording the narration...", 85)
STEP_ANIMATION = ("Generating the animated video...", 90)
STEP_DONE = ("Done", 100)


def fatal_message(max_attempts: int, exc: BaseException) -> str:
    reason = str(exc).strip() or exc.__class__.__name__
    return (
        f"Generation failed after {max_attempts} attempts: {reason}. "
        "Check your network settings or try again later."
    )


@dataclass(frozen=True)
class Artifact:
    """Aggregated output of one IdiomComic run."""

    idiom: str
    audience: AudienceClass
    explanation: str
    origin: str
    story: str
    panels: tuple[Panel, ...]
    visual_bible: VisualBible
    audio_asset: MediaAsset | None = None
    video_asset: Path | None = None
    video_prompt: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "idiom": self.idiom,
            "audience": self.audience.value,
            "explanation": self.explanation,
            "origin": self.origin,
            "story": self.story,
            "visual_bible": self.visual_bible.as_dict(),
            "panels": [panel.as_dict() for panel in self.panels],
            "audio_asset": self.audio_asset.to_data_uri() if self.audio_asset else None,
            "video_asset": str(self.video_asset) if self.video_asset else None,
            "video_prompt": self.video_prompt,
        }

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Artifact":
        for key in ("idiom", "visual_bible", "panels"):
            if key not in payload:
                raise ValueError(f"Artifact payload must include '{key}'.")

        audio_uri = payload.get("audio_asset")
        video_asset = payload.get("video_asset")
        return cls(
            idiom=str(payload["idiom"]).strip(),
            audience=AudienceClass.parse(payload.get("audience") or AudienceClass.PRIMARY_SCHOOL),
            explanation=str(payload.get("explanation", "")).strip(),
            origin=str(payload.get("origin", "")).strip(),
            story=str(payload.get("story", "")).strip(),
            panels=tuple(Panel.from_mapping(entry) for entry in payload["panels"]),
            visual_bible=VisualBible.from_mapping(payload["visual_bible"]),
            audio_asset=MediaAsset.from_data_uri(audio_uri) if audio_uri else None,
            video_asset=Path(video_asset) if video_asset else None,
            video_prompt=payload.get("video_prompt") or None,
        )

    @classmethod
    def from_yaml(cls, source: str | Path) -> "Artifact":
        path = Path(source)
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(data, Mapping):
            raise ValueError("Artifact YAML must deserialize to a mapping.")
        return cls.from_dict(data)


class IdiomComicOrchestrator:
    """
    High-level coordinator that chains the narrative, visual, and media stages.

    Mandatory stages (narrative, visual bible, illustration, narration) are fatal when
    they exhaust their retry budget. The optional animation stage is absorbed: the
    artifact is returned without a video.
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        *,
        narrative_generator: NarrativeGenerator | None = None,
        visual_director: VisualBibleDirector | None = None,
        illustrator: PanelIllustrator | None = None,
        narrator: StoryNarrator | None = None,
        animator: VideoAnimator | None = None,
        executor: RetryExecutor | None = None,
        sleep: SleepCallable | None = None,
    ) -> None:
        self._config = config or PipelineConfig.from_env()
        self._executor = executor or RetryExecutor(
            max_attempts=self._config.max_attempts,
            base_delay=self._config.base_delay,
            sleep=sleep,
        )
        client_factory = self._config.new_client
        self._narrative_generator = narrative_generator or NarrativeGenerator(
            client_factory=client_factory,
            executor=self._executor,
            model=self._config.text_model,
        )
        self._visual_director = visual_director or VisualBibleDirector(
            client_factory=client_factory,
            executor=self._executor,
            model=self._config.text_model,
        )
        self._illustrator = illustrator or PanelIllustrator(
            client_factory=client_factory,
            executor=self._executor,
            model=self._config.image_model,
            aspect_ratio=self._config.aspect_ratio,
        )
        self._narrator = narrator or StoryNarrator(
            client_factory=client_factory,
            executor=self._executor,
            model=self._config.speech_model,
        )
        self._animator = animator or VideoAnimator(
            client_factory=client_factory,
            model=self._config.video_model,
            sleep=sleep,
            poll_interval=self._config.poll_interval,
            max_poll_iterations=self._config.max_poll_iterations,
            media_dir=self._config.media_dir,
        )
        self._tracker = StatusTracker()

    @property
    def config(self) -> PipelineConfig:
        return self._config

    @property
    def status(self) -> RunStatus:
        return self._tracker.status

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        return self._tracker.subscribe(listener)

    async def run_idiom_pipeline(
        self,
        idiom: str,
        audience: AudienceClass | str,
        *,
        include_video: bool = False,
        language: str | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> Artifact:
        request = IdiomRequest(
            idiom=idiom,
            audience=AudienceClass.parse(audience),
            include_video=include_video,
            language=language or self._config.language,
        )
        return await self.run_request(request, progress_callback=progress_callback)

    async def run_request(
        self,
        request: IdiomRequest,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> Artifact:
        tracker = self._tracker
        tracker.start(*STEP_STARTING, progress_callback=progress_callback)
        logger.info(
            "Starting run for %r (audience=%s, video=%s)",
            request.idiom,
            request.audience.value,
            request.wants_animation,
        )

        try:
            artifact = await self._run_mandatory_stages(request)
        except Exception as exc:
            attempts = getattr(exc, "retry_attempts", self._executor.max_attempts)
            message = fatal_message(attempts, exc)
            logger.error("Run for %r failed: %s", request.idiom, exc)
            tracker.fail(message)
            raise PipelineRunError(message) from exc

        if request.wants_animation and artifact.video_prompt:
            tracker.set_animating(True)
            tracker.advance(*STEP_ANIMATION)
            try:
                video_path = await self._animate(artifact.video_prompt, tracker.step)
            except Exception:
                logger.exception(
                    "Animation for %r failed; returning the artifact without video.",
                    request.idiom,
                )
            else:
                artifact = replace(artifact, video_asset=video_path)
            finally:
                tracker.set_animating(False)
        elif request.include_video:
            logger.info(
                "Skipping animation: audience %s is not eligible.", request.audience.value
            )

        tracker.complete(STEP_DONE[0])
        logger.info("Run for %r complete", request.idiom)
        return artifact

    async def request_animation(
        self,
        video_prompt: str,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> Path:
        """
        Generate the animated video for a prompt. Failures propagate to the caller.
        """

        def on_step(label: str) -> None:
            if progress_callback is not None:
                progress_callback(label, None)

        return await self._animate(video_prompt, on_step)

    async def _run_mandatory_stages(self, request: IdiomRequest) -> Artifact:
        tracker = self._tracker

        tracker.advance(*STEP_NARRATIVE)
        narrative = await self._narrative_generator.run(
            request.idiom,
            request.audience,
            language=request.language,
        )

        tracker.advance(*STEP_VISUAL_BIBLE)
        bible = await self._visual_director.run(request.idiom, request.audience, narrative.story)

        tracker.advance(*STEP_ILLUSTRATION)
        panels = await self._illustrator.render_all(narrative.scenes, bible)

        tracker.advance(*STEP_NARRATION)
        audio = await self._narrator.run(narrative.story, request.audience)

        return Artifact(
            idiom=request.idiom,
            audience=request.audience,
            explanation=narrative.explanation,
            origin=narrative.origin,
            story=narrative.story,
            panels=panels,
            visual_bible=bible,
            audio_asset=audio,
            video_prompt=build_animation_prompt(narrative.scenes, bible),
        )

    async def _animate(self, video_prompt: str, on_step: Callable[[str], None]) -> Path:
        provider = self._config.credential_provider
        if not await provider.has_credential():
            await provider.request_credential_selection()
            if not await provider.has_credential():
                raise CredentialNotFoundError("No video generation credential is selected.")

        async def attempt() -> Path:
            try:
                return await self._animator.run_once(video_prompt, on_step=on_step)
            except CredentialNotFoundError:
                logger.warning("Video credential was rejected; requesting a new selection.")
                await provider.request_credential_selection()
                raise

        return await self._executor.execute(attempt, label="animation")


async def run_idiom_pipeline(
    idiom: str,
    audience: AudienceClass | str,
    *,
    include_video: bool = False,
    language: str | None = None,
    progress_callback: ProgressCallback | None = None,
    config: PipelineConfig | None = None,
) -> Artifact:
    """Run the pipeline once with a default orchestrator."""
    orchestrator = IdiomComicOrchestrator(config or PipelineConfig.from_env())
    return await orchestrator.run_idiom_pipeline(
        idiom,
        audience,
        include_video=include_video,
        language=language,
        progress_callback=progress_callback,
    )


async def request_animation(
    video_prompt: str,
    *,
    progress_callback: ProgressCallback | None = None,
    config: PipelineConfig | None = None,
) -> Path:
    orchestrator = IdiomComicOrchestrator(config or PipelineConfig.from_env())
    return await orchestrator.request_animation(video_prompt, progress_callback=progress_callback)
