"""
Long-running video generation modelled as an explicit, bounded state machine.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
from enum import Enum
from pathlib import Path
from typing import Callable

from idiomcomic.common import (
    AnimationFailedError,
    AnimationTimeoutError,
    GenerationBackend,
    SleepCallable,
    VideoJob,
    VideoJobStatus,
)
from idiomcomic.common.backend import ClientFactory

DEFAULT_VIDEO_MODEL = "google/veo-3-fast"
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_MAX_POLL_ITERATIONS = 60
POLLING_LABEL = "Rendering frame-by-frame animation..."

StepNotifier = Callable[[str], None]

logger = logging.getLogger(__name__)


def default_media_dir() -> Path:
    return Path(tempfile.gettempdir()) / "idiomcomic"


class AnimationState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"


class AnimationJob:
    """
    One submission of a video job: SUBMITTED -> POLLING -> DONE, or FAILED from any point.

    The job is single-use. Waiting goes through the injected ``sleep`` so tests can
    drive it with a virtual clock, and polling stops after ``max_poll_iterations``.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        *,
        prompt: str,
        model: str = DEFAULT_VIDEO_MODEL,
        sleep: SleepCallable | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_poll_iterations: int | None = DEFAULT_MAX_POLL_ITERATIONS,
        media_dir: Path | None = None,
        on_step: StepNotifier | None = None,
    ) -> None:
        if not prompt or not prompt.strip():
            raise ValueError("Animation prompt must be a non-empty string.")
        if max_poll_iterations is not None and max_poll_iterations < 0:
            raise ValueError("max_poll_iterations must not be negative.")
        self._backend = backend
        self._prompt = prompt
        self._model = model
        self._sleep: SleepCallable = sleep or asyncio.sleep
        self._poll_interval = poll_interval
        self._max_poll_iterations = max_poll_iterations
        self._media_dir = media_dir or default_media_dir()
        self._on_step = on_step
        self._state: AnimationState | None = None
        self._job: VideoJob | None = None
        self._poll_count = 0

    @property
    def state(self) -> AnimationState | None:
        return self._state

    @property
    def job(self) -> VideoJob | None:
        return self._job

    @property
    def poll_count(self) -> int:
        return self._poll_count

    async def run(self) -> Path:
        if self._state is not None:
            raise RuntimeError("An AnimationJob can only be run once.")

        try:
            job = await self._backend.submit_video(model=self._model, prompt=self._prompt)
            self._transition(AnimationState.SUBMITTED, job)

            self._transition(AnimationState.POLLING, job)
            while not job.done:
                if (
                    self._max_poll_iterations is not None
                    and self._poll_count >= self._max_poll_iterations
                ):
                    raise AnimationTimeoutError(
                        f"Video job {job.job_id} still running after "
                        f"{self._poll_count} polls of {self._poll_interval:g}s."
                    )
                if self._on_step is not None:
                    self._on_step(POLLING_LABEL)
                await self._sleep(self._poll_interval)
                job = await self._backend.poll_video(job)
                self._poll_count += 1
                self._job = job

            if job.status is VideoJobStatus.FAILED:
                raise AnimationFailedError(
                    f"Video job {job.job_id} failed: {job.error or 'unknown error'}"
                )
            if not job.output_uri:
                raise AnimationFailedError(f"Video job {job.job_id} finished without an output.")

            data = await self._backend.download(job.output_uri)
            if not data:
                raise AnimationFailedError(f"Video job {job.job_id} output was empty.")
            path = await asyncio.to_thread(self._materialize, job.job_id, data)
        except BaseException:
            self._state = AnimationState.FAILED
            raise

        self._transition(AnimationState.DONE, job)
        return path

    def _transition(self, state: AnimationState, job: VideoJob) -> None:
        logger.debug("Video job %s: %s -> %s", job.job_id, self._state, state.value)
        self._state = state
        self._job = job

    def _materialize(self, job_id: str, data: bytes) -> Path:
        self._media_dir.mkdir(parents=True, exist_ok=True)
        safe_id = "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in job_id)
        path = self._media_dir / f"{safe_id or 'animation'}.mp4"
        path.write_bytes(data)
        return path


class VideoAnimator:
    """
    Factory for AnimationJob instances sharing model, clock, and polling settings.

    A fresh backend client is built for each job so re-selected credentials apply.
    """

    def __init__(
        self,
        *,
        client_factory: ClientFactory,
        model: str = DEFAULT_VIDEO_MODEL,
        sleep: SleepCallable | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_poll_iterations: int | None = DEFAULT_MAX_POLL_ITERATIONS,
        media_dir: Path | None = None,
    ) -> None:
        self._client_factory = client_factory
        self._model = model
        self._sleep = sleep
        self._poll_interval = poll_interval
        self._max_poll_iterations = max_poll_iterations
        self._media_dir = media_dir

    @property
    def model(self) -> str:
        return self._model

    def create_job(self, prompt: str, *, on_step: StepNotifier | None = None) -> AnimationJob:
        return AnimationJob(
            self._client_factory(),
            prompt=prompt,
            model=self._model,
            sleep=self._sleep,
            poll_interval=self._poll_interval,
            max_poll_iterations=self._max_poll_iterations,
            media_dir=self._media_dir,
            on_step=on_step,
        )

    async def run_once(self, prompt: str, *, on_step: StepNotifier | None = None) -> Path:
        """Run a single submission; retrying is left to the caller."""
        return await self.create_job(prompt, on_step=on_step).run()
