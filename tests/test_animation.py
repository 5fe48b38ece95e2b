"""
Tests for the video job state machine.
"""

import asyncio

import pytest

from idiomcomic.ai_generation import POLLING_LABEL, AnimationJob, AnimationState, VideoAnimator
from idiomcomic.common import (
    AnimationFailedError,
    AnimationTimeoutError,
    CredentialNotFoundError,
    VideoJob,
    VideoJobStatus,
)


def _running(job_id="op-1"):
    return VideoJob(job_id=job_id, status=VideoJobStatus.RUNNING)


def _job(backend, clock, tmp_path, steps=None, **kwargs):
    return AnimationJob(
        backend,
        prompt="Cinematic animation, storybook. Characters: farmer. Story: waiting",
        sleep=clock,
        media_dir=tmp_path,
        on_step=steps.append if steps is not None else None,
        **kwargs,
    )


class TestAnimationJob:
    def test_polls_until_done_and_writes_file(self, backend, clock, tmp_path):
        backend.poll_results = [
            _running(),
            _running(),
            VideoJob(job_id="op-1", status=VideoJobStatus.SUCCEEDED, output_uri="https://x/op-1.mp4"),
        ]
        steps = []
        job = _job(backend, clock, tmp_path, steps)

        path = asyncio.run(job.run())

        assert job.state is AnimationState.DONE
        assert job.poll_count == 3
        assert clock.sleeps == [10.0, 10.0, 10.0]
        assert steps == [POLLING_LABEL] * 3
        assert path == tmp_path / "op-1.mp4"
        assert path.read_bytes() == backend.download_data

    def test_failed_job_raises(self, backend, clock, tmp_path):
        backend.poll_results = [VideoJob(job_id="op-1", status=VideoJobStatus.FAILED, error="safety filter")]
        job = _job(backend, clock, tmp_path)

        with pytest.raises(AnimationFailedError, match="safety filter"):
            asyncio.run(job.run())
        assert job.state is AnimationState.FAILED

    def test_done_without_output_raises(self, backend, clock, tmp_path):
        backend.poll_results = [VideoJob(job_id="op-1", status=VideoJobStatus.SUCCEEDED)]
        job = _job(backend, clock, tmp_path)

        with pytest.raises(AnimationFailedError):
            asyncio.run(job.run())
        assert backend.calls_to("download") == []

    def test_poll_bound_raises_timeout(self, backend, clock, tmp_path):
        backend.poll_results = [_running()]
        job = _job(backend, clock, tmp_path, max_poll_iterations=5)

        with pytest.raises(AnimationTimeoutError):
            asyncio.run(job.run())
        assert job.state is AnimationState.FAILED
        assert job.poll_count == 5
        assert clock.now == 50.0

    def test_credential_error_propagates_without_resuming(self, backend, clock, tmp_path):
        backend.poll_results = [CredentialNotFoundError("Requested entity was not found.")]
        job = _job(backend, clock, tmp_path)

        with pytest.raises(CredentialNotFoundError):
            asyncio.run(job.run())
        assert job.state is AnimationState.FAILED
        assert len(backend.calls_to("poll_video")) == 1

    def test_job_is_single_use(self, backend, clock, tmp_path):
        job = _job(backend, clock, tmp_path)
        asyncio.run(job.run())

        with pytest.raises(RuntimeError):
            asyncio.run(job.run())


class TestVideoAnimator:
    def test_builds_fresh_client_per_job(self, backend, clock, tmp_path):
        built = []

        def factory():
            built.append(1)
            return backend

        animator = VideoAnimator(client_factory=factory, sleep=clock, media_dir=tmp_path)
        asyncio.run(animator.run_once("prompt one"))
        asyncio.run(animator.run_once("prompt two"))

        assert len(built) == 2
        assert [call["model"] for call in backend.calls_to("submit_video")] == ["google/veo-3-fast"] * 2
