"""
Shared fakes for the IdiomComic test suite: an in-memory backend and a virtual clock.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Callable

import pytest

from idiomcomic.common import Credentials, MediaAsset, VideoJob, VideoJobStatus
from idiomcomic.pipeline import IdiomComicOrchestrator, PipelineConfig

SCENES = [
    "scene 1: A farmer hoes his field under the spring sun.",
    "scene 2: A rabbit dashes out and breaks its neck on a tree stump.",
    "scene 3: The farmer drops his hoe and sits by the stump, waiting for another rabbit.",
    "scene 4: Weeds overrun the field while the farmer still waits.",
]

NARRATIVE_PAYLOAD: dict[str, Any] = {
    "explanation": "Waiting for gains without effort; clinging to a lucky accident.",
    "origin": "Han Feizi, Five Vermin, Warring States period.",
    "story": "A farmer of Song saw a rabbit die against a stump and gave up farming to wait for more.",
    "scenes": SCENES,
}

BIBLE_PAYLOAD: dict[str, Any] = {
    "styleDescription": "Modern hand-drawn storybook style, bright and cheerful",
    "characterDescription": "A lean farmer in a straw hat and blue tunic, carrying a wooden hoe",
    "colorPalette": "wheat gold, grass green, sky blue",
}

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"
AUDIO_BYTES = b"ID3fake-mp3"
VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42fake"

_SCENE_NUMBER = re.compile(r"scene (\d+):")


class VirtualClock:
    """Awaitable sleep replacement that records delays and never blocks."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


class FakeBackend:
    """
    Scripted GenerationBackend.

    Structured responses are queued per schema name; the last queued entry repeats.
    Queued exceptions are raised instead of returned.
    """

    def __init__(self) -> None:
        self.structured: dict[str, list[Any]] = {
            "idiom_narrative": [json.dumps(NARRATIVE_PAYLOAD)],
            "visual_bible": [json.dumps(BIBLE_PAYLOAD)],
        }
        self.image_behaviour: Callable[[int, str], Any] = self._default_image
        self.speech_results: list[Any] = [MediaAsset(data=AUDIO_BYTES, mime_type="audio/mpeg")]
        self.submit_results: list[Any] = [VideoJob(job_id="op-1", status=VideoJobStatus.PENDING)]
        self.poll_results: list[Any] = [
            VideoJob(
                job_id="op-1",
                status=VideoJobStatus.SUCCEEDED,
                output_uri="https://example.invalid/op-1.mp4",
            )
        ]
        self.download_data = VIDEO_BYTES
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.image_attempts: dict[int, int] = {}
        self.completion_order: list[int] = []

    def calls_to(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for call_name, kwargs in self.calls if call_name == name]

    async def generate_structured(self, *, model, prompt, schema, schema_name, system=None):
        self.calls.append(("generate_structured", {"model": model, "schema_name": schema_name}))
        return self._next(self.structured[schema_name])

    async def render_image(self, *, model, prompt, aspect_ratio):
        match = _SCENE_NUMBER.search(prompt)
        scene_number = int(match.group(1)) if match else 0
        self.image_attempts[scene_number] = self.image_attempts.get(scene_number, 0) + 1
        self.calls.append(("render_image", {"model": model, "prompt": prompt, "aspect_ratio": aspect_ratio}))
        result = await self.image_behaviour(scene_number, prompt)
        self.completion_order.append(scene_number)
        return result

    async def synthesize_speech(self, *, model, text, voice):
        self.calls.append(("synthesize_speech", {"model": model, "voice": voice}))
        return self._next(self.speech_results)

    async def submit_video(self, *, model, prompt):
        self.calls.append(("submit_video", {"model": model, "prompt": prompt}))
        return self._next(self.submit_results)

    async def poll_video(self, job):
        self.calls.append(("poll_video", {"job_id": job.job_id}))
        return self._next(self.poll_results)

    async def download(self, uri):
        self.calls.append(("download", {"uri": uri}))
        return self.download_data

    @staticmethod
    async def _default_image(scene_number: int, prompt: str) -> list[MediaAsset]:
        # Later scenes finish first so fan-in ordering is exercised.
        for _ in range(10 - scene_number):
            await asyncio.sleep(0)
        return [MediaAsset(data=PNG_BYTES + str(scene_number).encode(), mime_type="image/png")]

    @staticmethod
    def _next(queue: list[Any]) -> Any:
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return item


class FakeCredentialProvider:
    def __init__(self, *, has_credential: bool = True, grants_selection: bool = True) -> None:
        self.selected = has_credential
        self.grants_selection = grants_selection
        self.selection_requests = 0

    def get_credentials(self) -> Credentials:
        return Credentials(llm_api_key="test-key", replicate_api_token="r8_test" if self.selected else None)

    async def has_credential(self) -> bool:
        return self.selected

    async def request_credential_selection(self) -> None:
        self.selection_requests += 1
        if self.grants_selection:
            self.selected = True


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def credentials() -> FakeCredentialProvider:
    return FakeCredentialProvider()


@pytest.fixture
def config(backend, credentials, tmp_path) -> PipelineConfig:
    return PipelineConfig(
        credential_provider=credentials,
        backend_client_factory=lambda _credentials: backend,
        media_dir=tmp_path / "media",
    )


@pytest.fixture
def orchestrator(config, clock) -> IdiomComicOrchestrator:
    return IdiomComicOrchestrator(config, sleep=clock)
