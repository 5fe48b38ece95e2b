"""
Contract between the pipeline stages and a generative backend.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Protocol


@dataclass(frozen=True)
class MediaAsset:
    """Inline binary payload returned by a render or synthesis call."""

    data: bytes
    mime_type: str

    def to_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    @classmethod
    def from_data_uri(cls, uri: str) -> "MediaAsset":
        if not uri.startswith("data:") or ";base64," not in uri:
            raise ValueError("Expected a base64 data URI.")
        header, encoded = uri.split(",", 1)
        mime_type = header[len("data:"):].split(";", 1)[0] or "application/octet-stream"
        return cls(data=base64.b64decode(encoded), mime_type=mime_type)


class VideoJobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class VideoJob:
    """
    Snapshot of a long-running video generation job.
    """

    job_id: str
    status: VideoJobStatus
    output_uri: str | None = None
    error: str | None = None

    @property
    def done(self) -> bool:
        return self.status in (VideoJobStatus.SUCCEEDED, VideoJobStatus.FAILED)


class GenerationBackend(Protocol):
    """
    Remote generation operations the stages depend on.

    Every method performs exactly one remote call; retrying is the caller's job.
    """

    async def generate_structured(
        self,
        *,
        model: str,
        prompt: str,
        schema: Mapping[str, Any],
        schema_name: str,
        system: str | None = None,
    ) -> str:
        """Return the raw JSON text produced for ``schema``."""
        ...

    async def render_image(
        self,
        *,
        model: str,
        prompt: str,
        aspect_ratio: str,
    ) -> list[MediaAsset]:
        """Return every inline image payload found in the response."""
        ...

    async def synthesize_speech(
        self,
        *,
        model: str,
        text: str,
        voice: str,
    ) -> MediaAsset | None:
        """Return the narration audio, or ``None`` when the response carried none."""
        ...

    async def submit_video(self, *, model: str, prompt: str) -> VideoJob:
        ...

    async def poll_video(self, job: VideoJob) -> VideoJob:
        """Re-query ``job``; raises CredentialNotFoundError when the job is unknown."""
        ...

    async def download(self, uri: str) -> bytes:
        ...


ClientFactory = Callable[[], GenerationBackend]
