"""
Default generation backend: LiteLLM for text and speech, Replicate for images and video.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable as IterableABC
from typing import Any, Callable, Mapping

import replicate
import requests
from replicate.exceptions import ReplicateError

from idiomcomic.common import (
    CompletionCallable,
    CredentialNotFoundError,
    Credentials,
    MediaAsset,
    SpeechCallable,
    VideoJob,
    VideoJobStatus,
    call_chat_completion,
    call_speech,
    json_schema_response_format,
)

IMAGE_MIME_TYPE = "image/png"
SPEECH_MIME_TYPE = "audio/mpeg"
NOT_FOUND_MESSAGE = "Requested entity was not found."


def _build_flux_pro_input(*, prompt: str, aspect_ratio: str) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "aspect_ratio": aspect_ratio,
        "output_format": "png",
        "safety_tolerance": 2,
        "prompt_upsampling": True,
    }


def _build_flux_schnell_input(*, prompt: str, aspect_ratio: str) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "aspect_ratio": aspect_ratio,
        "output_format": "png",
        "num_outputs": 1,
    }


def _build_imagen_input(*, prompt: str, aspect_ratio: str) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "aspect_ratio": aspect_ratio,
        "output_format": "png",
        "safety_filter_level": "block_only_high",
    }


def _build_veo_input(*, prompt: str) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "aspect_ratio": "16:9",
        "resolution": "720p",
    }


def _build_minimax_video_input(*, prompt: str) -> dict[str, Any]:
    return {
        "prompt": prompt,
        "prompt_optimizer": True,
    }


_IMAGE_INPUT_BUILDERS: dict[str, Callable[..., dict[str, Any]]] = {
    "black-forest-labs/flux-1.1-pro": _build_flux_pro_input,
    "black-forest-labs/flux-schnell": _build_flux_schnell_input,
    "google/imagen-4": _build_imagen_input,
}

_VIDEO_INPUT_BUILDERS: dict[str, Callable[..., dict[str, Any]]] = {
    "google/veo-3": _build_veo_input,
    "google/veo-3-fast": _build_veo_input,
    "minimax/video-01": _build_minimax_video_input,
}

_REPLICATE_STATUS_MAP: dict[str, VideoJobStatus] = {
    "starting": VideoJobStatus.PENDING,
    "processing": VideoJobStatus.RUNNING,
    "succeeded": VideoJobStatus.SUCCEEDED,
    "failed": VideoJobStatus.FAILED,
    "canceled": VideoJobStatus.FAILED,
}


def _select_builder(
    builders: Mapping[str, Callable[..., dict[str, Any]]],
    model_identifier: str,
    kind: str,
) -> Callable[..., dict[str, Any]]:
    normalized_identifier = model_identifier.strip().lower()
    builder = builders.get(normalized_identifier)
    if builder is None and ":" in normalized_identifier:
        base_identifier = normalized_identifier.split(":", maxsplit=1)[0]
        builder = builders.get(base_identifier)
    if builder is None:
        supported_models = ", ".join(sorted(builders))
        raise ValueError(
            f"{kind} model identifier '{model_identifier}' is not configured with a default "
            f"input payload. Supported models: {supported_models}."
        )
    return builder


def build_image_input(model_identifier: str, *, prompt: str, aspect_ratio: str) -> dict[str, Any]:
    builder = _select_builder(_IMAGE_INPUT_BUILDERS, model_identifier, "Image")
    return builder(prompt=prompt, aspect_ratio=aspect_ratio)


def build_video_input(model_identifier: str, *, prompt: str) -> dict[str, Any]:
    builder = _select_builder(_VIDEO_INPUT_BUILDERS, model_identifier, "Video")
    return builder(prompt=prompt)


def _first_output_uri(output: Any) -> str | None:
    if output is None:
        return None
    if isinstance(output, str):
        return output or None
    if isinstance(output, IterableABC) and not isinstance(output, (bytes, Mapping)):
        for item in output:
            uri = _first_output_uri(item)
            if uri:
                return uri
        return None
    url = getattr(output, "url", None)
    return str(url) if url else None


def _is_not_found(exc: ReplicateError) -> bool:
    status = getattr(exc, "status", None)
    return status == 404 or "not found" in str(exc).lower()


class LiteLLMReplicateBackend:
    """
    GenerationBackend backed by LiteLLM and the Replicate client.

    Parameters
    ----------
    credentials:
        Keys used for this client's calls. Falls back to the environment when omitted.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    completion_fn / speech_fn:
        Overrides for the LiteLLM helpers.
    request_timeout:
        Timeout in seconds for downloading generated assets.
    """

    def __init__(
        self,
        *,
        credentials: Credentials | None = None,
        client: replicate.Client | None = None,
        completion_fn: CompletionCallable | None = None,
        speech_fn: SpeechCallable | None = None,
        request_timeout: float = 60.0,
    ) -> None:
        self._credentials = credentials or Credentials()
        self._client = client or replicate.Client(
            api_token=self._credentials.replicate_api_token
        )
        self._completion_fn: CompletionCallable = completion_fn or call_chat_completion
        self._speech_fn: SpeechCallable = speech_fn or call_speech
        self.request_timeout = request_timeout

    async def generate_structured(
        self,
        *,
        model: str,
        prompt: str,
        schema: Mapping[str, Any],
        schema_name: str,
        system: str | None = None,
    ) -> str:
        messages: list[dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        result = await self._completion_fn(
            model=model,
            messages=messages,
            temperature=0.7,
            api_key=self._credentials.llm_api_key,
            response_format=json_schema_response_format(schema_name, schema),
        )
        return result.text

    async def render_image(
        self,
        *,
        model: str,
        prompt: str,
        aspect_ratio: str,
    ) -> list[MediaAsset]:
        replicate_input = build_image_input(model, prompt=prompt, aspect_ratio=aspect_ratio)
        output = await self._client.async_run(model, input=replicate_input)
        return [
            MediaAsset(data=data, mime_type=IMAGE_MIME_TYPE)
            for data in await self._read_outputs(output)
            if data
        ]

    async def synthesize_speech(
        self,
        *,
        model: str,
        text: str,
        voice: str,
    ) -> MediaAsset | None:
        audio = await self._speech_fn(
            model=model,
            text=text,
            voice=voice,
            api_key=self._credentials.llm_api_key,
        )
        if not audio:
            return None
        return MediaAsset(data=audio, mime_type=SPEECH_MIME_TYPE)

    async def submit_video(self, *, model: str, prompt: str) -> VideoJob:
        replicate_input = build_video_input(model, prompt=prompt)
        prediction = await self._client.predictions.async_create(
            model=model,
            input=replicate_input,
        )
        return self._to_video_job(prediction)

    async def poll_video(self, job: VideoJob) -> VideoJob:
        try:
            prediction = await self._client.predictions.async_get(job.job_id)
        except ReplicateError as exc:
            if _is_not_found(exc):
                raise CredentialNotFoundError(NOT_FOUND_MESSAGE) from exc
            raise
        return self._to_video_job(prediction)

    async def download(self, uri: str) -> bytes:
        return await asyncio.to_thread(self._fetch, uri)

    def _fetch(self, uri: str) -> bytes:
        response = requests.get(uri, timeout=self.request_timeout)
        response.raise_for_status()
        return response.content

    async def _read_outputs(self, output: Any) -> list[bytes]:
        if output is None:
            return []
        if isinstance(output, bytes):
            return [output]
        if isinstance(output, str):
            return [await self.download(output)]
        if hasattr(output, "aread"):
            return [await output.aread()]
        if isinstance(output, IterableABC) and not isinstance(output, Mapping):
            collected: list[bytes] = []
            for item in output:
                collected.extend(await self._read_outputs(item))
            return collected
        return []

    @staticmethod
    def _to_video_job(prediction: Any) -> VideoJob:
        raw_status = str(getattr(prediction, "status", "") or "").lower()
        status = _REPLICATE_STATUS_MAP.get(raw_status, VideoJobStatus.RUNNING)
        error = getattr(prediction, "error", None)
        return VideoJob(
            job_id=str(prediction.id),
            status=status,
            output_uri=_first_output_uri(getattr(prediction, "output", None)),
            error=str(error) if error else None,
        )


def build_default_backend(credentials: Credentials) -> LiteLLMReplicateBackend:
    """Backend client factory used when no custom factory is configured."""
    return LiteLLMReplicateBackend(credentials=credentials)
