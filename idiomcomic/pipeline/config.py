"""
Explicit configuration object for the IdiomComic pipeline.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping

import yaml

from idiomcomic.ai_generation import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_MAX_POLL_ITERATIONS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SPEECH_MODEL,
    DEFAULT_VIDEO_MODEL,
    build_default_backend,
)
from idiomcomic.common import (
    CredentialProvider,
    Credentials,
    EnvironmentCredentialProvider,
    GenerationBackend,
)
from idiomcomic.common.retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS
from idiomcomic.story_generation import DEFAULT_STORY_LANGUAGE, DEFAULT_TEXT_MODEL

BackendClientFactory = Callable[[Credentials], GenerationBackend]

_FILE_KEYS = {
    "text_model",
    "image_model",
    "speech_model",
    "video_model",
    "max_attempts",
    "base_delay",
    "poll_interval",
    "max_poll_iterations",
    "media_dir",
    "aspect_ratio",
    "language",
}


@dataclass(frozen=True)
class PipelineConfig:
    """
    Settings shared by every stage of a run.

    Attributes
    ----------
    credential_provider:
        Source of API credentials and the credential-selection collaborator.
    backend_client_factory:
        Builds a backend client from credentials. Called once per attempt.
    text_model / image_model / speech_model / video_model:
        Model identifiers for each medium.
    max_attempts / base_delay:
        Retry budget and first backoff delay for every remote call.
    poll_interval / max_poll_iterations:
        Video polling cadence and bound.
    media_dir:
        Where downloaded videos are written. ``None`` uses a temp directory.
    aspect_ratio:
        Panel aspect ratio.
    language:
        Default language for narrative text.
    """

    credential_provider: CredentialProvider = field(default_factory=EnvironmentCredentialProvider)
    backend_client_factory: BackendClientFactory = build_default_backend
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    speech_model: str = DEFAULT_SPEECH_MODEL
    video_model: str = DEFAULT_VIDEO_MODEL
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_BASE_DELAY
    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_poll_iterations: int | None = DEFAULT_MAX_POLL_ITERATIONS
    media_dir: Path | None = None
    aspect_ratio: str = DEFAULT_ASPECT_RATIO
    language: str = DEFAULT_STORY_LANGUAGE

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative.")
        if self.poll_interval < 0:
            raise ValueError("poll_interval must not be negative.")
        if self.max_poll_iterations is not None and self.max_poll_iterations < 0:
            raise ValueError("max_poll_iterations must not be negative.")

    def new_client(self) -> GenerationBackend:
        """Build a backend client with freshly resolved credentials."""
        return self.backend_client_factory(self.credential_provider.get_credentials())

    @classmethod
    def from_env(cls, **overrides: Any) -> "PipelineConfig":
        """
        Resolve model identifiers from environment variables, falling back to defaults.
        """
        values: dict[str, Any] = {
            "text_model": os.getenv("IDIOMCOMIC_TEXT_MODEL")
            or os.getenv("LITELLM_MODEL")
            or DEFAULT_TEXT_MODEL,
            "image_model": os.getenv("IDIOMCOMIC_IMAGE_MODEL")
            or os.getenv("REPLICATE_MODEL")
            or DEFAULT_IMAGE_MODEL,
            "speech_model": os.getenv("IDIOMCOMIC_SPEECH_MODEL")
            or os.getenv("LITELLM_TTS_MODEL")
            or DEFAULT_SPEECH_MODEL,
            "video_model": os.getenv("IDIOMCOMIC_VIDEO_MODEL")
            or os.getenv("REPLICATE_VIDEO_MODEL")
            or DEFAULT_VIDEO_MODEL,
            "language": os.getenv("IDIOMCOMIC_LANGUAGE") or DEFAULT_STORY_LANGUAGE,
        }
        media_dir = os.getenv("IDIOMCOMIC_MEDIA_DIR")
        if media_dir:
            values["media_dir"] = Path(media_dir)
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> "PipelineConfig":
        """
        Build a config from a dict-like object such as a parsed YAML or JSON file.
        """
        unknown = set(data) - _FILE_KEYS
        if unknown:
            raise ValueError(
                f"Unknown configuration key(s): {', '.join(sorted(unknown))}. "
                f"Supported keys: {', '.join(sorted(_FILE_KEYS))}."
            )

        values: dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            if key == "media_dir":
                values[key] = Path(str(value)).expanduser()
            elif key in {"max_attempts", "max_poll_iterations"}:
                values[key] = _coerce_number(key, value, int)
            elif key in {"base_delay", "poll_interval"}:
                values[key] = _coerce_number(key, value, float)
            else:
                text = str(value).strip()
                if not text:
                    raise ValueError(f"Configuration key '{key}' must not be blank.")
                values[key] = text
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_file(cls, path: str | Path, **overrides: Any) -> "PipelineConfig":
        data = load_mapping_file(Path(path))
        return cls.from_mapping(data, **overrides)

    def as_dict(self) -> dict[str, Any]:
        """Serializable view of the file-configurable settings."""
        data = {name: getattr(self, name) for name in sorted(_FILE_KEYS)}
        if self.media_dir is not None:
            data["media_dir"] = str(self.media_dir)
        return data


def _coerce_number(key: str, value: Any, kind: type) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Configuration key '{key}' must be a number, got {value!r}.") from exc


def load_mapping_file(path: Path) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    elif suffix == ".json":
        data = json.loads(text)
    else:
        raise ValueError("Unsupported configuration file format. Use YAML or JSON.")

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{path} must contain a mapping at the top level.")
    return data
