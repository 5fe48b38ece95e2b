"""
Exception types shared by the IdiomComic stages and orchestrator.
"""

from __future__ import annotations


class GenerationValidationError(ValueError):
    """Raised when a backend response does not match the expected structure."""


class MissingPayloadError(GenerationValidationError):
    """Raised when a render response does not carry the expected inline payload."""


class CredentialNotFoundError(RuntimeError):
    """Raised when the backend reports that the referenced entity or credential is unknown."""


class AnimationFailedError(RuntimeError):
    """Raised when a video generation job finishes without a playable asset."""


class AnimationTimeoutError(AnimationFailedError):
    """Raised when a video generation job is still running after the poll budget."""


class PipelineRunError(RuntimeError):
    """
    Caller-facing failure of a whole pipeline run.

    The message is ready to show to an end user; the underlying exception is
    available through ``__cause__``.
    """
