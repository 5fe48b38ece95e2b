"""
Common utilities shared across IdiomComic modules.
"""

from .backend import (
    ClientFactory,
    GenerationBackend,
    MediaAsset,
    VideoJob,
    VideoJobStatus,
)
from .credentials import Credentials, CredentialProvider, EnvironmentCredentialProvider
from .errors import (
    AnimationFailedError,
    AnimationTimeoutError,
    CredentialNotFoundError,
    GenerationValidationError,
    MissingPayloadError,
    PipelineRunError,
)
from .llm import (
    ChatResult,
    CompletionCallable,
    SpeechCallable,
    call_chat_completion,
    call_speech,
    json_schema_response_format,
)
from .retry import RetryExecutor, SleepCallable, backoff_delay

__all__ = [
    "AnimationFailedError",
    "AnimationTimeoutError",
    "ChatResult",
    "ClientFactory",
    "CompletionCallable",
    "CredentialProvider",
    "CredentialNotFoundError",
    "Credentials",
    "EnvironmentCredentialProvider",
    "GenerationBackend",
    "GenerationValidationError",
    "MediaAsset",
    "MissingPayloadError",
    "PipelineRunError",
    "RetryExecutor",
    "SleepCallable",
    "SpeechCallable",
    "VideoJob",
    "VideoJobStatus",
    "backoff_delay",
    "call_chat_completion",
    "call_speech",
    "json_schema_response_format",
]
