"""
LiteLLM-powered chat completion and speech helper utilities.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, MutableMapping, Sequence

from litellm import acompletion, aspeech

ChatMessage = Mapping[str, Any]


@dataclass
class ChatResult:
    """
    Structured response returned from an LLM chat completion.
    """

    text: str
    raw: Any


CompletionCallable = Callable[..., Awaitable[ChatResult]]
SpeechCallable = Callable[..., Awaitable[bytes]]


def json_schema_response_format(name: str, schema: Mapping[str, Any]) -> dict[str, Any]:
    """
    Build the OpenAI-style ``response_format`` block requesting schema-conforming JSON.
    """
    return {
        "type": "json_schema",
        "json_schema": {
            "name": name,
            "schema": dict(schema),
            "strict": True,
        },
    }


async def call_chat_completion(
    *,
    model: str,
    messages: Sequence[ChatMessage],
    temperature: float | None = None,
    max_tokens: int | None = None,
    api_key: str | None = None,
    **extra_kwargs: Any,
) -> ChatResult:
    """
    Invoke LiteLLM's `acompletion` API and return the consolidated text.
    """
    payload: MutableMapping[str, Any] = {
        "model": model,
        "messages": list(messages),
    }

    if temperature is not None:
        payload["temperature"] = temperature

    if max_tokens is not None:
        payload["max_tokens"] = max_tokens

    if api_key is not None:
        payload["api_key"] = api_key

    payload.update(extra_kwargs)

    response = await acompletion(**payload)

    try:
        message = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RuntimeError("Unexpected LiteLLM response format.") from exc

    text = str(message or "").strip()
    return ChatResult(text=text, raw=response)


async def call_speech(
    *,
    model: str,
    text: str,
    voice: str,
    api_key: str | None = None,
    **extra_kwargs: Any,
) -> bytes:
    """
    Invoke LiteLLM's `aspeech` API and return the raw audio bytes (possibly empty).
    """
    payload: MutableMapping[str, Any] = {
        "model": model,
        "input": text,
        "voice": voice,
    }

    if api_key is not None:
        payload["api_key"] = api_key

    payload.update(extra_kwargs)

    response = await aspeech(**payload)
    content = getattr(response, "content", None)
    if content is None:
        return b""
    return bytes(content)
