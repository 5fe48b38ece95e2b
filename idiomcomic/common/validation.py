"""
Helpers for validating structured backend output.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping

from .errors import GenerationValidationError


def load_json_object(text: str, *, what: str) -> dict[str, Any]:
    """
    Parse ``text`` as a JSON object, raising GenerationValidationError otherwise.
    """
    if not text or not text.strip():
        raise GenerationValidationError(f"{what} response was empty.")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise GenerationValidationError(f"Failed to parse {what} response as JSON.") from exc

    if not isinstance(parsed, dict):
        raise GenerationValidationError(f"{what} response must be a JSON object.")
    return parsed


def require_text_fields(
    payload: Mapping[str, Any],
    fields: Iterable[str],
    *,
    what: str,
) -> dict[str, str]:
    """
    Return the stripped string value of every field, rejecting missing or blank ones.
    """
    values: dict[str, str] = {}
    for name in fields:
        value = payload.get(name)
        if not isinstance(value, str) or not value.strip():
            raise GenerationValidationError(f"{what} response missing '{name}'.")
        values[name] = value.strip()
    return values
