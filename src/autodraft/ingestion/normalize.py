"""Normalization helpers.

Centralizes decoding of the backend's JSON-in-JSON sub-payloads and
placeholder handling for field values.
"""

from __future__ import annotations

import json
import math
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import ValidationError

from autodraft.exceptions import DraftPayloadError

T = TypeVar("T")


def is_blank(value: Any) -> bool:
    """Return True for values that leave a field empty (``None`` or ``""``)."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    return bool(isinstance(value, float) and math.isnan(value))


def safe_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def decode_embedded_json(raw: Any, *, endpoint: str, member: str, default: T) -> Any:
    """Decode a JSON-encoded member of a backend response.

    ``None`` and empty strings decode to *default*.  Already-decoded
    values (some backend builds inline the structure) pass through.
    """
    if raw is None:
        return default
    if not isinstance(raw, str):
        return raw
    if not raw.strip():
        return default
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DraftPayloadError(
            f"{endpoint} {member} is not JSON: {raw[:128]}",
            code="invalid_json",
            endpoint=endpoint,
        ) from exc


def validate_list(
    items: Any,
    parse: Callable[[Any], T],
    *,
    endpoint: str,
    member: str,
) -> list[T]:
    """Validate every element of a decoded list with *parse*."""
    if not isinstance(items, list):
        raise DraftPayloadError(
            f"{endpoint} {member} must be a list, got {type(items).__name__}",
            code="invalid_shape",
            endpoint=endpoint,
        )
    try:
        return [parse(item) for item in items]
    except ValidationError as exc:
        raise DraftPayloadError(
            f"{endpoint} {member} failed validation: {exc.error_count()} error(s)",
            code="invalid_shape",
            endpoint=endpoint,
        ) from exc
