"""Shared helpers for backend endpoint modules.

This module centralizes the most repeated patterns:
- posting a JSON request through the transport
- validating the top-level response into a typed model
- mapping the backend's ``success: false`` convention

It is internal to autodraft and may change at any time.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from autodraft._transport import Transport
from autodraft.exceptions import DraftPayloadError

M = TypeVar("M", bound=BaseModel)


def parse_response(model: type[M], data: dict[str, Any], *, endpoint: str) -> M:
    """Validate a decoded response body, mapping failures to :class:`DraftPayloadError`."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise DraftPayloadError(
            f"{endpoint} response failed validation: {exc.error_count()} error(s)",
            code="invalid_shape",
            endpoint=endpoint,
        ) from exc


async def post_model(
    *,
    endpoint: str,
    transport: Transport,
    payload: Mapping[str, Any],
    model: type[M],
) -> M:
    """Post *payload* and return the response validated as *model*."""
    data = await transport.post_json(endpoint, payload)
    return parse_response(model, data, endpoint=endpoint)
