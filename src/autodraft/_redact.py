"""Redaction of draft payloads for API traces.

Traces (``AUTODRAFT_API_TRACE_ENABLED``) log full request and response bodies.
Those carry the bearer token, seller contact details, the vehicle
identifier and signed photo URLs; :func:`redact_for_log` strips or masks
them.  The ``fields`` / ``certifiedFields`` members of a save are
JSON-encoded strings, so they are decoded and redacted like any other
member instead of being logged as one opaque blob.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import urlsplit, urlunsplit

REDACTED = "<redacted>"
MAX_DEPTH = 12

_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "authorization",
        "cookie",
        "token",
        "accesstoken",
        "apitoken",
        "refreshtoken",
        # seller contact details
        "email",
        "phone",
        "firstname",
        "lastname",
        "address",
    }
)

# Shown with only the last characters so a trace still tells vehicles apart.
_IDENTIFIER_KEYS: frozenset[str] = frozenset({"identifier", "vin", "plate", "registration"})

_URL_KEYS: frozenset[str] = frozenset({"cdnurl", "url", "uploadurl", "thumbnailurl"})

_EMBEDDED_JSON_KEYS: frozenset[str] = frozenset({"fields", "certifiedfields", "photos"})


def mask_identifier(value: str, *, keep: int = 3) -> str:
    """``AB-123-CD`` -> ``******-CD``."""
    if len(value) <= keep:
        return "*" * len(value)
    return "*" * (len(value) - keep) + value[-keep:]


def strip_query(url: str) -> str:
    """Drop the query string and fragment, where signed URLs keep their credentials."""
    parts = urlsplit(url)
    if not parts.query and not parts.fragment:
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


def _decode_embedded(value: str) -> Any:
    if value[:1] not in ("{", "["):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def _redact_member(key: str, value: Any, max_string: int, depth: int) -> Any:
    lowered = key.lower()
    if lowered in _SECRET_KEYS:
        return REDACTED
    if isinstance(value, str):
        if lowered in _IDENTIFIER_KEYS:
            return mask_identifier(value)
        if lowered in _URL_KEYS:
            return strip_query(value)
        if lowered in _EMBEDDED_JSON_KEYS:
            value = _decode_embedded(value)
    return redact_for_log(value, max_string=max_string, _depth=depth + 1)


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a redacted copy of a draft payload suitable for DEBUG logs."""
    if _depth > MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated {len(value) - max_string} chars>"
        return value
    if isinstance(value, Mapping):
        return {str(k): _redact_member(str(k), v, max_string, _depth) for k, v in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]
    return repr(value)
