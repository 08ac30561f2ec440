"""Base model shared by every autodraft wire and state model.

Every model inherits from :class:`DraftBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase backend keys map
  automatically to snake_case fields (and dump back with ``by_alias``).
* Frozen instances, so a model read out of the store is a safe snapshot.

Backend response models inherit from :class:`DraftResponseModel`, which
additionally stashes the original payload in ``raw``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def parse_timestamp(value: Any) -> Any:
    """Coerce an epoch number (seconds **or** milliseconds) to a UTC datetime.

    Strings are left to pydantic's ISO-8601 parser; naive results are
    treated as UTC by :func:`_ensure_utc`.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        ts = float(value)
        if ts >= _MS_THRESHOLD:
            ts /= 1000.0
        return datetime.fromtimestamp(ts, tz=UTC)
    return value


def _ensure_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


Timestamp = Annotated[datetime, BeforeValidator(parse_timestamp)]
"""Annotated type accepting ISO strings or epoch seconds/milliseconds."""


class DraftBaseModel(BaseModel):
    """Base for autodraft models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    @model_validator(mode="after")
    def _normalise_timestamps(self) -> DraftBaseModel:
        for name, value in self:
            if isinstance(value, datetime) and value.tzinfo is None:
                object.__setattr__(self, name, _ensure_utc(value))
        return self


class DraftResponseModel(DraftBaseModel):
    """Base for backend response models; keeps the original payload."""

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original backend response dict."""

    @model_validator(mode="before")
    @classmethod
    def _ensure_raw(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        merged = dict(values)
        merged.setdefault("raw", values)
        return merged
