"""Field-level models: the per-field state and certified lookup results."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import Field, model_validator

from autodraft.models._base import DraftBaseModel, Timestamp

FieldValue = str | int | float | None
"""Scalar value of a draft field."""


class FieldStatus(StrEnum):
    EMPTY = "empty"
    DECLARED = "declared"
    CERTIFIED = "certified"


class FieldState(DraftBaseModel):
    """Client-side state of one named draft field."""

    field_name: str
    value: FieldValue = None
    status: FieldStatus = FieldStatus.EMPTY
    certified_source: str | None = None
    """External source that produced the value (certified fields only)."""
    certified_timestamp: Timestamp | None = None
    """When the source produced the value (certified fields only)."""
    original_certified_value: str | None = None
    """What the certified source said before the seller overrode it.

    Audit record: once set it survives declared edits; only a fresh
    certification replaces the field entry.
    """

    @model_validator(mode="after")
    def _certified_requires_provenance(self) -> FieldState:
        if self.status == FieldStatus.CERTIFIED and (
            not self.certified_source or self.certified_timestamp is None
        ):
            raise ValueError(f"certified field {self.field_name!r} requires certified_source and certified_timestamp")
        return self

    @property
    def is_certified(self) -> bool:
        return self.status == FieldStatus.CERTIFIED

    @property
    def was_overridden(self) -> bool:
        """Whether the seller replaced a certified value."""
        return self.original_certified_value is not None


class CertifiedFieldResult(DraftBaseModel):
    """One field as returned by a lookup (and as sent back on save)."""

    field_name: str
    field_value: FieldValue = None
    source: str = ""
    source_timestamp: Timestamp | None = None
    is_certified: bool = Field(default=False)

    @classmethod
    def from_field_state(cls, state: FieldState, *, fallback_timestamp: datetime) -> CertifiedFieldResult:
        """Serialize a certified :class:`FieldState` for ``saveDraft``."""
        return cls(
            field_name=state.field_name,
            field_value="" if state.value is None else str(state.value),
            source=state.certified_source or "",
            source_timestamp=state.certified_timestamp or fallback_timestamp,
            is_certified=True,
        )
