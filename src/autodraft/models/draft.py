"""Draft aggregate models."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, Field

from autodraft.models._base import DraftBaseModel
from autodraft.models.fields import FieldState, FieldStatus


class Photo(DraftBaseModel):
    """A photo already uploaded for the draft."""

    id: str = Field(validation_alias=AliasChoices("ID", "id"))
    cdn_url: str = ""
    sort_order: int = 0
    is_primary: bool = False
    file_size: int | None = None
    mime_type: str | None = None
    width: int | None = None
    height: int | None = None


class DraftSnapshot(DraftBaseModel):
    """Read-only view of the Draft aggregate at one store version."""

    listing_id: str | None = None
    fields: dict[str, FieldState] = Field(default_factory=dict)
    visibility_score: float = 0.0
    previous_visibility_score: float = 0.0
    visibility_label: str | None = None
    completion_percentage: float = 0.0
    is_dirty: bool = False
    is_saving: bool = False
    last_saved_at: datetime | None = None
    photos: tuple[Photo, ...] = ()
    version: int = 0

    def fields_with_status(self, status: FieldStatus) -> list[FieldState]:
        return [state for state in self.fields.values() if state.status == status]

    @property
    def certified_fields(self) -> list[FieldState]:
        return self.fields_with_status(FieldStatus.CERTIFIED)
