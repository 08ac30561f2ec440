"""Store change notifications.

Every mutation of :class:`autodraft.state.store.FieldStateStore` emits one
:class:`StoreChange` to its subscribers (presentation layers rendering
certification badges, score gauges, save indicators).
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ChangeKind(StrEnum):
    FIELDS_INITIALIZED = "fields_initialized"
    FIELD_UPDATED = "field_updated"
    FIELD_RESTORED = "field_restored"
    AUDIT_RECORDED = "audit_recorded"
    SCORE_UPDATED = "score_updated"
    LISTING_ASSIGNED = "listing_assigned"
    SAVE_STATE = "save_state"
    PHOTOS_UPDATED = "photos_updated"
    HYDRATED = "hydrated"
    RESET = "reset"


class StoreChange(BaseModel):
    """A single store mutation."""

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    field_names: tuple[str, ...] = Field(default=(), description="Fields touched, if any")
    version: int = Field(..., description="Store version after the change")
