"""Resync state models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from autodraft.models._base import DraftBaseModel


class ResyncState(StrEnum):
    IDLE = "idle"
    CHECKING = "checking"
    SYNCING = "syncing"
    DONE = "done"
    ERROR = "error"


class ResyncResult(DraftBaseModel):
    """Outcome of one resync run."""

    updated_field_count: int = 0
    failed_adapters: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed_adapters
