"""Per-adapter status models reported by the lookup aggregator."""

from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, Field

from autodraft._constants import adapter_label
from autodraft.models._base import DraftBaseModel


class SourceState(StrEnum):
    PENDING = "pending"
    SUCCESS = "success"
    CACHED = "cached"
    FAILED = "failed"


class CacheStatus(StrEnum):
    FRESH = "fresh"
    STALE = "stale"


class SourceStatus(DraftBaseModel):
    """Status of one external adapter in the last lookup."""

    adapter_key: str = Field(validation_alias=AliasChoices("adapterKey", "adapterInterface", "adapter_key"))
    """Logical source identifier (e.g. ``"IEmissionAdapter"``)."""
    status: SourceState
    cache_status: CacheStatus | None = None
    """Only meaningful when ``status == cached``."""
    error_message: str | None = None
    """Present when ``status == failed``."""

    @property
    def label(self) -> str:
        return adapter_label(self.adapter_key)

    @property
    def is_failed(self) -> bool:
        return self.status == SourceState.FAILED

    @property
    def is_stale(self) -> bool:
        return self.status == SourceState.CACHED and self.cache_status == CacheStatus.STALE

    @property
    def is_degraded(self) -> bool:
        """Failed, or served from a stale cache."""
        return self.is_failed or self.is_stale


class AdapterAvailability(DraftBaseModel):
    """Whether an adapter can currently re-certify fields of a saved listing."""

    adapter_key: str = Field(validation_alias=AliasChoices("adapterKey", "adapterInterface", "adapter_key"))
    provider_key: str | None = None
    is_available: bool = False
    certifiable_fields: list[str] = Field(default_factory=list)
