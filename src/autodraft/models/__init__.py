"""Data models for draft state and backend responses."""

from autodraft.models._base import DraftBaseModel, DraftResponseModel, Timestamp, parse_timestamp
from autodraft.models.draft import DraftSnapshot, Photo
from autodraft.models.fields import CertifiedFieldResult, FieldState, FieldStatus, FieldValue
from autodraft.models.responses import (
    IdentifierType,
    LoadDraftResult,
    LookupResponse,
    ResyncAvailabilityResponse,
    SaveDraftResult,
    ScoreResult,
    UpdateFieldResult,
)
from autodraft.models.resync import ResyncResult, ResyncState
from autodraft.models.sources import AdapterAvailability, CacheStatus, SourceState, SourceStatus

__all__ = [
    "AdapterAvailability",
    "CacheStatus",
    "CertifiedFieldResult",
    "DraftBaseModel",
    "DraftResponseModel",
    "DraftSnapshot",
    "FieldState",
    "FieldStatus",
    "FieldValue",
    "IdentifierType",
    "LoadDraftResult",
    "LookupResponse",
    "Photo",
    "ResyncAvailabilityResponse",
    "ResyncResult",
    "ResyncState",
    "SaveDraftResult",
    "ScoreResult",
    "SourceState",
    "SourceStatus",
    "Timestamp",
    "UpdateFieldResult",
    "parse_timestamp",
]
