"""Backend request/response models."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, Field

from autodraft.models._base import DraftResponseModel


class IdentifierType(StrEnum):
    PLATE = "plate"
    VIN = "vin"


class LookupResponse(DraftResponseModel):
    """Raw ``autoFillByPlate`` answer.

    ``fields`` and ``sources`` are JSON-encoded strings on the wire; they
    are decoded by :mod:`autodraft.ingestion.lookup`.
    """

    fields: str | list[Any] | None = None
    sources: str | list[Any] | None = None


class UpdateFieldResult(DraftResponseModel):
    """``updateListingField`` answer."""

    visibility_score: float | None = None
    previous_certified_value: str | None = None
    """Set by the backend when the update overrode a certified value."""


class SaveDraftResult(DraftResponseModel):
    """``saveDraft`` answer."""

    success: bool = False
    listing_id: str | None = None
    visibility_score: float | None = None
    visibility_label: str | None = None
    completion_percentage: float | None = None
    message: str | None = None


class LoadDraftResult(DraftResponseModel):
    """``loadDraft`` answer; every member is a JSON-encoded string."""

    listing: str | dict[str, Any] | None = None
    certified_fields: str | list[Any] | None = None
    photos: str | list[Any] | None = None


class ScoreResult(DraftResponseModel):
    """``recalculateScore`` answer."""

    visibility_score: float | None = Field(
        default=None,
        validation_alias=AliasChoices("score", "visibilityScore", "visibility_score"),
    )
    visibility_label: str | None = Field(
        default=None,
        validation_alias=AliasChoices("label", "visibilityLabel", "visibility_label"),
    )
    completion_percentage: float | None = None


class ResyncAvailabilityResponse(DraftResponseModel):
    """``checkResyncAvailability`` answer (``availableAdapters`` is JSON-encoded)."""

    listing_id: str | None = None
    has_resyncable_fields: bool = False
    available_adapters: str | list[Any] | None = None
