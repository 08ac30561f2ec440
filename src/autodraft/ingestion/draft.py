"""Decode a saved draft (``loadDraft``) into store-ready state."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from autodraft._constants import DEFAULT_VISIBILITY_LABEL, LISTING_FIELDS, LOAD_DRAFT_ENDPOINT
from autodraft.exceptions import DraftPayloadError
from autodraft.ingestion.normalize import decode_embedded_json, is_blank, safe_float, validate_list
from autodraft.models.draft import Photo
from autodraft.models.fields import CertifiedFieldResult, FieldState, FieldStatus, FieldValue
from autodraft.models.responses import LoadDraftResult


@dataclass(frozen=True)
class RestoredDraft:
    """Everything Draft Restore writes into the store, decoded and validated."""

    listing_id: str
    fields: dict[str, FieldState]
    visibility_score: float
    visibility_label: str
    completion_percentage: float
    photos: list[Photo] = field(default_factory=list)


def _scalar(value: Any) -> FieldValue:
    if isinstance(value, bool):
        return str(value).lower()
    if value is None or isinstance(value, (str, int, float)):
        return value
    return None


def _restored_status(value: FieldValue, certified: CertifiedFieldResult | None) -> FieldStatus:
    if certified is not None:
        return FieldStatus.CERTIFIED
    if is_blank(value) or value == 0:
        return FieldStatus.EMPTY
    return FieldStatus.DECLARED


def build_restored_fields(
    listing: dict[str, Any],
    certified_fields: Iterable[CertifiedFieldResult],
    *,
    now: datetime,
    field_names: Iterable[str] = LISTING_FIELDS,
) -> dict[str, FieldState]:
    """Build one :class:`FieldState` per known field name.

    A field listed in *certified_fields* is ``certified`` (keeping its source
    and timestamp); otherwise a non-empty, non-zero value is ``declared``;
    everything else is ``empty``.
    """
    certified_map = {cf.field_name: cf for cf in certified_fields if cf.source}
    fields: dict[str, FieldState] = {}
    for name in field_names:
        value = _scalar(listing.get(name))
        certified = certified_map.get(name)
        status = _restored_status(value, certified)
        if certified is not None:
            fields[name] = FieldState(
                field_name=name,
                value=value if value is not None else certified.field_value,
                status=status,
                certified_source=certified.source,
                certified_timestamp=certified.source_timestamp or now,
            )
        else:
            fields[name] = FieldState(field_name=name, value=value, status=status)
    return fields


def parse_load_draft_result(result: LoadDraftResult, *, listing_id: str, now: datetime) -> RestoredDraft:
    """Decode every JSON-encoded member of a ``loadDraft`` answer."""
    listing = decode_embedded_json(result.listing, endpoint=LOAD_DRAFT_ENDPOINT, member="listing", default={})
    if not isinstance(listing, dict):
        raise DraftPayloadError(
            f"{LOAD_DRAFT_ENDPOINT} listing must be an object, got {type(listing).__name__}",
            code="invalid_shape",
            endpoint=LOAD_DRAFT_ENDPOINT,
        )
    certified = validate_list(
        decode_embedded_json(
            result.certified_fields,
            endpoint=LOAD_DRAFT_ENDPOINT,
            member="certifiedFields",
            default=[],
        ),
        CertifiedFieldResult.model_validate,
        endpoint=LOAD_DRAFT_ENDPOINT,
        member="certifiedFields",
    )
    photos = validate_list(
        decode_embedded_json(result.photos, endpoint=LOAD_DRAFT_ENDPOINT, member="photos", default=[]),
        Photo.model_validate,
        endpoint=LOAD_DRAFT_ENDPOINT,
        member="photos",
    )

    return RestoredDraft(
        listing_id=listing_id,
        fields=build_restored_fields(listing, certified, now=now),
        visibility_score=safe_float(listing.get("visibilityScore")) or 0.0,
        visibility_label=str(listing.get("visibilityLabel") or DEFAULT_VISIBILITY_LABEL),
        completion_percentage=safe_float(listing.get("completionPercentage")) or 0.0,
        photos=sorted(photos, key=lambda p: p.sort_order),
    )
