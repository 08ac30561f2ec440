"""Draft persistence endpoints: per-field update, whole save, load."""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

from autodraft._api._common import post_model
from autodraft._constants import LOAD_DRAFT_ENDPOINT, SAVE_DRAFT_ENDPOINT, UPDATE_FIELD_ENDPOINT
from autodraft._transport import Transport
from autodraft.exceptions import DraftSaveError
from autodraft.models.fields import CertifiedFieldResult, FieldValue
from autodraft.models.responses import LoadDraftResult, SaveDraftResult, UpdateFieldResult


async def update_listing_field(
    transport: Transport,
    listing_id: str,
    field_name: str,
    value: FieldValue,
) -> UpdateFieldResult:
    """Persist a single field; the answer carries the recomputed score."""
    return await post_model(
        endpoint=UPDATE_FIELD_ENDPOINT,
        transport=transport,
        payload={"listingId": listing_id, "fieldName": field_name, "value": value},
        model=UpdateFieldResult,
    )


def build_save_payload(
    listing_id: str | None,
    fields: Mapping[str, FieldValue],
    certified_fields: Sequence[CertifiedFieldResult] | None,
) -> dict[str, Any]:
    """Wire shape of ``saveDraft``: nested members are JSON-encoded strings."""
    certified: str | None = None
    if certified_fields:
        certified = json.dumps(
            [cf.model_dump(mode="json", by_alias=True) for cf in certified_fields],
            separators=(",", ":"),
        )
    return {
        "listingId": listing_id or None,
        "fields": json.dumps(dict(fields), separators=(",", ":")),
        "certifiedFields": certified,
    }


async def save_draft(
    transport: Transport,
    listing_id: str | None,
    fields: Mapping[str, FieldValue],
    certified_fields: Sequence[CertifiedFieldResult] | None = None,
) -> SaveDraftResult:
    """Persist the whole draft as one unit.

    Raises :class:`DraftSaveError` when the backend answers ``success: false``.
    """
    result = await post_model(
        endpoint=SAVE_DRAFT_ENDPOINT,
        transport=transport,
        payload=build_save_payload(listing_id, fields, certified_fields),
        model=SaveDraftResult,
    )
    if not result.success:
        raise DraftSaveError(
            result.message or "Save returned success=false",
            code="save_failed",
            endpoint=SAVE_DRAFT_ENDPOINT,
        )
    return result


async def load_draft(transport: Transport, listing_id: str) -> LoadDraftResult:
    return await post_model(
        endpoint=LOAD_DRAFT_ENDPOINT,
        transport=transport,
        payload={"listingId": listing_id},
        model=LoadDraftResult,
    )
