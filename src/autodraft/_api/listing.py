"""Saved-listing endpoints: resync availability and score recalculation."""

from __future__ import annotations

from autodraft._api._common import post_model
from autodraft._constants import RECALCULATE_SCORE_ENDPOINT, RESYNC_AVAILABILITY_ENDPOINT
from autodraft._transport import Transport
from autodraft.ingestion.normalize import decode_embedded_json, validate_list
from autodraft.models.responses import ResyncAvailabilityResponse, ScoreResult
from autodraft.models.sources import AdapterAvailability


async def check_resync_availability(transport: Transport, listing_id: str) -> list[AdapterAvailability]:
    """Which adapters can currently re-certify fields of *listing_id*."""
    response = await post_model(
        endpoint=RESYNC_AVAILABILITY_ENDPOINT,
        transport=transport,
        payload={"listingId": listing_id},
        model=ResyncAvailabilityResponse,
    )
    decoded = decode_embedded_json(
        response.available_adapters,
        endpoint=RESYNC_AVAILABILITY_ENDPOINT,
        member="availableAdapters",
        default=[],
    )
    return validate_list(
        decoded,
        AdapterAvailability.model_validate,
        endpoint=RESYNC_AVAILABILITY_ENDPOINT,
        member="availableAdapters",
    )


async def recalculate_score(transport: Transport, listing_id: str) -> ScoreResult:
    return await post_model(
        endpoint=RECALCULATE_SCORE_ENDPOINT,
        transport=transport,
        payload={"listingId": listing_id},
        model=ScoreResult,
    )
