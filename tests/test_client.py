from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest
from fakes import RecordingTransport, certified, source

from autodraft.client import DraftClient
from autodraft.config import DraftConfig
from autodraft.exceptions import DraftError, DraftPayloadError, DraftSaveError
from autodraft.ingestion.lookup import parse_lookup_response
from autodraft.models.fields import CertifiedFieldResult
from autodraft.models.responses import IdentifierType, LookupResponse
from autodraft.models.sources import SourceState


def _client(transport: RecordingTransport) -> DraftClient:
    return DraftClient(DraftConfig(), transport=transport)


@pytest.mark.asyncio
async def test_lookup_request_shape() -> None:
    transport = RecordingTransport({"fields": "[]", "sources": "[]"})

    response = await _client(transport).lookup_vehicle("AB-123-CD", IdentifierType.PLATE)

    assert transport.requests == [
        ("/api/seller/autoFillByPlate", {"identifier": "AB-123-CD", "identifierType": "plate"})
    ]
    assert response.fields == "[]"


@pytest.mark.asyncio
async def test_save_draft_encodes_nested_members_as_json_strings() -> None:
    transport = RecordingTransport(
        {"success": True, "listingId": "L-1", "visibilityScore": 55, "visibilityLabel": "Well documented"}
    )
    certified_fields = [
        CertifiedFieldResult(
            field_name="make",
            field_value="Renault",
            source="SIV",
            source_timestamp=datetime(2026, 1, 1, tzinfo=UTC),
            is_certified=True,
        )
    ]

    result = await _client(transport).save_draft(None, {"make": "Renault", "mileage": 52000}, certified_fields)

    endpoint, payload = transport.requests[0]
    assert endpoint == "/api/seller/saveDraft"
    assert payload["listingId"] is None
    assert json.loads(payload["fields"]) == {"make": "Renault", "mileage": 52000}
    encoded = json.loads(payload["certifiedFields"])
    assert encoded[0]["fieldName"] == "make"
    assert encoded[0]["source"] == "SIV"
    assert encoded[0]["isCertified"] is True
    assert result.listing_id == "L-1"
    assert result.visibility_score == 55.0


@pytest.mark.asyncio
async def test_save_draft_without_certified_fields_sends_null() -> None:
    transport = RecordingTransport({"success": True, "listingId": "L-1"})

    await _client(transport).save_draft("L-1", {"price": 9000})

    assert transport.requests[0][1]["certifiedFields"] is None


@pytest.mark.asyncio
async def test_save_draft_unsuccessful_raises() -> None:
    transport = RecordingTransport({"success": False, "message": "Listing is locked"})

    with pytest.raises(DraftSaveError, match="Listing is locked"):
        await _client(transport).save_draft("L-1", {})


@pytest.mark.asyncio
async def test_update_listing_field_returns_audit_value() -> None:
    transport = RecordingTransport({"visibilityScore": 48, "previousCertifiedValue": "Renault"})

    result = await _client(transport).update_listing_field("L-1", "make", "Renault Sport")

    assert transport.requests[0] == (
        "/api/seller/updateListingField",
        {"listingId": "L-1", "fieldName": "make", "value": "Renault Sport"},
    )
    assert result.visibility_score == 48.0
    assert result.previous_certified_value == "Renault"


@pytest.mark.asyncio
async def test_check_resync_availability_decodes_adapters() -> None:
    adapters = [{"adapterInterface": "IEmissionAdapter", "providerKey": "ademe", "isAvailable": True}]
    transport = RecordingTransport({"listingId": "L-1", "availableAdapters": json.dumps(adapters)})

    result = await _client(transport).check_resync_availability("L-1")

    assert [(a.adapter_key, a.provider_key, a.is_available) for a in result] == [
        ("IEmissionAdapter", "ademe", True)
    ]


@pytest.mark.asyncio
async def test_check_resync_availability_rejects_malformed_member() -> None:
    transport = RecordingTransport({"availableAdapters": "{broken"})

    with pytest.raises(DraftPayloadError):
        await _client(transport).check_resync_availability("L-1")


@pytest.mark.asyncio
async def test_client_requires_context_without_transport() -> None:
    client = DraftClient(DraftConfig())

    with pytest.raises(DraftError):
        await client.load_draft("L-1")


def test_parse_lookup_response_accepts_encoded_and_inline_members() -> None:
    encoded = LookupResponse.model_validate(
        {
            "fields": json.dumps([certified("make", "Renault")]),
            "sources": json.dumps([source("IVehicleLookupAdapter", "cached", cache_status="stale")]),
        }
    )
    inline = LookupResponse.model_validate(
        {"fields": [certified("make", "Renault")], "sources": [source("IVehicleLookupAdapter")]}
    )

    fields, sources = parse_lookup_response(encoded)
    assert fields[0].field_value == "Renault"
    assert sources[0].is_stale
    assert sources[0].label == "SIV"

    fields, sources = parse_lookup_response(inline)
    assert fields[0].is_certified
    assert sources[0].status == SourceState.SUCCESS


def test_parse_lookup_response_rejects_bad_shape() -> None:
    response = LookupResponse.model_validate({"fields": json.dumps({"make": "Renault"}), "sources": "[]"})

    with pytest.raises(DraftPayloadError) as exc_info:
        parse_lookup_response(response)
    assert exc_info.value.code == "invalid_shape"


def test_parse_lookup_response_rejects_unknown_source_status() -> None:
    response = LookupResponse.model_validate(
        {"fields": "[]", "sources": json.dumps([{"adapterInterface": "IRecallAdapter", "status": "exploded"}])}
    )

    with pytest.raises(DraftPayloadError):
        parse_lookup_response(response)
