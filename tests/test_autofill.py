from __future__ import annotations

import asyncio

import pytest
from fakes import ADAPTERS, FakeBackend, certified, declared, fixed_now, lookup_response, source

from autodraft.autofill import AutoFillOrchestrator, AutoFillState, LookupFailure, classify_sources
from autodraft.exceptions import DraftTransportError
from autodraft.models.fields import FieldStatus
from autodraft.models.responses import IdentifierType, LookupResponse
from autodraft.state.store import FieldStateStore


def _setup() -> tuple[FieldStateStore, FakeBackend, AutoFillOrchestrator]:
    store = FieldStateStore(clock=fixed_now)
    backend = FakeBackend()
    return store, backend, AutoFillOrchestrator(store, backend)


@pytest.mark.asyncio
async def test_plate_lookup_with_all_fields_certified() -> None:
    store, backend, orchestrator = _setup()
    backend.lookup_result = lookup_response(
        [certified("make", "Renault"), certified("model", "Clio"), certified("fuelType", "Diesel")],
        [source("IVehicleLookupAdapter")],
    )

    outcome = await orchestrator.lookup("AB-123-CD", IdentifierType.PLATE)

    assert outcome is not None
    assert outcome.state == AutoFillState.SUCCESS
    assert orchestrator.state == AutoFillState.SUCCESS
    fields = store.fields
    assert set(fields) == {"make", "model", "fuelType"}
    assert all(state.status == FieldStatus.CERTIFIED for state in fields.values())
    assert all(state.certified_source == "SIV" for state in fields.values())
    # score is only known after the next persistence round-trip
    assert store.visibility_score == 0.0
    assert backend.calls_to("lookup") == [("AB-123-CD", IdentifierType.PLATE)]


@pytest.mark.asyncio
async def test_partial_failure_updates_store_with_what_succeeded() -> None:
    store, backend, orchestrator = _setup()
    backend.lookup_result = lookup_response(
        [certified("make", "Renault"), declared("color", "Grey")],
        [
            source(ADAPTERS[0]),
            source(ADAPTERS[1], "failed", error="timeout"),
            source(ADAPTERS[2]),
            source(ADAPTERS[3], "failed", error="503"),
            source(ADAPTERS[4]),
        ],
    )

    outcome = await orchestrator.lookup("ab123cd", "plate")

    assert outcome is not None and outcome.state == AutoFillState.PARTIAL
    assert orchestrator.last_identifier == "AB-123-CD"
    assert len(orchestrator.sources) == 5
    color = store.get_field_state("color")
    assert color is not None and color.status == FieldStatus.DECLARED


@pytest.mark.asyncio
async def test_all_sources_failed_leaves_store_untouched() -> None:
    store, backend, orchestrator = _setup()
    store.update_field("mileage", "52000", FieldStatus.DECLARED)
    version = store.version
    backend.lookup_result = lookup_response(
        [certified("make", "Renault")],
        [source(key, "failed") for key in ADAPTERS],
    )

    outcome = await orchestrator.lookup("AB-123-CD", IdentifierType.PLATE)

    assert outcome is not None
    assert outcome.state == AutoFillState.ERROR
    assert outcome.failure == LookupFailure.ALL_SOURCES_FAILED
    assert orchestrator.error == "All services unavailable"
    assert store.version == version
    assert store.get_field_state("make") is None


@pytest.mark.asyncio
async def test_malformed_sub_payload_is_an_error_without_store_change() -> None:
    store, backend, orchestrator = _setup()
    backend.lookup_result = LookupResponse.model_validate({"fields": "[{not json", "sources": "[]"})

    outcome = await orchestrator.lookup("AB-123-CD", IdentifierType.PLATE)

    assert outcome is not None
    assert outcome.failure == LookupFailure.MALFORMED
    assert orchestrator.state == AutoFillState.ERROR
    assert orchestrator.error
    assert store.fields == {}


@pytest.mark.asyncio
async def test_transport_failure_is_an_error_without_store_change() -> None:
    store, backend, orchestrator = _setup()
    backend.lookup_result = DraftTransportError("Request to /api/seller/autoFillByPlate failed: boom")

    outcome = await orchestrator.lookup("VF1RFB00X56789012", IdentifierType.VIN)

    assert outcome is not None
    assert outcome.failure == LookupFailure.TRANSPORT
    assert "boom" in (orchestrator.error or "")
    assert store.fields == {}


@pytest.mark.asyncio
async def test_only_latest_lookup_is_applied_even_if_stale_response_arrives_later() -> None:
    store, backend, orchestrator = _setup()
    release_first = asyncio.Event()

    async def _hook(identifier: str, _type: IdentifierType) -> LookupResponse:
        if identifier == "AB-123-CD":
            try:
                await release_first.wait()
            except asyncio.CancelledError:
                # a transport that resolves anyway after being aborted
                pass
            return lookup_response([certified("make", "Renault")], [source(ADAPTERS[0])])
        return lookup_response([certified("make", "Peugeot")], [source(ADAPTERS[0])])

    backend.lookup_hook = _hook

    first = asyncio.ensure_future(orchestrator.lookup("AB-123-CD", IdentifierType.PLATE))
    await asyncio.sleep(0.01)
    second = await orchestrator.lookup("XY-456-ZW", IdentifierType.PLATE)
    release_first.set()
    stale = await first

    assert stale is None
    assert second is not None and second.state == AutoFillState.SUCCESS
    make = store.get_field_state("make")
    assert make is not None and make.value == "Peugeot"
    assert orchestrator.last_identifier == "XY-456-ZW"


@pytest.mark.asyncio
async def test_superseded_lookup_response_is_discarded_when_newer_is_still_pending() -> None:
    store, backend, orchestrator = _setup()
    gates = {"AB-123-CD": asyncio.Event(), "XY-456-ZW": asyncio.Event()}

    async def _hook(identifier: str, _type: IdentifierType) -> LookupResponse:
        await asyncio.shield(gates[identifier].wait())
        return lookup_response([certified("model", identifier)], [source(ADAPTERS[0])])

    backend.lookup_hook = _hook

    first = asyncio.ensure_future(orchestrator.lookup("AB-123-CD", IdentifierType.PLATE))
    await asyncio.sleep(0.01)
    second = asyncio.ensure_future(orchestrator.lookup("XY-456-ZW", IdentifierType.PLATE))
    await asyncio.sleep(0.01)

    assert orchestrator.state == AutoFillState.LOADING
    gates["XY-456-ZW"].set()
    assert (await second) is not None
    gates["AB-123-CD"].set()
    assert (await first) is None

    model = store.get_field_state("model")
    assert model is not None and model.value == "XY-456-ZW"


@pytest.mark.asyncio
async def test_reset_discards_in_flight_response() -> None:
    store, backend, orchestrator = _setup()
    release = asyncio.Event()

    async def _hook(_identifier: str, _type: IdentifierType) -> LookupResponse:
        await asyncio.shield(release.wait())
        return lookup_response([certified("make", "Renault")], [source(ADAPTERS[0])])

    backend.lookup_hook = _hook

    pending = asyncio.ensure_future(orchestrator.lookup("AB-123-CD", IdentifierType.PLATE))
    await asyncio.sleep(0.01)
    orchestrator.reset()
    release.set()

    assert (await pending) is None
    assert orchestrator.state == AutoFillState.IDLE
    assert store.fields == {}


@pytest.mark.asyncio
async def test_empty_identifier_is_rejected() -> None:
    _store, backend, orchestrator = _setup()

    with pytest.raises(ValueError):
        await orchestrator.lookup("  - ", IdentifierType.PLATE)
    assert backend.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("identifier", "identifier_type"),
    [
        ("AB-123-CDE", IdentifierType.PLATE),
        ("WVWZZZ1JZXW000001", IdentifierType.PLATE),
        ("AB-123-CD", IdentifierType.VIN),
        ("WVWZZZ1JZXW00000", IdentifierType.VIN),
    ],
)
async def test_incomplete_or_mistyped_identifier_is_rejected(identifier: str, identifier_type: IdentifierType) -> None:
    store, backend, orchestrator = _setup()

    with pytest.raises(ValueError):
        await orchestrator.lookup(identifier, identifier_type)
    assert backend.calls == []
    assert orchestrator.state == AutoFillState.IDLE
    assert store.fields == {}


def test_classify_sources() -> None:
    from autodraft.models.sources import SourceStatus

    ok = SourceStatus.model_validate(source(ADAPTERS[0]))
    stale = SourceStatus.model_validate(source(ADAPTERS[1], "cached", cache_status="stale"))
    failed = SourceStatus.model_validate(source(ADAPTERS[2], "failed"))

    assert classify_sources([]) == AutoFillState.SUCCESS
    assert classify_sources([ok, stale]) == AutoFillState.SUCCESS
    assert classify_sources([ok, failed]) == AutoFillState.PARTIAL
    assert classify_sources([failed]) == AutoFillState.ERROR
