from __future__ import annotations

import pytest
from fakes import ADAPTERS, FakeBackend, certified, fixed_now, lookup_response, source

from autodraft.autofill import AutoFillOrchestrator, AutoFillState
from autodraft.exceptions import DraftError, DraftTransportError
from autodraft.models.resync import ResyncState
from autodraft.models.responses import IdentifierType
from autodraft.models.sources import AdapterAvailability
from autodraft.resync import BannerKind, ResyncCoordinator
from autodraft.state.store import FieldStateStore


def _setup() -> tuple[FieldStateStore, FakeBackend, AutoFillOrchestrator, ResyncCoordinator]:
    store = FieldStateStore(clock=fixed_now)
    backend = FakeBackend()
    orchestrator = AutoFillOrchestrator(store, backend)
    return store, backend, orchestrator, ResyncCoordinator(orchestrator, store, backend)


def _two_of_five_failed() -> list[dict[str, object]]:
    return [
        source(ADAPTERS[0]),
        source(ADAPTERS[1], "failed", error="timeout"),
        source(ADAPTERS[2]),
        source(ADAPTERS[3], "failed", error="503"),
        source(ADAPTERS[4]),
    ]


@pytest.mark.asyncio
async def test_banner_lists_exactly_the_failed_adapters() -> None:
    _store, backend, orchestrator, resync = _setup()
    backend.lookup_result = lookup_response([certified("make", "Renault")], _two_of_five_failed())

    await orchestrator.lookup("AB-123-CD", IdentifierType.PLATE)

    assert orchestrator.state == AutoFillState.PARTIAL
    banner = resync.banner()
    assert banner is not None
    assert banner.kind == BannerKind.DEGRADED
    assert banner.adapter_keys == ("IEmissionAdapter", "ICritAirCalculator")
    assert banner.labels == ("ADEME", "Crit'Air")
    assert banner.can_resync
    assert resync.state == ResyncState.IDLE


@pytest.mark.asyncio
async def test_no_banner_without_degraded_sources() -> None:
    _store, backend, orchestrator, resync = _setup()
    backend.lookup_result = lookup_response([certified("make", "Renault")], [source(ADAPTERS[0])])

    await orchestrator.lookup("AB-123-CD", IdentifierType.PLATE)

    assert resync.banner() is None


@pytest.mark.asyncio
async def test_stale_sources_listed_before_failed_ones() -> None:
    _store, backend, orchestrator, resync = _setup()
    backend.lookup_result = lookup_response(
        [certified("make", "Renault")],
        [
            source(ADAPTERS[2], "failed"),
            source(ADAPTERS[0], "cached", cache_status="stale"),
            source(ADAPTERS[1], "cached", cache_status="fresh"),
        ],
    )

    await orchestrator.lookup("AB-123-CD", IdentifierType.PLATE)

    assert [s.adapter_key for s in resync.degraded_sources] == ["IVehicleLookupAdapter", "IRecallAdapter"]


@pytest.mark.asyncio
async def test_resync_reports_updated_fields_and_remaining_failures() -> None:
    store, backend, orchestrator, resync = _setup()
    backend.lookup_result = lookup_response(
        [certified("make", "Renault"), certified("model", "Clio")],
        _two_of_five_failed(),
    )
    await orchestrator.lookup("AB-123-CD", IdentifierType.PLATE)

    backend.lookup_result = lookup_response(
        [certified("make", "Renault"), certified("model", "Clio V"), certified("co2GKm", 118, "ADEME")],
        [source(ADAPTERS[0]), source(ADAPTERS[1]), source(ADAPTERS[2]), source(ADAPTERS[3], "failed"), source(ADAPTERS[4])],
    )
    result = await resync.resync()

    assert result is not None
    assert result.updated_field_count == 2
    assert result.failed_adapters == ["ICritAirCalculator"]
    assert not result.success
    assert resync.state == ResyncState.DONE
    assert backend.calls_to("lookup")[-1] == ("AB-123-CD", IdentifierType.PLATE)
    banner = resync.banner()
    assert banner is not None
    assert banner.kind == BannerKind.DONE
    assert banner.message == "2 fields updated. 1 source still unavailable."
    co2 = store.get_field_state("co2GKm")
    assert co2 is not None and co2.certified_source == "ADEME"


@pytest.mark.asyncio
async def test_adapter_failures_on_resync_are_done_not_error() -> None:
    _store, backend, orchestrator, resync = _setup()
    backend.lookup_result = lookup_response([certified("make", "Renault")], _two_of_five_failed())
    await orchestrator.lookup("AB-123-CD", IdentifierType.PLATE)

    backend.lookup_result = lookup_response([], [source(key, "failed") for key in ADAPTERS])
    result = await resync.resync()

    assert result is not None
    assert resync.state == ResyncState.DONE
    assert result.updated_field_count == 0
    assert result.failed_adapters == list(ADAPTERS)


@pytest.mark.asyncio
async def test_outbound_failure_is_error_and_dismiss_returns_to_summary() -> None:
    _store, backend, orchestrator, resync = _setup()
    backend.lookup_result = lookup_response([certified("make", "Renault")], _two_of_five_failed())
    await orchestrator.lookup("AB-123-CD", IdentifierType.PLATE)

    backend.lookup_result = DraftTransportError("Request to /api/seller/autoFillByPlate timed out after 15.0s")
    result = await resync.resync()

    assert result is None
    assert resync.state == ResyncState.ERROR
    banner = resync.banner()
    assert banner is not None and banner.kind == BannerKind.ERROR
    assert "timed out" in banner.message

    resync.dismiss()

    assert resync.state == ResyncState.IDLE
    assert resync.error is None


@pytest.mark.asyncio
async def test_done_reverts_to_degraded_summary_after_newer_lookup() -> None:
    _store, backend, orchestrator, resync = _setup()
    backend.lookup_result = lookup_response([certified("make", "Renault")], _two_of_five_failed())
    await orchestrator.lookup("AB-123-CD", IdentifierType.PLATE)
    await resync.resync()
    assert resync.state == ResyncState.DONE

    backend.lookup_result = lookup_response(
        [certified("make", "Peugeot")],
        [source(ADAPTERS[0]), source(ADAPTERS[1], "cached", cache_status="stale")],
    )
    await orchestrator.lookup("XY-456-ZW", IdentifierType.PLATE)

    assert resync.state == ResyncState.IDLE
    assert resync.result is None
    banner = resync.banner()
    assert banner is not None
    assert banner.kind == BannerKind.DEGRADED
    assert banner.adapter_keys == ("IEmissionAdapter",)


@pytest.mark.asyncio
async def test_resync_without_previous_lookup_raises() -> None:
    _store, _backend, _orchestrator, resync = _setup()

    with pytest.raises(DraftError):
        await resync.resync()


@pytest.mark.asyncio
async def test_check_availability_stores_adapters() -> None:
    store, backend, orchestrator, resync = _setup()
    store.set_listing_id("L-1")
    backend.lookup_result = lookup_response([certified("make", "Renault")], _two_of_five_failed())
    await orchestrator.lookup("AB-123-CD", IdentifierType.PLATE)
    backend.availability = [
        AdapterAvailability.model_validate(
            {"adapterInterface": "IEmissionAdapter", "isAvailable": False, "certifiableFields": ["co2GKm"]}
        )
    ]

    adapters = await resync.check_availability()

    assert [a.adapter_key for a in adapters] == ["IEmissionAdapter"]
    assert resync.state == ResyncState.IDLE
    assert backend.calls_to("availability") == [("L-1",)]
    banner = resync.banner()
    assert banner is not None and not banner.can_resync


@pytest.mark.asyncio
async def test_check_availability_failure_is_error() -> None:
    store, backend, _orchestrator, resync = _setup()
    store.set_listing_id("L-1")
    backend.availability = DraftTransportError("offline")

    assert await resync.check_availability() == []
    assert resync.state == ResyncState.ERROR
    assert resync.error == "offline"


@pytest.mark.asyncio
async def test_check_availability_keeps_unacknowledged_outcome() -> None:
    store, backend, orchestrator, resync = _setup()
    store.set_listing_id("L-1")
    backend.lookup_result = lookup_response([certified("make", "Renault")], _two_of_five_failed())
    await orchestrator.lookup("AB-123-CD", IdentifierType.PLATE)
    backend.lookup_result = lookup_response([], [source(key, "failed") for key in ADAPTERS])
    await resync.resync()
    assert resync.state == ResyncState.DONE

    backend.availability = DraftTransportError("offline")
    assert await resync.check_availability() == []
    assert resync.state == ResyncState.DONE
    assert resync.error is None

    backend.availability = []
    await resync.check_availability()
    banner = resync.banner()
    assert banner is not None and banner.kind == BannerKind.DONE
    assert len(backend.calls_to("availability")) == 2


@pytest.mark.asyncio
async def test_check_availability_needs_saved_listing() -> None:
    _store, backend, _orchestrator, resync = _setup()

    assert await resync.check_availability() == []
    assert backend.calls == []
