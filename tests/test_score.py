from __future__ import annotations

import pytest
from fakes import FakeBackend, fixed_now

from autodraft.exceptions import DraftTransportError
from autodraft.models.responses import SaveDraftResult, ScoreResult, UpdateFieldResult
from autodraft.score import ScoreFeedbackLoop
from autodraft.state.store import FieldStateStore


def test_publish_overwrites_only_carried_metrics() -> None:
    store = FieldStateStore(clock=fixed_now)
    loop = ScoreFeedbackLoop(store)

    loop.publish(
        SaveDraftResult(success=True, visibility_score=40.0, visibility_label="Partially documented", completion_percentage=30.0)
    )
    loop.publish(UpdateFieldResult(visibility_score=45.0))

    assert store.visibility_score == 45.0
    assert store.snapshot().previous_visibility_score == 40.0
    assert store.visibility_label == "Partially documented"
    assert store.completion_percentage == 30.0


@pytest.mark.asyncio
async def test_refresh_publishes_recalculated_score() -> None:
    store = FieldStateStore(clock=fixed_now)
    store.set_listing_id("L-1")
    backend = FakeBackend()
    backend.score_result = ScoreResult.model_validate({"score": 72, "label": "Well documented"})

    assert await ScoreFeedbackLoop(store, backend).refresh() is True

    assert backend.calls_to("score") == [("L-1",)]
    assert store.visibility_score == 72.0
    assert store.visibility_label == "Well documented"


@pytest.mark.asyncio
async def test_refresh_failure_keeps_last_answer() -> None:
    store = FieldStateStore(clock=fixed_now)
    store.set_listing_id("L-1")
    store.apply_score(visibility_score=50.0)
    backend = FakeBackend()
    backend.score_result = DraftTransportError("offline")

    assert await ScoreFeedbackLoop(store, backend).refresh() is False
    assert store.visibility_score == 50.0


@pytest.mark.asyncio
async def test_refresh_without_listing_does_nothing() -> None:
    store = FieldStateStore(clock=fixed_now)
    backend = FakeBackend()

    assert await ScoreFeedbackLoop(store, backend).refresh() is False
    assert backend.calls == []
