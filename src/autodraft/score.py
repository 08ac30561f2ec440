"""Score feedback loop.

The visibility score, its label and the completion percentage are computed
by the backend only.  Any successful persistence round-trip that returns
them is republished into the store immediately, so the displayed metrics
always match the last persisted state.
"""

from __future__ import annotations

import logging
from typing import Protocol

from autodraft.client import DraftBackend
from autodraft.exceptions import DraftError
from autodraft.state.store import FieldStateStore

_logger = logging.getLogger(__name__)


class ScoreCarrier(Protocol):
    """Any backend result that may carry draft metrics."""

    @property
    def visibility_score(self) -> float | None: ...


class ScoreFeedbackLoop:
    """Publishes server-computed metrics into a :class:`FieldStateStore`."""

    def __init__(self, store: FieldStateStore, backend: DraftBackend | None = None) -> None:
        self._store = store
        self._backend = backend

    def publish(self, result: ScoreCarrier) -> None:
        """Overwrite every metric *result* carries; missing ones are kept."""
        self._store.apply_score(
            visibility_score=result.visibility_score,
            visibility_label=getattr(result, "visibility_label", None),
            completion_percentage=getattr(result, "completion_percentage", None),
        )

    async def refresh(self) -> bool:
        """Ask the backend to recompute the score of the saved listing.

        Used when no push channel delivers score updates.  Failures are
        ignored: the previous answer stays displayed.
        """
        listing_id = self._store.listing_id
        if self._backend is None or listing_id is None:
            return False
        try:
            result = await self._backend.recalculate_score(listing_id)
        except DraftError:
            _logger.debug("Score refresh failed for listing %s", listing_id, exc_info=True)
            return False
        if self._store.listing_id != listing_id:
            return False
        self.publish(result)
        return True
