"""Draft persistence engine.

Two triggers write the same remote draft:

* per-field sync: every edit is applied to the store at once, then sent
  alone after a debounce window keyed by field name.  A failed sync puts
  the pre-edit snapshot back.
* whole-draft save: manual or periodic; serializes every non-empty value
  plus the certified fields and sends them as one unit.

Only one whole-draft save runs at a time.  Per-field syncs do not wait for
it, nor for each other.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from autodraft._constants import AUTO_SAVE_INTERVAL_SECONDS, DEBOUNCE_SECONDS
from autodraft.client import DraftBackend
from autodraft.exceptions import DraftError
from autodraft.ingestion.normalize import is_blank
from autodraft.models.fields import CertifiedFieldResult, FieldState, FieldStatus, FieldValue
from autodraft.score import ScoreFeedbackLoop
from autodraft.state.policy import replace_field, status_for_value
from autodraft.state.store import FieldStateStore

_logger = logging.getLogger(__name__)

SaveErrorCallback = Callable[[DraftError], None]


@dataclass(frozen=True, slots=True)
class SaveOutcome:
    """Result of one whole-draft save attempt.

    ``retry`` is only set for failed manual saves; auto-save failures are
    never surfaced.
    """

    success: bool
    error: DraftError | None = None
    retry: Callable[[], Awaitable[SaveOutcome]] | None = field(default=None, repr=False)
    skipped: bool = False
    """``True`` when another save was already in flight."""


@dataclass(slots=True)
class _PendingSync:
    """Debounce window of one field."""

    baseline: FieldState | None
    """Field state before the first edit of the burst."""
    value: FieldValue = None
    revision: int = 0
    handle: asyncio.TimerHandle | None = None


def _rollback_target(baseline: FieldState | None, current: FieldState | None) -> FieldState | None:
    """*baseline*, keeping an audit value recorded after it was captured."""
    if baseline is None or current is None or current.original_certified_value is None:
        return baseline
    if baseline.original_certified_value is not None:
        return baseline
    return replace_field(baseline, original_certified_value=current.original_certified_value)


class DraftPersistenceEngine:
    """Keeps the remote draft in step with a :class:`FieldStateStore`."""

    def __init__(
        self,
        store: FieldStateStore,
        backend: DraftBackend,
        score: ScoreFeedbackLoop,
        *,
        debounce_seconds: float = DEBOUNCE_SECONDS,
        auto_save_interval: float = AUTO_SAVE_INTERVAL_SECONDS,
        on_save_error: SaveErrorCallback | None = None,
    ) -> None:
        self._store = store
        self._backend = backend
        self._score = score
        self._debounce_seconds = debounce_seconds
        self._auto_save_interval = auto_save_interval
        self._on_save_error = on_save_error
        self._pending: dict[str, _PendingSync] = {}
        self._in_flight: set[asyncio.Task[None]] = set()
        self._auto_save_task: asyncio.Task[None] | None = None
        self._epoch = 0
        self._closed = False

    @property
    def pending_syncs(self) -> list[str]:
        """Field names whose debounce window is still open."""
        return list(self._pending)

    @property
    def in_flight_syncs(self) -> int:
        return len(self._in_flight)

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Per-field sync
    # ------------------------------------------------------------------

    def update_field(self, field_name: str, value: FieldValue) -> None:
        """Apply a seller edit now and schedule its sync.

        Must be called from the event loop thread.  Edits to the same field
        inside the debounce window coalesce into one backend call carrying
        the last value.
        """
        if self._closed:
            raise DraftError("Persistence engine is closed")
        loop = asyncio.get_running_loop()
        pending = self._pending.get(field_name)
        if pending is None:
            pending = _PendingSync(baseline=self._store.get_field_state(field_name))
            self._pending[field_name] = pending
        elif pending.handle is not None:
            pending.handle.cancel()

        pending.value = value
        pending.revision = self._store.update_field(field_name, value, status_for_value(value))
        pending.handle = loop.call_later(self._debounce_seconds, self._fire, field_name)

    def override_certified_field(self, field_name: str) -> bool:
        """Unlock a certified field for editing.

        The value is kept, the status becomes ``declared`` and the certified
        value is recorded locally as the audit value.  The backend's
        ``previousCertifiedValue`` replaces it on the next sync.
        """
        state = self._store.get_field_state(field_name)
        if state is None or not state.is_certified:
            return False
        self._store.update_field(field_name, state.value, FieldStatus.DECLARED)
        if state.value is not None:
            self._store.set_original_certified_value(field_name, str(state.value))
        return True

    def _fire(self, field_name: str) -> None:
        pending = self._pending.pop(field_name, None)
        if pending is None:
            return
        task = asyncio.ensure_future(
            self._sync_field(field_name, pending.value, pending.baseline, pending.revision, self._epoch)
        )
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _sync_field(
        self,
        field_name: str,
        value: FieldValue,
        baseline: FieldState | None,
        revision: int,
        epoch: int,
    ) -> None:
        listing_id = self._store.listing_id
        if listing_id is None:
            # nothing to patch yet; the first whole-draft save carries the value
            _logger.debug("No listing yet, %s waits for the next save", field_name)
            return

        try:
            result = await self._backend.update_listing_field(listing_id, field_name, value)
        except DraftError as exc:
            if epoch != self._epoch:
                return
            target = _rollback_target(baseline, self._store.get_field_state(field_name))
            if self._store.restore_field(field_name, target, expected_revision=revision):
                _logger.warning("Sync of %s failed, rolled back: %s", field_name, exc)
            else:
                _logger.warning("Sync of %s failed, newer edit kept: %s", field_name, exc)
            return

        if epoch != self._epoch or self._store.listing_id != listing_id:
            _logger.debug("Dropping sync result of %s for an abandoned draft", field_name)
            return
        self._score.publish(result)
        if result.previous_certified_value is not None:
            self._store.set_original_certified_value(field_name, result.previous_certified_value)

    async def flush(self) -> None:
        """Send every pending edit now and wait for all syncs to finish."""
        for field_name in list(self._pending):
            pending = self._pending.get(field_name)
            if pending is not None and pending.handle is not None:
                pending.handle.cancel()
            self._fire(field_name)
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    # ------------------------------------------------------------------
    # Whole-draft save
    # ------------------------------------------------------------------

    def _build_save(self) -> tuple[dict[str, FieldValue], list[CertifiedFieldResult]]:
        fields = self._store.fields
        now = self._store.now
        values = {name: state.value for name, state in fields.items() if not is_blank(state.value)}
        certified = [
            CertifiedFieldResult.from_field_state(state, fallback_timestamp=now)
            for state in fields.values()
            if state.is_certified
        ]
        return values, certified

    async def save(self, *, is_auto_save: bool = False) -> SaveOutcome:
        """Persist the whole draft.

        On failure the draft stays dirty.  Manual failures are reported to
        ``on_save_error`` and come back with a ``retry`` factory; auto-save
        failures are only logged.
        """
        if self._store.is_saving:
            _logger.debug("Save already in flight, skipping")
            return SaveOutcome(success=False, skipped=True)

        epoch = self._epoch
        version = self._store.version
        listing_id = self._store.listing_id
        values, certified = self._build_save()

        self._store.set_saving(True)
        try:
            result = await self._backend.save_draft(listing_id, values, certified or None)
        except DraftError as exc:
            if is_auto_save:
                _logger.warning("Auto-save failed: %s", exc)
                return SaveOutcome(success=False, error=exc)
            _logger.warning("Save failed: %s", exc)
            self._notify_save_error(exc)
            return SaveOutcome(success=False, error=exc, retry=self.save)
        finally:
            self._store.set_saving(False)

        if epoch != self._epoch:
            _logger.debug("Dropping save result for an abandoned draft")
            return SaveOutcome(success=True)

        if listing_id is None and result.listing_id:
            self._store.set_listing_id(result.listing_id)
        self._score.publish(result)
        if not self._store.mark_saved(version=version):
            _logger.debug("Draft changed while saving, still dirty")
        return SaveOutcome(success=True)

    def _notify_save_error(self, exc: DraftError) -> None:
        if self._on_save_error is None:
            return
        try:
            self._on_save_error(exc)
        except Exception:
            _logger.debug("on_save_error callback failed", exc_info=True)

    def start_auto_save(self) -> None:
        """Save every ``auto_save_interval`` seconds while the draft is dirty."""
        if self._closed:
            raise DraftError("Persistence engine is closed")
        if self._auto_save_task is not None and not self._auto_save_task.done():
            return
        self._auto_save_task = asyncio.ensure_future(self._auto_save_loop())

    async def _auto_save_loop(self) -> None:
        while True:
            await asyncio.sleep(self._auto_save_interval)
            if not self._store.is_dirty or self._store.is_saving:
                continue
            try:
                await self.save(is_auto_save=True)
            except Exception:
                _logger.debug("Auto-save tick failed", exc_info=True)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def discard_pending(self) -> None:
        """Forget every pending or in-flight sync (draft abandoned).

        Results of requests already sent are ignored when they arrive.
        """
        self._epoch += 1
        for pending in self._pending.values():
            if pending.handle is not None:
                pending.handle.cancel()
        self._pending.clear()
        for task in list(self._in_flight):
            task.cancel()

    async def close(self) -> None:
        """Cancel timers, in-flight syncs and the auto-save task."""
        if self._closed:
            return
        self._closed = True
        self.discard_pending()
        tasks: list[asyncio.Task[None]] = list(self._in_flight)
        if self._auto_save_task is not None:
            self._auto_save_task.cancel()
            tasks.append(self._auto_save_task)
            self._auto_save_task = None
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
