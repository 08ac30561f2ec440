"""Resync coordinator.

Offers to re-run the lookup when the last one left degraded sources
(failed, or served from a stale cache).  State machine::

    idle -> checking -> idle | error
    idle -> syncing  -> done | error

``done`` and ``error`` fall back to the degraded-source summary once the
seller dismisses them or a newer lookup replaces the source list.  The
degraded-source list itself is always derived from the orchestrator's
latest sources; it is never stored here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum

from autodraft._constants import adapter_label
from autodraft.autofill import AutoFillOrchestrator, LookupFailure
from autodraft.client import DraftBackend
from autodraft.exceptions import DraftError
from autodraft.models.resync import ResyncResult, ResyncState
from autodraft.models.sources import AdapterAvailability, SourceStatus
from autodraft.state.policy import degraded_sources, failed_adapter_keys, field_changed
from autodraft.state.store import FieldStateStore

_logger = logging.getLogger(__name__)

_SETTLED = (ResyncState.DONE, ResyncState.ERROR)


class BannerKind(StrEnum):
    DEGRADED = "degraded"
    SYNCING = "syncing"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ResyncBanner:
    """What the resync banner should show right now."""

    kind: BannerKind
    adapter_keys: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    message: str = ""
    can_resync: bool = False


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def _done_message(result: ResyncResult) -> str:
    message = f"{_plural(result.updated_field_count, 'field')} updated."
    if result.failed_adapters:
        message += f" {_plural(len(result.failed_adapters), 'source')} still unavailable."
    return message


class ResyncCoordinator:
    """Drives the resync banner for one draft."""

    def __init__(
        self,
        orchestrator: AutoFillOrchestrator,
        store: FieldStateStore,
        backend: DraftBackend | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._store = store
        self._backend = backend
        self._state = ResyncState.IDLE
        self._result: ResyncResult | None = None
        self._error: str | None = None
        self._settled_generation: int | None = None
        self._available_adapters: list[AdapterAvailability] = []
        self._availability_checked = False

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def _expired(self) -> bool:
        return self._state in _SETTLED and self._orchestrator.generation != self._settled_generation

    @property
    def state(self) -> ResyncState:
        if self._expired():
            return ResyncState.IDLE
        return self._state

    @property
    def result(self) -> ResyncResult | None:
        return None if self._expired() else self._result

    @property
    def error(self) -> str | None:
        return None if self._expired() else self._error

    @property
    def available_adapters(self) -> list[AdapterAvailability]:
        return list(self._available_adapters)

    @property
    def degraded_sources(self) -> list[SourceStatus]:
        """Stale then failed sources of the latest lookup."""
        return degraded_sources(self._orchestrator.sources)

    @property
    def can_resync(self) -> bool:
        if self.state != ResyncState.IDLE or self._orchestrator.is_loading:
            return False
        if self._orchestrator.last_identifier is None:
            return False
        if self._availability_checked:
            return any(adapter.is_available for adapter in self._available_adapters)
        return True

    def banner(self) -> ResyncBanner | None:
        """View model for the banner, or ``None`` when nothing is shown."""
        state = self.state
        if state == ResyncState.SYNCING:
            return ResyncBanner(kind=BannerKind.SYNCING, message="Resync in progress...")
        if state == ResyncState.DONE and self._result is not None:
            failed = tuple(self._result.failed_adapters)
            return ResyncBanner(
                kind=BannerKind.DONE,
                adapter_keys=failed,
                labels=tuple(adapter_label(key) for key in failed),
                message=_done_message(self._result),
            )
        if state == ResyncState.ERROR and self._error:
            return ResyncBanner(kind=BannerKind.ERROR, message=self._error)

        degraded = self.degraded_sources
        if not degraded:
            return None
        labels = tuple(source.label for source in degraded)
        return ResyncBanner(
            kind=BannerKind.DEGRADED,
            adapter_keys=tuple(source.adapter_key for source in degraded),
            labels=labels,
            message=f"Some data is stale or unavailable ({', '.join(labels)}).",
            can_resync=self.can_resync,
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _settle(self, state: ResyncState) -> None:
        self._state = state
        self._settled_generation = self._orchestrator.generation

    async def check_availability(self) -> list[AdapterAvailability]:
        """Ask which adapters can currently re-certify the saved listing."""
        listing_id = self._store.listing_id
        if self._backend is None or listing_id is None:
            return []
        if self._state in (ResyncState.CHECKING, ResyncState.SYNCING):
            return list(self._available_adapters)

        # a done or error outcome stays up until dismissed
        settled = self.state in (ResyncState.DONE, ResyncState.ERROR)
        if not settled:
            self._state = ResyncState.CHECKING
            self._error = None
        try:
            adapters = await self._backend.check_resync_availability(listing_id)
        except DraftError as exc:
            _logger.warning("Resync availability check failed: %s", exc)
            if not settled:
                self._error = str(exc) or "Availability check failed"
                self._settle(ResyncState.ERROR)
            return []

        self._available_adapters = adapters
        self._availability_checked = True
        if not settled:
            self._state = ResyncState.IDLE
        _logger.debug(
            "Resync availability for %s: %s",
            listing_id,
            [a.adapter_key for a in adapters if a.is_available],
        )
        return list(adapters)

    async def resync(self) -> ResyncResult | None:
        """Re-run the last lookup and summarize what changed.

        Returns ``None`` when the call itself failed (state ``error``) or
        was superseded by another lookup.
        """
        identifier = self._orchestrator.last_identifier
        identifier_type = self._orchestrator.last_identifier_type
        if identifier is None or identifier_type is None:
            raise DraftError("Nothing to resync: no lookup has run yet")
        if self._state in (ResyncState.CHECKING, ResyncState.SYNCING):
            _logger.debug("Resync already running (%s)", self._state)
            return None

        before = self._store.fields
        self._state = ResyncState.SYNCING
        self._result = None
        self._error = None
        try:
            outcome = await self._orchestrator.lookup(identifier, identifier_type)
        except BaseException:
            self._state = ResyncState.IDLE
            raise

        if outcome is None:
            _logger.debug("Resync lookup superseded")
            self._state = ResyncState.IDLE
            return None
        if outcome.failure in (LookupFailure.TRANSPORT, LookupFailure.MALFORMED):
            self._error = outcome.error or "Resync failed"
            self._settle(ResyncState.ERROR)
            return None

        after = self._store.fields
        names = set(before) | set(after)
        result = ResyncResult(
            updated_field_count=sum(1 for name in names if field_changed(before.get(name), after.get(name))),
            failed_adapters=failed_adapter_keys(outcome.sources),
        )
        self._result = result
        self._settle(ResyncState.DONE)
        _logger.info(
            "Resync done: %d fields updated, %d adapters still failing",
            result.updated_field_count,
            len(result.failed_adapters),
        )
        return result

    def dismiss(self) -> None:
        """Drop the ``done``/``error`` banner; degraded sources show again."""
        if self._state in _SETTLED:
            self._state = ResyncState.IDLE
            self._result = None
            self._error = None
