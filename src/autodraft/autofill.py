"""Auto-fill orchestrator.

Runs the multi-source lookup for a plate or VIN and writes the certified
results into the field store.  Overlapping lookups are resolved by a
generation number: every call takes the next generation, and a response is
only applied if its generation is still the current one when it arrives.
Cancelling the previous request is attempted too, but never relied upon;
some transports resolve after cancellation.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import StrEnum

from autodraft._constants import ALL_SOURCES_FAILED_MESSAGE
from autodraft.client import DraftBackend
from autodraft.exceptions import DraftError, DraftPayloadError
from autodraft.identifiers import is_valid_identifier, normalize_identifier
from autodraft.ingestion.lookup import parse_lookup_response
from autodraft.models.fields import CertifiedFieldResult
from autodraft.models.responses import IdentifierType, LookupResponse
from autodraft.models.sources import SourceStatus
from autodraft.state.store import FieldStateStore

_logger = logging.getLogger(__name__)


class AutoFillState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    PARTIAL = "partial"
    ERROR = "error"


class LookupFailure(StrEnum):
    TRANSPORT = "transport"
    """No usable response (network, HTTP error)."""
    MALFORMED = "malformed"
    """Response received but ``fields``/``sources`` did not decode."""
    ALL_SOURCES_FAILED = "all_sources_failed"
    """The aggregation call worked but every adapter failed."""


@dataclass(frozen=True, slots=True)
class LookupOutcome:
    """What one applied lookup produced."""

    state: AutoFillState
    fields: tuple[CertifiedFieldResult, ...] = ()
    sources: tuple[SourceStatus, ...] = ()
    failure: LookupFailure | None = None
    error: str | None = None


@dataclass(slots=True)
class _LookupToken:
    """Cooperative cancellation handle for one lookup generation."""

    generation: int
    cancelled: bool = False
    request: asyncio.Future[LookupResponse] | None = field(default=None, repr=False)

    def cancel(self) -> None:
        self.cancelled = True
        if self.request is not None and not self.request.done():
            self.request.cancel()


def classify_sources(sources: list[SourceStatus]) -> AutoFillState:
    """``success`` with no failed source, ``error`` when all failed, else ``partial``."""
    failed = sum(1 for source in sources if source.is_failed)
    if failed == 0:
        return AutoFillState.SUCCESS
    if failed < len(sources):
        return AutoFillState.PARTIAL
    return AutoFillState.ERROR


class AutoFillOrchestrator:
    """Coordinates vehicle lookups against one :class:`FieldStateStore`."""

    def __init__(self, store: FieldStateStore, backend: DraftBackend) -> None:
        self._store = store
        self._backend = backend
        self._generation = 0
        self._token: _LookupToken | None = None
        self._state = AutoFillState.IDLE
        self._fields: list[CertifiedFieldResult] = []
        self._sources: list[SourceStatus] = []
        self._error: str | None = None
        self._failure: LookupFailure | None = None
        self._last_identifier: str | None = None
        self._last_identifier_type: IdentifierType | None = None

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> AutoFillState:
        return self._state

    @property
    def fields(self) -> list[CertifiedFieldResult]:
        return list(self._fields)

    @property
    def sources(self) -> list[SourceStatus]:
        return list(self._sources)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def failure(self) -> LookupFailure | None:
        return self._failure

    @property
    def generation(self) -> int:
        """Generation of the most recently issued lookup."""
        return self._generation

    @property
    def last_identifier(self) -> str | None:
        return self._last_identifier

    @property
    def last_identifier_type(self) -> IdentifierType | None:
        return self._last_identifier_type

    @property
    def is_loading(self) -> bool:
        return self._state == AutoFillState.LOADING

    def _is_current(self, token: _LookupToken) -> bool:
        return token.generation == self._generation and not token.cancelled

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def lookup(self, identifier: str, identifier_type: IdentifierType | str) -> LookupOutcome | None:
        """Run a lookup and apply its results if it is still the latest one.

        Returns the applied outcome, or ``None`` when the response was
        discarded because a newer lookup (or a reset) superseded it.
        """
        identifier_type = IdentifierType(identifier_type)
        normalized = normalize_identifier(identifier, identifier_type)
        if not normalized:
            raise ValueError("identifier must be non-empty")
        if not is_valid_identifier(identifier, identifier_type):
            raise ValueError(f"not a complete {identifier_type}: {identifier!r}")
        identifier = normalized

        self.cancel()
        self._generation += 1
        token = _LookupToken(generation=self._generation)
        self._token = token
        self._last_identifier = identifier
        self._last_identifier_type = identifier_type
        self._state = AutoFillState.LOADING
        self._fields = []
        self._sources = []
        self._error = None
        self._failure = None

        _logger.debug("Lookup generation=%d type=%s started", token.generation, identifier_type)
        request = asyncio.ensure_future(self._backend.lookup_vehicle(identifier, identifier_type))
        token.request = request
        try:
            response = await request
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if token.cancelled and (task is None or not task.cancelling()):
                _logger.debug("Lookup generation=%d cancelled", token.generation)
                return None
            raise
        except DraftError as exc:
            if not self._is_current(token):
                _logger.debug("Discarding failure of superseded lookup generation=%d", token.generation)
                return None
            failure = LookupFailure.MALFORMED if isinstance(exc, DraftPayloadError) else LookupFailure.TRANSPORT
            return self._fail(token, failure, str(exc) or type(exc).__name__)
        finally:
            token.request = None

        if not self._is_current(token):
            _logger.debug(
                "Discarding stale lookup response generation=%d (current=%d)",
                token.generation,
                self._generation,
            )
            return None

        try:
            fields, sources = parse_lookup_response(response)
        except DraftPayloadError as exc:
            return self._fail(token, LookupFailure.MALFORMED, str(exc))

        state = classify_sources(sources)
        self._sources = sources
        self._token = None
        if state == AutoFillState.ERROR:
            self._state = state
            self._error = ALL_SOURCES_FAILED_MESSAGE
            self._failure = LookupFailure.ALL_SOURCES_FAILED
            _logger.warning("Lookup generation=%d: all %d sources failed", token.generation, len(sources))
            return LookupOutcome(
                state=state,
                sources=tuple(sources),
                failure=self._failure,
                error=self._error,
            )

        self._fields = fields
        self._store.initialize_fields(fields)
        self._state = state
        _logger.debug(
            "Lookup generation=%d applied: state=%s fields=%d sources=%d",
            token.generation,
            state,
            len(fields),
            len(sources),
        )
        return LookupOutcome(state=state, fields=tuple(fields), sources=tuple(sources))

    def _fail(self, token: _LookupToken, failure: LookupFailure, message: str) -> LookupOutcome:
        _logger.warning("Lookup generation=%d failed (%s): %s", token.generation, failure, message)
        self._token = None
        self._state = AutoFillState.ERROR
        self._failure = failure
        self._error = message
        return LookupOutcome(state=AutoFillState.ERROR, failure=failure, error=message)

    def cancel(self) -> None:
        """Abandon the in-flight lookup, if any (teardown hook)."""
        token = self._token
        self._token = None
        if token is None:
            return
        token.cancel()
        if self._state == AutoFillState.LOADING:
            self._state = AutoFillState.IDLE

    def reset(self) -> None:
        """Back to ``idle``; any response still in flight is ignored."""
        self.cancel()
        self._generation += 1
        self._state = AutoFillState.IDLE
        self._fields = []
        self._sources = []
        self._error = None
        self._failure = None
