"""Draft restore: reload a saved draft into an empty store."""

from __future__ import annotations

import logging

from autodraft.client import DraftBackend
from autodraft.exceptions import DraftError
from autodraft.ingestion.draft import parse_load_draft_result
from autodraft.state.store import FieldStateStore

_logger = logging.getLogger(__name__)


class DraftRestore:
    """Loads one saved draft, once.

    Failures leave the store untouched and are exposed via :attr:`error`.
    The store is only hydrated if nothing wrote to it while the draft was
    loading; restore must run before edits are allowed.
    """

    def __init__(self, store: FieldStateStore, backend: DraftBackend) -> None:
        self._store = store
        self._backend = backend
        self._attempted = False
        self._is_restoring = False
        self._error: str | None = None
        self._listing_id: str | None = None

    @property
    def is_restoring(self) -> bool:
        return self._is_restoring

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def attempted(self) -> bool:
        return self._attempted

    @property
    def listing_id(self) -> str | None:
        return self._listing_id

    async def restore(self, listing_id: str) -> bool:
        """Load *listing_id* into the store; returns ``True`` once hydrated."""
        if not listing_id:
            raise ValueError("listing_id must be non-empty")
        if self._attempted:
            _logger.debug("Restore already attempted for %s", self._listing_id)
            return False

        self._attempted = True
        self._listing_id = listing_id
        self._is_restoring = True
        self._error = None
        version = self._store.version
        try:
            result = await self._backend.load_draft(listing_id)
            restored = parse_load_draft_result(result, listing_id=listing_id, now=self._store.now)
        except DraftError as exc:
            self._error = str(exc) or "Failed to load draft"
            _logger.warning("Restore of %s failed: %s", listing_id, exc)
            return False
        finally:
            self._is_restoring = False

        if self._store.version != version:
            self._error = "Draft changed while it was loading"
            _logger.warning("Restore of %s skipped: store changed during load", listing_id)
            return False

        self._store.hydrate(restored)
        _logger.debug("Restored draft %s with %d fields", listing_id, len(restored.fields))
        return True
