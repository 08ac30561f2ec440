"""Draft workspace: one store and every component wired around it."""

from __future__ import annotations

import logging
from typing import Any

from autodraft.autofill import AutoFillOrchestrator
from autodraft.client import DraftBackend
from autodraft.config import DraftConfig
from autodraft.persistence import DraftPersistenceEngine, SaveErrorCallback
from autodraft.restore import DraftRestore
from autodraft.resync import ResyncCoordinator
from autodraft.score import ScoreFeedbackLoop
from autodraft.state.store import FieldStateStore

_logger = logging.getLogger(__name__)


class DraftWorkspace:
    """Composition root for editing one listing draft.

    Usage::

        async with DraftClient(config) as client:
            async with DraftWorkspace(client, config=config) as workspace:
                await workspace.autofill.lookup("AB-123-CD", "plate")
                workspace.persistence.update_field("mileage", "52000")
                await workspace.persistence.save()

    Entering starts the auto-save loop (unless ``auto_save_interval`` is 0);
    leaving cancels every timer and pending request.
    """

    def __init__(
        self,
        backend: DraftBackend,
        *,
        config: DraftConfig | None = None,
        store: FieldStateStore | None = None,
        on_save_error: SaveErrorCallback | None = None,
    ) -> None:
        self._config = config or DraftConfig()
        self.store = store if store is not None else FieldStateStore()
        self.score = ScoreFeedbackLoop(self.store, backend)
        self.autofill = AutoFillOrchestrator(self.store, backend)
        self.persistence = DraftPersistenceEngine(
            self.store,
            backend,
            self.score,
            debounce_seconds=self._config.debounce_seconds,
            auto_save_interval=self._config.auto_save_interval,
            on_save_error=on_save_error,
        )
        self.resync = ResyncCoordinator(self.autofill, self.store, backend)
        self.restore = DraftRestore(self.store, backend)

    @property
    def config(self) -> DraftConfig:
        return self._config

    async def __aenter__(self) -> DraftWorkspace:
        if self._config.auto_save_interval > 0:
            self.persistence.start_auto_save()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Tear down: no lookup result, sync or save lands after this."""
        self.autofill.cancel()
        await self.persistence.close()
        _logger.debug("Draft workspace closed")

    def abandon(self) -> None:
        """Throw the current draft away and start an empty one."""
        self.autofill.reset()
        self.persistence.discard_pending()
        self.resync.dismiss()
        self.store.reset_draft_state()
