"""High-level async client for the listing draft backend."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import aiohttp

from autodraft._api import drafts as _drafts_api
from autodraft._api import listing as _listing_api
from autodraft._api import lookup as _lookup_api
from autodraft._transport import HttpTransport, Transport
from autodraft.config import DraftConfig
from autodraft.exceptions import DraftError
from autodraft.models.fields import CertifiedFieldResult, FieldValue
from autodraft.models.responses import (
    IdentifierType,
    LoadDraftResult,
    LookupResponse,
    SaveDraftResult,
    ScoreResult,
    UpdateFieldResult,
)
from autodraft.models.sources import AdapterAvailability

_logger = logging.getLogger(__name__)


class DraftBackend(Protocol):
    """Backend operations the draft components depend on.

    :class:`DraftClient` is the production implementation; tests pass
    in-memory doubles.
    """

    async def lookup_vehicle(self, identifier: str, identifier_type: IdentifierType) -> LookupResponse: ...

    async def update_listing_field(self, listing_id: str, field_name: str, value: FieldValue) -> UpdateFieldResult: ...

    async def save_draft(
        self,
        listing_id: str | None,
        fields: Mapping[str, FieldValue],
        certified_fields: Sequence[CertifiedFieldResult] | None = None,
    ) -> SaveDraftResult: ...

    async def load_draft(self, listing_id: str) -> LoadDraftResult: ...

    async def check_resync_availability(self, listing_id: str) -> list[AdapterAvailability]: ...

    async def recalculate_score(self, listing_id: str) -> ScoreResult: ...


class DraftClient:
    """Async client for the listing draft backend.

    Usage::

        async with DraftClient(config) as client:
            response = await client.lookup_vehicle("AB-123-CD", IdentifierType.PLATE)
    """

    def __init__(
        self,
        config: DraftConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport

    @property
    def config(self) -> DraftConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> DraftClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._transport = None

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise DraftError("Client not initialized. Use 'async with DraftClient(...) as client:'")
        return self._transport

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def lookup_vehicle(self, identifier: str, identifier_type: IdentifierType) -> LookupResponse:
        """Run the multi-source lookup for a plate or VIN."""
        _logger.debug("Lookup %s identifier", identifier_type)
        return await _lookup_api.lookup_vehicle(self._require_transport(), identifier, identifier_type)

    async def update_listing_field(self, listing_id: str, field_name: str, value: FieldValue) -> UpdateFieldResult:
        """Persist one field of a saved listing."""
        return await _drafts_api.update_listing_field(self._require_transport(), listing_id, field_name, value)

    async def save_draft(
        self,
        listing_id: str | None,
        fields: Mapping[str, FieldValue],
        certified_fields: Sequence[CertifiedFieldResult] | None = None,
    ) -> SaveDraftResult:
        """Persist the whole draft (creates the listing on first save)."""
        return await _drafts_api.save_draft(self._require_transport(), listing_id, fields, certified_fields)

    async def load_draft(self, listing_id: str) -> LoadDraftResult:
        """Fetch a previously saved draft."""
        return await _drafts_api.load_draft(self._require_transport(), listing_id)

    async def check_resync_availability(self, listing_id: str) -> list[AdapterAvailability]:
        return await _listing_api.check_resync_availability(self._require_transport(), listing_id)

    async def recalculate_score(self, listing_id: str) -> ScoreResult:
        return await _listing_api.recalculate_score(self._require_transport(), listing_id)
