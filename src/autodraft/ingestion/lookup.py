"""Decode lookup responses into typed fields and source statuses."""

from __future__ import annotations

from autodraft._constants import LOOKUP_ENDPOINT
from autodraft.ingestion.normalize import decode_embedded_json, validate_list
from autodraft.models.fields import CertifiedFieldResult
from autodraft.models.responses import LookupResponse
from autodraft.models.sources import SourceStatus


def parse_lookup_response(
    response: LookupResponse,
) -> tuple[list[CertifiedFieldResult], list[SourceStatus]]:
    """Return ``(fields, sources)`` from a raw lookup answer.

    Raises :class:`~autodraft.exceptions.DraftPayloadError` when either
    member fails to decode; nothing is returned partially.
    """
    raw_fields = decode_embedded_json(response.fields, endpoint=LOOKUP_ENDPOINT, member="fields", default=[])
    raw_sources = decode_embedded_json(response.sources, endpoint=LOOKUP_ENDPOINT, member="sources", default=[])
    fields = validate_list(
        raw_fields,
        CertifiedFieldResult.model_validate,
        endpoint=LOOKUP_ENDPOINT,
        member="fields",
    )
    sources = validate_list(
        raw_sources,
        SourceStatus.model_validate,
        endpoint=LOOKUP_ENDPOINT,
        member="sources",
    )
    return fields, sources
