"""Deterministic field merge policy.

This module intentionally contains *no* payload parsing.  The ingestion
boundary produces validated models; these helpers only decide what a
field looks like after a merge.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from autodraft.ingestion.normalize import is_blank
from autodraft.models.fields import CertifiedFieldResult, FieldState, FieldStatus, FieldValue
from autodraft.models.sources import SourceStatus

_logger = logging.getLogger(__name__)


def status_for_value(value: FieldValue) -> FieldStatus:
    """Status of a seller edit: ``declared`` if non-empty else ``empty``."""
    return FieldStatus.EMPTY if is_blank(value) else FieldStatus.DECLARED


def replace_field(state: FieldState, **changes: Any) -> FieldState:
    """Return a validated copy of *state* with *changes* applied.

    ``model_copy(update=...)`` skips validation; going through the
    constructor keeps the certified-provenance invariant enforced.
    """
    return FieldState(**{**dict(state), **changes})


def merge_certified_result(
    existing: FieldState | None,
    result: CertifiedFieldResult,
    *,
    now: datetime,
) -> FieldState:
    """Field state after a lookup result covering this field.

    Results always win: value, status and provenance are overwritten.
    A fresh certification starts a new audit window, so the previous
    ``original_certified_value`` is dropped; a declared result keeps it.
    A result flagged certified but carrying no source cannot satisfy the
    provenance invariant and is downgraded to declared.
    """
    certified = result.is_certified and bool(result.source)
    if result.is_certified and not certified:
        _logger.debug("Certified result for %s has no source; treating as declared", result.field_name)

    if certified:
        return FieldState(
            field_name=result.field_name,
            value=result.field_value,
            status=FieldStatus.CERTIFIED,
            certified_source=result.source,
            certified_timestamp=result.source_timestamp or now,
        )
    return FieldState(
        field_name=result.field_name,
        value=result.field_value,
        status=FieldStatus.DECLARED,
        original_certified_value=existing.original_certified_value if existing is not None else None,
    )


def apply_edit(existing: FieldState | None, field_name: str, value: FieldValue, status: FieldStatus) -> FieldState:
    """Field state after a direct edit.

    Provenance is only kept while the field stays certified; the audit
    record always survives.
    """
    if existing is None:
        return FieldState(field_name=field_name, value=value, status=status)
    if status == FieldStatus.CERTIFIED:
        return replace_field(existing, value=value, status=status)
    return replace_field(
        existing,
        value=value,
        status=status,
        certified_source=None,
        certified_timestamp=None,
    )


def degraded_sources(sources: Iterable[SourceStatus]) -> list[SourceStatus]:
    """Stale sources first, then failed ones, each in report order."""
    source_list = list(sources)
    stale = [s for s in source_list if s.is_stale]
    failed = [s for s in source_list if s.is_failed]
    return stale + failed


def failed_adapter_keys(sources: Iterable[SourceStatus]) -> list[str]:
    return [s.adapter_key for s in sources if s.is_failed]


def field_changed(before: FieldState | None, after: FieldState | None) -> bool:
    """Whether value or status differ between two field snapshots."""
    if before is None or after is None:
        return (before is None) != (after is None)
    return before.value != after.value or before.status != after.status
