"""Field state store.

Owned, explicit container for one draft: every component that mutates it
(auto-fill, persistence, restore) receives the same instance.  There is no
locking; all mutations are synchronous and the event loop serializes them.
Components that write after a suspension point use the per-field revision
(compare-and-set) or the global version instead of blind overwrites.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from autodraft.ingestion.draft import RestoredDraft
from autodraft.models.draft import DraftSnapshot, Photo
from autodraft.models.fields import CertifiedFieldResult, FieldState, FieldStatus, FieldValue
from autodraft.state.events import ChangeKind, StoreChange
from autodraft.state.policy import apply_edit, merge_certified_result, replace_field

_logger = logging.getLogger(__name__)

StoreListener = Callable[[StoreChange], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class FieldStateStore:
    """Authoritative client-side view of a draft's fields and metrics."""

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._listeners: list[StoreListener] = []
        self._revisions: dict[str, int] = {}
        self._version = 0
        self._clear()

    def _clear(self) -> None:
        self._fields: dict[str, FieldState] = {}
        self._listing_id: str | None = None
        self._visibility_score = 0.0
        self._previous_visibility_score = 0.0
        self._visibility_label: str | None = None
        self._completion_percentage = 0.0
        self._is_dirty = False
        self._is_saving = False
        self._last_saved_at: datetime | None = None
        self._photos: tuple[Photo, ...] = ()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def now(self) -> datetime:
        return self._clock()

    @property
    def version(self) -> int:
        """Incremented on every field mutation."""
        return self._version

    @property
    def fields(self) -> dict[str, FieldState]:
        return dict(self._fields)

    @property
    def listing_id(self) -> str | None:
        return self._listing_id

    @property
    def visibility_score(self) -> float:
        return self._visibility_score

    @property
    def visibility_label(self) -> str | None:
        return self._visibility_label

    @property
    def completion_percentage(self) -> float:
        return self._completion_percentage

    @property
    def is_dirty(self) -> bool:
        return self._is_dirty

    @property
    def is_saving(self) -> bool:
        return self._is_saving

    @property
    def last_saved_at(self) -> datetime | None:
        return self._last_saved_at

    @property
    def photos(self) -> tuple[Photo, ...]:
        return self._photos

    def get_field_state(self, field_name: str) -> FieldState | None:
        """Current state of *field_name*; the model is frozen, so it is a snapshot."""
        return self._fields.get(field_name)

    def revision(self, field_name: str) -> int:
        """Per-field mutation counter used for compare-and-set writes."""
        return self._revisions.get(field_name, 0)

    def snapshot(self) -> DraftSnapshot:
        return DraftSnapshot(
            listing_id=self._listing_id,
            fields=dict(self._fields),
            visibility_score=self._visibility_score,
            previous_visibility_score=self._previous_visibility_score,
            visibility_label=self._visibility_label,
            completion_percentage=self._completion_percentage,
            is_dirty=self._is_dirty,
            is_saving=self._is_saving,
            last_saved_at=self._last_saved_at,
            photos=self._photos,
            version=self._version,
        )

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, kind: ChangeKind, field_names: Iterable[str] = ()) -> None:
        change = StoreChange(kind=kind, field_names=tuple(field_names), version=self._version)
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                _logger.debug("Store listener failed for %s", kind, exc_info=True)

    def _touch(self, field_names: Iterable[str]) -> None:
        for name in field_names:
            self._revisions[name] = self._revisions.get(name, 0) + 1
        self._version += 1

    # ------------------------------------------------------------------
    # Field mutations
    # ------------------------------------------------------------------

    def initialize_fields(self, results: Iterable[CertifiedFieldResult]) -> list[str]:
        """Overwrite the entry of every field covered by *results*.

        Fields absent from *results* are left untouched: silence never
        implies deletion.  Returns the names written.
        """
        now = self._clock()
        written: list[str] = []
        for result in results:
            self._fields[result.field_name] = merge_certified_result(
                self._fields.get(result.field_name),
                result,
                now=now,
            )
            written.append(result.field_name)
        if not written:
            return written
        self._touch(written)
        self._is_dirty = True
        self._emit(ChangeKind.FIELDS_INITIALIZED, written)
        return written

    def update_field(self, field_name: str, value: FieldValue, status: FieldStatus) -> int:
        """Directly set value and status; always marks the draft dirty.

        Returns the field's new revision.
        """
        self._fields[field_name] = apply_edit(self._fields.get(field_name), field_name, value, status)
        self._touch((field_name,))
        self._is_dirty = True
        self._emit(ChangeKind.FIELD_UPDATED, (field_name,))
        return self._revisions[field_name]

    def restore_field(self, field_name: str, snapshot: FieldState | None, *, expected_revision: int) -> bool:
        """Put *snapshot* back if the field has not changed since *expected_revision*.

        ``snapshot=None`` clears the field to empty.  Returns ``False``
        (and changes nothing) when another write got there first.
        A rollback leaves the draft dirty so the next save reconciles it.
        """
        if self.revision(field_name) != expected_revision:
            return False
        if snapshot is None:
            self._fields[field_name] = FieldState(field_name=field_name)
        else:
            self._fields[field_name] = snapshot
        self._touch((field_name,))
        self._is_dirty = True
        self._emit(ChangeKind.FIELD_RESTORED, (field_name,))
        return True

    def set_original_certified_value(self, field_name: str, value: str) -> bool:
        """Record the audit value; no-op when the field has no entry."""
        existing = self._fields.get(field_name)
        if existing is None:
            return False
        self._fields[field_name] = replace_field(existing, original_certified_value=value)
        self._emit(ChangeKind.AUDIT_RECORDED, (field_name,))
        return True

    # ------------------------------------------------------------------
    # Draft-level mutations
    # ------------------------------------------------------------------

    def apply_score(
        self,
        *,
        visibility_score: float | None = None,
        visibility_label: str | None = None,
        completion_percentage: float | None = None,
    ) -> None:
        """Overwrite the server-computed metrics that are provided."""
        changed = False
        if visibility_score is not None:
            self._previous_visibility_score = self._visibility_score
            self._visibility_score = float(visibility_score)
            changed = True
        if visibility_label is not None:
            self._visibility_label = visibility_label
            changed = True
        if completion_percentage is not None:
            self._completion_percentage = float(completion_percentage)
            changed = True
        if changed:
            self._emit(ChangeKind.SCORE_UPDATED)

    def set_listing_id(self, listing_id: str) -> None:
        self._listing_id = listing_id
        self._emit(ChangeKind.LISTING_ASSIGNED)

    def set_saving(self, saving: bool) -> None:
        self._is_saving = saving
        self._emit(ChangeKind.SAVE_STATE)

    def mark_saved(self, *, version: int, saved_at: datetime | None = None) -> bool:
        """Stamp a successful save of the state read at *version*.

        The dirty flag is only cleared when no field changed since then;
        edits made while the save was in flight stay pending.
        """
        self._last_saved_at = saved_at or self._clock()
        clean = version == self._version
        if clean:
            self._is_dirty = False
        self._emit(ChangeKind.SAVE_STATE)
        return clean

    def set_photos(self, photos: Iterable[Photo]) -> None:
        self._photos = tuple(photos)
        self._emit(ChangeKind.PHOTOS_UPDATED)

    def hydrate(self, restored: RestoredDraft) -> None:
        """Replace the whole draft with a restored one (clean baseline)."""
        self._touch(set(self._fields) | set(restored.fields))
        self._clear()
        self._fields = dict(restored.fields)
        self._listing_id = restored.listing_id
        self._visibility_score = restored.visibility_score
        self._previous_visibility_score = restored.visibility_score
        self._visibility_label = restored.visibility_label
        self._completion_percentage = restored.completion_percentage
        self._photos = tuple(restored.photos)
        self._emit(ChangeKind.HYDRATED, self._fields)

    def reset_draft_state(self) -> None:
        """Clear everything back to an empty draft.

        Revisions keep increasing so in-flight rollbacks cannot resurrect
        fields of the abandoned draft.
        """
        self._touch(list(self._fields))
        self._clear()
        self._emit(ChangeKind.RESET)
