"""HistoryLog: linear undo/redo log of configuration change records."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from gamecfg.core.bus import EventBus
from gamecfg.core.clock import Clock, SystemClock
from gamecfg.core.types import (
    CONFIG_CHANGED,
    HISTORY_APPLY_FAILED,
    HISTORY_CHANGED,
    HISTORY_CLEARED,
    HISTORY_IMPORTED,
    HISTORY_REDO,
    HISTORY_UNDO,
    ChangeKind,
    RecordingState,
)
from gamecfg.history.batch import BatchContext
from gamecfg.history.config import DEFAULT_CAPACITY
from gamecfg.history.errors import ApplyError, BatchInProgressError, MalformedHistoryError
from gamecfg.history.record import (
    ApplyInstruction,
    ChangeDescriptor,
    ChangeRecord,
    make_record,
)
from gamecfg.history.storage import HistoryStorage

logger = logging.getLogger(__name__)

ApplyCallback = Callable[[ApplyInstruction], None]


@dataclass(frozen=True)
class HistoryStats:
    """Summary attached to every history notification.

    :meth:`to_dict` uses the same camelCase keys as the persisted and
    export formats.
    """

    total_entries: int
    current_index: int
    can_undo: bool
    can_redo: bool
    checkpoint_count: int
    kind_breakdown: dict[str, int] = field(default_factory=dict)
    oldest: float | None = None
    newest: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalEntries": self.total_entries,
            "currentIndex": self.current_index,
            "canUndo": self.can_undo,
            "canRedo": self.can_redo,
            "checkpointCount": self.checkpoint_count,
            "kindBreakdown": dict(self.kind_breakdown),
            "oldest": self.oldest,
            "newest": self.newest,
        }


class HistoryLog:
    """Ordered change records plus a cursor at the last applied one.

    ``cursor == -1`` means everything has been undone.  Recording a new
    change while the cursor is behind the tail drops the redo branch, and
    the oldest entry is evicted once ``capacity`` is exceeded.

    The log never touches configuration data itself.  Undo and redo hand
    :class:`ApplyInstruction` objects to the ``apply`` callback, with
    recording suspended so the store's resulting writes are not recorded
    again.

    Not thread-safe: one editing session owns the log and drives it from
    a single thread.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        *,
        bus: EventBus | None = None,
        apply: ApplyCallback | None = None,
        storage: HistoryStorage | None = None,
        clock: Clock | None = None,
        autosave: bool = True,
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._entries: list[ChangeRecord] = []
        self._cursor = -1
        self._bus = bus
        self._apply = apply
        self._storage = storage
        self._clock = clock or SystemClock()
        self._autosave = autosave
        self._state = RecordingState.RECORDING
        self._batch: BatchContext | None = None
        self._attached_bus: EventBus | None = None
        self.last_error: ApplyError | None = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def entries(self) -> list[ChangeRecord]:
        """Shallow copy of all entries, oldest first."""
        return list(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def storage(self) -> HistoryStorage | None:
        return self._storage

    @property
    def state(self) -> RecordingState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state is RecordingState.RECORDING

    @property
    def batch(self) -> BatchContext | None:
        return self._batch

    @property
    def current(self) -> ChangeRecord | None:
        """The most recently applied entry."""
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ChangeRecord]:
        return iter(list(self._entries))

    def index_of(self, record_id: str) -> int | None:
        for i, entry in enumerate(self._entries):
            if entry.id == record_id:
                return i
        return None

    def can_undo(self) -> bool:
        return self._cursor >= 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def set_apply_callback(self, apply: ApplyCallback | None) -> None:
        self._apply = apply

    def attach(self, bus: EventBus) -> None:
        """Start listening for ``config-changed`` notifications on *bus*."""
        self.detach()
        bus.subscribe(CONFIG_CHANGED, self.handle_config_changed)
        self._attached_bus = bus
        if self._bus is None:
            self._bus = bus

    def detach(self) -> None:
        if self._attached_bus is not None:
            self._attached_bus.unsubscribe(CONFIG_CHANGED, self.handle_config_changed)
            self._attached_bus = None

    def notify(self, event: str, **payload: Any) -> None:
        """Publish *event* with the current stats attached."""
        if self._bus is None:
            return
        self._bus.publish(event, stats=self.stats().to_dict(), **payload)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def pause_recording(self) -> None:
        self._state = RecordingState.PAUSED

    def resume_recording(self) -> None:
        self._state = RecordingState.RECORDING

    @contextmanager
    def suspended_recording(self) -> Iterator[None]:
        """Pause recording for the block; the previous state is always restored."""
        previous = self._state
        self._state = RecordingState.PAUSED
        try:
            yield
        finally:
            self._state = previous

    def handle_config_changed(
        self,
        kind: ChangeKind | str = ChangeKind.MODIFY,
        target: str | None = None,
        old_value: Any = None,
        new_value: Any = None,
        description: str | None = None,
        **_: Any,
    ) -> ChangeRecord | None:
        """Listener for the store's ``config-changed`` notification.

        Ignored while recording is paused.  While a batch is open the edit
        is collected into the batch instead of becoming its own entry.
        """
        if not self.is_recording:
            return None
        kind = ChangeKind(kind)
        if self._batch is not None and kind.is_edit:
            self._batch.add(ChangeDescriptor(kind, target or "unknown", old_value, new_value))
            return None
        return self.record_change(kind, target, old_value, new_value, description)

    def record_change(
        self,
        kind: ChangeKind | str,
        target: str | None,
        old_value: Any = None,
        new_value: Any = None,
        description: str | None = None,
        *,
        changes: list[ChangeDescriptor] | tuple[ChangeDescriptor, ...] = (),
        checkpoint_id: str | None = None,
    ) -> ChangeRecord:
        """Append a new record at the cursor and return it.

        Entries after the cursor are discarded first.  Callers feeding user
        edits should go through :meth:`handle_config_changed`, which honours
        the recording flag.
        """
        record = make_record(
            ChangeKind(kind),
            target,
            old_value,
            new_value,
            description,
            timestamp=self._clock.now(),
            changes=changes,
            checkpoint_id=checkpoint_id,
        )
        self._append(record)
        logger.debug("Recorded %s (%s)", record.description, record.id)
        return record

    def _append(self, record: ChangeRecord) -> None:
        if self._cursor < len(self._entries) - 1:
            del self._entries[self._cursor + 1 :]
        self._entries.append(record)
        self._cursor = len(self._entries) - 1
        while len(self._entries) > self._capacity:
            self._evict_oldest()
        self._autosave_now()
        self.notify(HISTORY_CHANGED, record=record)

    def _evict_oldest(self) -> None:
        evicted = self._entries.pop(0)
        self._cursor = max(-1, self._cursor - 1)
        if self._batch is not None:
            self._batch.start_index = max(-1, self._batch.start_index - 1)
        logger.debug("Evicted oldest history entry %s", evicted.id)

    # ------------------------------------------------------------------
    # Undo / redo
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        """Step back one entry.  Returns False if nothing to undo or apply failed."""
        if not self.can_undo():
            logger.info("Nothing to undo")
            return False

        record = self._entries[self._cursor]
        previous = self._cursor
        self._cursor -= 1
        if not self._apply_record(record, is_undo=True):
            self._cursor = previous
            return False

        self._autosave_now()
        self.notify(HISTORY_UNDO, record=record)
        logger.info("Undo: %s", record.description)
        return True

    def redo(self) -> bool:
        """Step forward one entry.  Returns False at the tail or if apply failed."""
        if not self.can_redo():
            logger.info("Nothing to redo")
            return False

        previous = self._cursor
        self._cursor += 1
        record = self._entries[self._cursor]
        if not self._apply_record(record, is_undo=False):
            self._cursor = previous
            return False

        self._autosave_now()
        self.notify(HISTORY_REDO, record=record)
        logger.info("Redo: %s", record.description)
        return True

    def apply_instructions(
        self,
        instructions: list[ApplyInstruction],
        *,
        is_undo: bool,
        source_id: str,
    ) -> None:
        """Hand *instructions* to the store with recording suspended.

        Raises:
            ApplyError: If the apply callback raises.
        """
        if not instructions or self._apply is None:
            return
        with self.suspended_recording():
            try:
                for instruction in instructions:
                    self._apply(replace(instruction, is_undo=is_undo))
            except Exception as e:
                raise ApplyError(source_id, is_undo, e) from e

    def _apply_record(self, record: ChangeRecord, is_undo: bool) -> bool:
        instructions = record.undo_instructions() if is_undo else record.redo_instructions()
        try:
            self.apply_instructions(instructions, is_undo=is_undo, source_id=record.id)
        except ApplyError as e:
            self.report_apply_failure(e, record)
            return False
        self.last_error = None
        return True

    def report_apply_failure(self, error: ApplyError, record: ChangeRecord | None = None) -> None:
        self.last_error = error
        logger.error("Applying history change failed: %s", error, exc_info=error.cause)
        self.notify(HISTORY_APPLY_FAILED, record=record, error=error, is_undo=error.is_undo)

    # ------------------------------------------------------------------
    # Batch plumbing (driven by BatchCoordinator)
    # ------------------------------------------------------------------

    def open_batch(self, context: BatchContext) -> None:
        if self._batch is not None:
            raise BatchInProgressError(f"batch '{self._batch.description}' is already open")
        self._batch = context

    def take_batch(self) -> BatchContext | None:
        """Close the open batch and return it (None if there was none)."""
        context, self._batch = self._batch, None
        return context

    # ------------------------------------------------------------------
    # Capacity / clear / bulk replace
    # ------------------------------------------------------------------

    def set_capacity(self, capacity: int) -> None:
        """Change capacity (minimum 1), evicting oldest entries if needed."""
        self._capacity = max(1, int(capacity))
        evicted = 0
        while len(self._entries) > self._capacity:
            self._evict_oldest()
            evicted += 1
        if evicted:
            logger.info("Capacity %d: evicted %d entries", self._capacity, evicted)
        self._autosave_now()

    def clear(self) -> bool:
        """Drop every entry.  Refused while a batch is open."""
        if self._batch is not None:
            logger.warning("Cannot clear history while batch '%s' is open", self._batch.description)
            return False
        self._entries = []
        self._cursor = -1
        self._autosave_now()
        self.notify(HISTORY_CLEARED)
        logger.info("History cleared")
        return True

    def restore(self, entries: list[ChangeRecord], cursor: int) -> None:
        """Replace all entries wholesale, trimming to capacity."""
        entries = list(entries)
        cursor = max(-1, min(cursor, len(entries) - 1))
        overflow = len(entries) - self._capacity
        if overflow > 0:
            entries = entries[overflow:]
            cursor = max(-1, cursor - overflow)
        self._entries = entries
        self._cursor = cursor
        self._autosave_now()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _autosave_now(self) -> None:
        if self._autosave:
            self.save()

    def save(self) -> bool:
        if self._storage is None:
            return False
        return self._storage.save(self._entries, self._cursor)

    def load(self) -> int:
        """Replace the in-memory log with the persisted one.  Never raises."""
        if self._storage is None:
            return 0
        entries, cursor = self._storage.load()
        overflow = len(entries) - self._capacity
        if overflow > 0:
            entries = entries[overflow:]
            cursor = max(-1, cursor - overflow)
        self._entries = entries
        self._cursor = cursor
        return len(self._entries)

    def export_to_file(self, destination: str | Path) -> Path:
        return HistoryStorage.export_to_file(self._entries, self._cursor, destination)

    def import_from_file(self, source: str | Path | bytes) -> int:
        """Replace the log with an export artifact (path or raw bytes).

        The current log is untouched unless the artifact validates.

        Raises:
            BatchInProgressError: If a batch is open.
            MalformedHistoryError: If the artifact is invalid.
        """
        self._reject_import_during_batch()
        if isinstance(source, bytes):
            entries, cursor = HistoryStorage.decode_export(source)
        else:
            entries, cursor = HistoryStorage.read_export(source)
        return self._finish_import(entries, cursor)

    async def aimport_from_file(self, source: str | Path) -> int:
        """Async variant of :meth:`import_from_file`; the read runs in a thread."""
        self._reject_import_during_batch()
        path = Path(source)
        try:
            raw = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise MalformedHistoryError(f"cannot read {path}: {e}") from e
        # a batch may have been opened while the read was outstanding
        self._reject_import_during_batch()
        entries, cursor = HistoryStorage.decode_export(raw)
        return self._finish_import(entries, cursor)

    def _reject_import_during_batch(self) -> None:
        if self._batch is not None:
            raise BatchInProgressError(
                f"cannot import history while batch '{self._batch.description}' is open"
            )

    def _finish_import(self, entries: list[ChangeRecord], cursor: int) -> int:
        self._entries = []
        self._cursor = -1
        self.restore(entries, cursor)
        if not self._autosave:
            self.save()
        self.notify(HISTORY_IMPORTED)
        logger.info("Imported %d history entries (cursor=%d)", len(self._entries), self._cursor)
        return len(self._entries)

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def stats(self) -> HistoryStats:
        breakdown = Counter(e.kind.value for e in self._entries)
        return HistoryStats(
            total_entries=len(self._entries),
            current_index=self._cursor,
            can_undo=self.can_undo(),
            can_redo=self.can_redo(),
            checkpoint_count=breakdown.get(ChangeKind.CHECKPOINT.value, 0),
            kind_breakdown=dict(breakdown),
            oldest=self._entries[0].timestamp if self._entries else None,
            newest=self._entries[-1].timestamp if self._entries else None,
        )
