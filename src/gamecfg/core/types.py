"""Core enums shared across the configuration editor."""

from __future__ import annotations

import enum


class ChangeKind(enum.Enum):
    """Kind of state transition described by a change record."""

    MODIFY = "modify"
    ADD = "add"
    DELETE = "delete"
    CHECKPOINT = "checkpoint"
    BATCH = "batch"

    @property
    def is_edit(self) -> bool:
        """True for kinds that carry a reversible value payload."""
        return self in (ChangeKind.MODIFY, ChangeKind.ADD, ChangeKind.DELETE)


class RecordingState(enum.Enum):
    """Whether incoming config-changed notifications are being recorded."""

    RECORDING = "recording"
    PAUSED = "paused"


# Notification names published on the event bus
CONFIG_CHANGED = "config-changed"
HISTORY_CHANGED = "history-changed"
HISTORY_UNDO = "history-undo"
HISTORY_REDO = "history-redo"
HISTORY_CLEARED = "history-cleared"
HISTORY_IMPORTED = "history-imported"
HISTORY_COMPACTED = "history-compacted"
HISTORY_APPLY_FAILED = "history-apply-failed"
