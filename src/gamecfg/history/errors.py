"""Exceptions raised by the history subsystem."""

from __future__ import annotations


class HistoryError(Exception):
    """Base class for history errors."""


class MalformedHistoryError(HistoryError):
    """An imported or persisted history payload failed validation."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"malformed history file: {reason}")
        self.reason = reason


class BatchInProgressError(HistoryError):
    """The operation is not allowed while a batch is open."""


class ApplyError(HistoryError):
    """The configuration store failed to adopt a historical value."""

    def __init__(self, record_id: str, is_undo: bool, cause: BaseException) -> None:
        action = "undo" if is_undo else "redo"
        super().__init__(f"{action} of {record_id} failed: {cause}")
        self.record_id = record_id
        self.is_undo = is_undo
        self.cause = cause
