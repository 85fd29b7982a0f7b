"""Change history, undo/redo, batches and checkpoints for config edits."""

from gamecfg.history.batch import BatchCoordinator
from gamecfg.history.checkpoints import CheckpointNavigator
from gamecfg.history.compactor import HistoryCompactor
from gamecfg.history.config import HistoryConfig
from gamecfg.history.errors import (
    ApplyError,
    BatchInProgressError,
    HistoryError,
    MalformedHistoryError,
)
from gamecfg.history.log import HistoryLog, HistoryStats
from gamecfg.history.query import HistoryQuery
from gamecfg.history.record import ApplyInstruction, ChangeDescriptor, ChangeRecord
from gamecfg.history.session import HistorySession
from gamecfg.history.storage import FileBlobStore, HistoryStorage, MemoryBlobStore

__all__ = [
    "ApplyError",
    "ApplyInstruction",
    "BatchCoordinator",
    "BatchInProgressError",
    "ChangeDescriptor",
    "ChangeRecord",
    "CheckpointNavigator",
    "FileBlobStore",
    "HistoryCompactor",
    "HistoryConfig",
    "HistoryError",
    "HistoryLog",
    "HistoryQuery",
    "HistorySession",
    "HistoryStats",
    "HistoryStorage",
    "MalformedHistoryError",
    "MemoryBlobStore",
]
