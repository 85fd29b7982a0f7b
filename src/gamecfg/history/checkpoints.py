"""CheckpointNavigator: named positions in the history log."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from gamecfg.core.types import ChangeKind
from gamecfg.history.record import CheckpointRecord

if TYPE_CHECKING:
    from gamecfg.history.log import HistoryLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckpointInfo:
    checkpoint_id: str
    record_id: str
    description: str
    timestamp: float
    index: int


@dataclass(frozen=True)
class Snapshot:
    """Position marker that is not recorded in the log."""

    id: str
    description: str
    timestamp: float
    history_index: int
    history_length: int


class CheckpointNavigator:
    """Creates checkpoint entries and walks the cursor back to them.

    A checkpoint is an ordinary log entry with no reversible payload, so it
    is subject to branch truncation and eviction like any other entry.
    """

    def __init__(self, log: HistoryLog) -> None:
        self._log = log

    def create_checkpoint(self, description: str | None = None) -> str:
        """Record a checkpoint at the cursor and return its id."""
        record = self._log.record_change(
            ChangeKind.CHECKPOINT,
            None,
            description=description or "Checkpoint",
            checkpoint_id=uuid.uuid4().hex[:12],
        )
        assert isinstance(record, CheckpointRecord)
        logger.info("Checkpoint created: %s", record.description)
        return record.checkpoint_id

    def find(self, checkpoint_id: str) -> int | None:
        """Index of the checkpoint entry (by checkpoint id or record id)."""
        for i, entry in enumerate(self._log.entries):
            if isinstance(entry, CheckpointRecord) and checkpoint_id in (
                entry.checkpoint_id,
                entry.id,
            ):
                return i
        return None

    def jump_to_checkpoint(self, checkpoint_id: str) -> bool:
        """Undo or redo until the cursor sits on the checkpoint.

        Returns False if the checkpoint does not exist or a step fails; in
        the latter case the cursor stays wherever the failing step left it.
        """
        target_index = self.find(checkpoint_id)
        if target_index is None:
            logger.warning("Checkpoint not found: %s", checkpoint_id)
            return False

        log = self._log
        while log.cursor != target_index:
            step = log.undo if log.cursor > target_index else log.redo
            if not step():
                logger.error(
                    "Jump to checkpoint %s stopped at index %d (target %d)",
                    checkpoint_id,
                    log.cursor,
                    target_index,
                )
                return False

        logger.info("Jumped to checkpoint %s at index %d", checkpoint_id, target_index)
        return True

    def get_checkpoints(self) -> list[CheckpointInfo]:
        return [
            CheckpointInfo(
                checkpoint_id=entry.checkpoint_id,
                record_id=entry.id,
                description=entry.description,
                timestamp=entry.timestamp,
                index=i,
            )
            for i, entry in enumerate(self._log.entries)
            if isinstance(entry, CheckpointRecord)
        ]

    def save_snapshot(self, description: str = "Snapshot") -> Snapshot:
        snapshot = Snapshot(
            id=uuid.uuid4().hex[:12],
            description=description,
            timestamp=self._log.clock.now(),
            history_index=self._log.cursor,
            history_length=len(self._log),
        )
        logger.info("Snapshot saved: %s", description)
        return snapshot
