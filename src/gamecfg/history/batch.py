"""BatchCoordinator: group several edits into one undoable step."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gamecfg.core.types import ChangeKind
from gamecfg.history.errors import ApplyError
from gamecfg.history.record import ChangeDescriptor, ChangeRecord

if TYPE_CHECKING:
    from gamecfg.history.log import HistoryLog

logger = logging.getLogger(__name__)

DEFAULT_BATCH_DESCRIPTION = "Batch operation"


@dataclass
class BatchContext:
    """State of an open batch.

    ``start_index`` is the log cursor when the batch began; eviction
    shifts it down together with the cursor.
    """

    description: str
    start_index: int
    changes: list[ChangeDescriptor] = field(default_factory=list)

    def add(self, change: ChangeDescriptor) -> None:
        self.changes.append(change)


class BatchCoordinator:
    """Opens, commits and cancels batches on a :class:`HistoryLog`.

    While a batch is open the log diverts incoming edits into the batch.
    ``end_batch`` commits them as a single :class:`BatchRecord`;
    ``cancel_batch`` rolls the store back to where the batch started.
    """

    def __init__(self, log: HistoryLog) -> None:
        self._log = log

    @property
    def is_open(self) -> bool:
        return self._log.batch is not None

    def begin_batch(self, description: str = DEFAULT_BATCH_DESCRIPTION) -> BatchContext:
        """Open a batch at the current cursor.

        Raises:
            BatchInProgressError: If a batch is already open.
        """
        context = BatchContext(description=description, start_index=self._log.cursor)
        self._log.open_batch(context)
        logger.debug("Batch '%s' opened at index %d", description, context.start_index)
        return context

    def end_batch(self) -> ChangeRecord | None:
        """Commit the open batch.  Returns the new record, or None if empty."""
        context = self._log.take_batch()
        if context is None:
            logger.warning("end_batch() called with no batch in progress")
            return None
        if not context.changes:
            logger.debug("Batch '%s' closed with no changes", context.description)
            return None

        record = self._log.record_change(
            ChangeKind.BATCH,
            None,
            description=context.description,
            changes=context.changes,
        )
        logger.info(
            "Batch '%s' committed (%d changes)", context.description, len(context.changes)
        )
        return record

    def cancel_batch(self) -> bool:
        """Discard the open batch and restore the pre-batch state.

        Collected edits are reverted newest first, then the cursor is
        stepped back to where it was at ``begin_batch``: entries recorded
        directly during the batch are undone and entries the caller undid
        during the batch are redone.  Returns False if there was no batch
        or a revert step failed; in the latter case the log is left
        partially rolled back.
        """
        context = self._log.take_batch()
        if context is None:
            logger.warning("cancel_batch() called with no batch in progress")
            return False

        instructions = [c.undo_instruction() for c in reversed(context.changes)]
        try:
            self._log.apply_instructions(
                instructions, is_undo=True, source_id=f"batch:{context.description}"
            )
        except ApplyError as e:
            self._log.report_apply_failure(e)
            return False

        log = self._log
        while log.cursor != context.start_index:
            step = log.undo if log.cursor > context.start_index else log.redo
            if not step():
                logger.error(
                    "Batch '%s' cancel stopped at index %d (target %d)",
                    context.description,
                    log.cursor,
                    context.start_index,
                )
                return False

        logger.info("Batch '%s' cancelled", context.description)
        return True

    @contextmanager
    def batch(self, description: str = DEFAULT_BATCH_DESCRIPTION) -> Iterator[BatchContext]:
        """Commit on normal exit, cancel if the block raises."""
        context = self.begin_batch(description)
        try:
            yield context
        except BaseException:
            self.cancel_batch()
            raise
        self.end_batch()
