"""HistoryCompactor: lossy merge of rapid edits to the same target."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from gamecfg.core.types import HISTORY_COMPACTED
from gamecfg.history.config import MERGE_WINDOW_SECONDS
from gamecfg.history.record import ChangeRecord, ModifyRecord, merged

if TYPE_CHECKING:
    from gamecfg.history.log import HistoryLog

logger = logging.getLogger(__name__)


class HistoryCompactor:
    """Merges adjacent Modify entries on the same target.

    Two entries merge when both are Modify, share a target, and their
    timestamps are less than ``merge_window_seconds`` apart.  The merged
    entry keeps the earlier old value and takes the later new value and
    timestamp, so a run of quick edits collapses into one entry.

    Compaction only happens when :meth:`compact` is called.
    """

    def __init__(self, merge_window_seconds: float = MERGE_WINDOW_SECONDS) -> None:
        if merge_window_seconds <= 0:
            raise ValueError(f"merge_window_seconds must be > 0, got {merge_window_seconds}")
        self._window = merge_window_seconds

    @property
    def merge_window_seconds(self) -> float:
        return self._window

    def can_merge(self, earlier: ChangeRecord, later: ChangeRecord) -> bool:
        if not isinstance(earlier, ModifyRecord) or not isinstance(later, ModifyRecord):
            return False
        if earlier.target != later.target:
            return False
        return abs(later.timestamp - earlier.timestamp) < self._window

    def compact_entries(self, entries: list[ChangeRecord]) -> list[ChangeRecord]:
        """Return a compacted copy of *entries*, all treated as applied."""
        return self.compact_with_cursor(entries, len(entries) - 1)[0]

    def compact_with_cursor(
        self, entries: list[ChangeRecord], cursor: int
    ) -> tuple[list[ChangeRecord], int]:
        """Compact *entries* and map *cursor* onto the result.

        An applied entry (index <= cursor) never merges with an undone one,
        so the returned cursor is the surviving entry that absorbed the old
        cursor entry and everything after it is still redoable.
        """
        out: list[ChangeRecord] = []
        new_cursor = -1
        for i, entry in enumerate(entries):
            same_side = (i - 1 <= cursor) == (i <= cursor)
            if out and same_side and self.can_merge(out[-1], entry):
                out[-1] = merged(out[-1], entry)
            else:
                out.append(entry)
            if i == cursor:
                new_cursor = len(out) - 1
        return out, new_cursor

    def compact(self, log: HistoryLog) -> int:
        """Compact *log* in place.  Returns the number of entries removed."""
        if log.batch is not None:
            logger.warning("Cannot compact history while a batch is open")
            return 0

        before = log.entries
        after, cursor = self.compact_with_cursor(before, log.cursor)
        removed = len(before) - len(after)
        log.restore(after, cursor)
        log.notify(HISTORY_COMPACTED, removed=removed)
        logger.info("History compacted: %d -> %d entries", len(before), len(after))
        return removed
