"""Read-only filters over the history log for display."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from gamecfg.core.types import ChangeKind
from gamecfg.history.record import ChangeRecord, parse_timestamp

if TYPE_CHECKING:
    from gamecfg.history.log import HistoryLog

TimeBound = float | str | datetime


@dataclass(frozen=True)
class SearchHit:
    record: ChangeRecord
    index: int
    is_current: bool


class HistoryQuery:
    def __init__(self, log: HistoryLog) -> None:
        self._log = log

    def search(self, query: str) -> list[SearchHit]:
        """Case-insensitive substring match on description, target and kind."""
        needle = query.lower()
        cursor = self._log.cursor
        return [
            SearchHit(record=entry, index=i, is_current=i == cursor)
            for i, entry in enumerate(self._log.entries)
            if needle in entry.description.lower()
            or needle in entry.target.lower()
            or needle in entry.kind.value
        ]

    def by_kind(self, kind: ChangeKind | str) -> list[ChangeRecord]:
        kind = ChangeKind(kind)
        return [e for e in self._log.entries if e.kind is kind]

    def by_time_range(self, start: TimeBound, end: TimeBound) -> list[ChangeRecord]:
        """Entries with ``start <= timestamp <= end``.

        Bounds may be epoch seconds, ISO-8601 strings or datetimes.
        """
        t_start = parse_timestamp(start)
        t_end = parse_timestamp(end)
        return [e for e in self._log.entries if t_start <= e.timestamp <= t_end]
