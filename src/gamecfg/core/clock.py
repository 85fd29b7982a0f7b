"""Wall clock and simulated clock used to timestamp change records."""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Protocol for clocks used by the history log.

    Both SystemClock (real-time) and SimClock (deterministic) implement this.
    """

    def now(self) -> float:
        """Current time as epoch seconds."""
        ...


class SystemClock:
    """Real wall-clock time.  This is the default clock."""

    def now(self) -> float:
        return time.time()


class SimClock:
    """Deterministic clock for reproducible tests.

    Time only advances when :meth:`step` or :meth:`set_time` are called.

    Args:
        start_epoch: Initial epoch time.  Defaults to ``1_700_000_000.0``.
    """

    def __init__(self, start_epoch: float = 1_700_000_000.0):
        self._start_epoch = start_epoch
        self._elapsed = 0.0

    def now(self) -> float:
        """Current simulated epoch time."""
        return self._start_epoch + self._elapsed

    def step(self, dt: float) -> None:
        """Advance simulated time by *dt* seconds.

        Raises:
            ValueError: If *dt* is negative.
        """
        if dt < 0:
            raise ValueError(f"SimClock.step() requires dt >= 0, got {dt}")
        self._elapsed += dt

    def set_time(self, epoch_time: float) -> None:
        """Set the absolute simulated epoch time.

        Raises:
            ValueError: If *epoch_time* is before *start_epoch*.
        """
        new_elapsed = epoch_time - self._start_epoch
        if new_elapsed < 0:
            raise ValueError(
                f"epoch_time {epoch_time} is before start_epoch {self._start_epoch}"
            )
        self._elapsed = new_elapsed
