"""HistorySession: one editing session's history, wired to an event bus."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from gamecfg.core.bus import EventBus
from gamecfg.core.clock import Clock
from gamecfg.history.batch import BatchCoordinator
from gamecfg.history.checkpoints import CheckpointNavigator
from gamecfg.history.compactor import HistoryCompactor
from gamecfg.history.config import HistoryConfig
from gamecfg.history.log import ApplyCallback, HistoryLog
from gamecfg.history.query import HistoryQuery
from gamecfg.history.storage import BlobStore, FileBlobStore, HistoryStorage

logger = logging.getLogger(__name__)


class HistorySession:
    """Builds a :class:`HistoryLog` and its helpers from a :class:`HistoryConfig`.

    The session owns exactly one log.  When ``config.enabled`` is true the
    log listens to ``config-changed`` on *bus*; *apply* is the store's
    callback for undo/redo instructions.
    """

    def __init__(
        self,
        config: HistoryConfig | None = None,
        *,
        bus: EventBus | None = None,
        apply: ApplyCallback | None = None,
        blobs: BlobStore | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or HistoryConfig()
        self.bus = bus or EventBus()
        if blobs is None:
            blobs = FileBlobStore(self.config.storage_directory)
        self.storage = HistoryStorage(blobs, key=self.config.storage_key)
        self.log = HistoryLog(
            capacity=self.config.capacity,
            bus=self.bus,
            apply=apply,
            storage=self.storage,
            clock=clock,
            autosave=self.config.autosave,
        )
        self.batches = BatchCoordinator(self.log)
        self.checkpoints = CheckpointNavigator(self.log)
        self.compactor = HistoryCompactor(self.config.merge_window_seconds)
        self.query = HistoryQuery(self.log)
        if self.config.enabled:
            self.log.attach(self.bus)

    @classmethod
    def from_config(cls, cfg: Any, **kwargs: Any) -> HistorySession:
        """Build from the root OmegaConf config (reads ``gamecfg.history``)."""
        section = None
        if cfg is not None:
            section = cfg.get("gamecfg", {}).get("history")
        return cls(HistoryConfig.from_omegaconf(section), **kwargs)

    def start(self) -> int:
        """Restore persisted history.  Returns the number of entries loaded."""
        count = self.log.load()
        logger.info("History session started with %d entries", count)
        return count

    def close(self) -> None:
        self.log.detach()
        if self.config.autosave:
            self.log.save()

    # ------------------------------------------------------------------
    # Shortcuts
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        return self.log.undo()

    def redo(self) -> bool:
        return self.log.redo()

    def compact(self) -> int:
        return self.compactor.compact(self.log)

    def export(self, destination: str | Path | None = None) -> Path:
        return self.log.export_to_file(destination or self.config.export_directory)

    def get_status(self) -> dict[str, Any]:
        """Status block for the CLI / UI."""
        status = self.log.stats().to_dict()
        status.update(
            {
                "state": self.log.state.value,
                "capacity": self.log.capacity,
                "batchOpen": self.batches.is_open,
                "storageKey": self.storage.key,
                "lastError": str(self.log.last_error) if self.log.last_error else None,
            }
        )
        return status
