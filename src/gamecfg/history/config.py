"""History subsystem configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from omegaconf import DictConfig, OmegaConf

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 50
MERGE_WINDOW_SECONDS = 5.0
DEFAULT_STORAGE_KEY = "gamecfg.history"


@dataclass
class HistoryConfig:
    """Change history configuration."""

    enabled: bool = True
    capacity: int = DEFAULT_CAPACITY
    merge_window_seconds: float = MERGE_WINDOW_SECONDS
    autosave: bool = True

    # Storage
    storage_directory: str = "data/history"
    storage_key: str = DEFAULT_STORAGE_KEY

    # Export
    export_directory: str = "data/exports"

    @classmethod
    def from_omegaconf(cls, cfg: Any) -> HistoryConfig:
        """Build from the ``gamecfg.history`` OmegaConf node or a plain dict."""
        if cfg is None:
            return cls()

        if isinstance(cfg, DictConfig):
            cfg = OmegaConf.to_container(cfg, resolve=True)

        if not isinstance(cfg, dict):
            cfg = dict(cfg)

        storage = cfg.get("storage", {}) or {}
        export = cfg.get("export", {}) or {}

        capacity = int(cfg.get("capacity", DEFAULT_CAPACITY))
        if capacity < 1:
            logger.warning("history.capacity %d < 1, using 1", capacity)
            capacity = 1

        return cls(
            enabled=bool(cfg.get("enabled", True)),
            capacity=capacity,
            merge_window_seconds=float(cfg.get("merge_window_seconds", MERGE_WINDOW_SECONDS)),
            autosave=bool(cfg.get("autosave", True)),
            storage_directory=str(storage.get("directory", "data/history")),
            storage_key=str(storage.get("key", DEFAULT_STORAGE_KEY)),
            export_directory=str(export.get("directory", "data/exports")),
        )
