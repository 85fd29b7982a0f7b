"""Shared pytest fixtures for config editor history tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from gamecfg.core.bus import EventBus
from gamecfg.core.clock import SimClock
from gamecfg.history.log import HistoryLog
from gamecfg.history.storage import HistoryStorage, MemoryBlobStore
from gamecfg.store import ConfigStore


@pytest.fixture
def project_root() -> Path:
    return Path(__file__).parent.parent


@pytest.fixture
def config_path(project_root: Path) -> Path:
    return project_root / "config" / "default.yaml"


@pytest.fixture
def sim_clock() -> SimClock:
    return SimClock(start_epoch=1_700_000_000.0)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def blobs() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def storage(blobs: MemoryBlobStore) -> HistoryStorage:
    return HistoryStorage(blobs, key="test.history")


@pytest.fixture
def store(bus: EventBus) -> ConfigStore:
    """A small game config with one character."""
    return ConfigStore(
        {
            "characters": {
                "char1": {"name": "Aria", "stats": {"intelligence": 10, "strength": 5}},
            },
            "system": {"difficulty": "normal"},
        },
        bus=bus,
    )


@pytest.fixture
def history(
    bus: EventBus, store: ConfigStore, storage: HistoryStorage, sim_clock: SimClock
) -> HistoryLog:
    """History log listening to *store* edits and applying back into it."""
    log = HistoryLog(capacity=50, bus=bus, apply=store.apply, storage=storage, clock=sim_clock)
    log.attach(bus)
    return log


@pytest.fixture(autouse=True)
def _reset_gamecfg_logger():
    """Undo setup_logging() side effects so caplog keeps working."""
    yield
    root = logging.getLogger("gamecfg")
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)
    root.propagate = True
