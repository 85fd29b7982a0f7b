"""Tests for HistorySession wiring."""

from __future__ import annotations

import json

import pytest
from omegaconf import OmegaConf

from gamecfg.core.types import HISTORY_UNDO
from gamecfg.history.config import HistoryConfig
from gamecfg.history.session import HistorySession
from gamecfg.history.storage import FileBlobStore


@pytest.fixture
def session(bus, store, blobs, sim_clock, tmp_path) -> HistorySession:
    config = HistoryConfig(export_directory=str(tmp_path / "exports"))
    return HistorySession(config, bus=bus, apply=store.apply, blobs=blobs, clock=sim_clock)


class TestWiring:
    def test_store_edits_are_recorded(self, session, store):
        store.set("system.difficulty", "hard")
        assert len(session.log) == 1
        assert session.log.current.target == "system.difficulty"

    def test_undo_redo_through_session(self, session, store):
        store.set("system.difficulty", "hard")
        assert session.undo() is True
        assert store.get("system.difficulty") == "normal"
        assert session.redo() is True
        assert store.get("system.difficulty") == "hard"

    def test_undo_notifies_bus(self, session, store, bus):
        seen = []
        bus.subscribe(HISTORY_UNDO, lambda **kw: seen.append(kw["record"].target))
        store.set("system.difficulty", "hard")
        session.undo()
        assert seen == ["system.difficulty"]

    def test_disabled_does_not_listen(self, bus, store, blobs, sim_clock):
        session = HistorySession(
            HistoryConfig(enabled=False), bus=bus, apply=store.apply, blobs=blobs, clock=sim_clock
        )
        store.set("system.difficulty", "hard")
        assert len(session.log) == 0

    def test_helpers_share_the_log(self, session):
        assert session.batches._log is session.log
        assert session.checkpoints._log is session.log
        assert session.query._log is session.log

    def test_compactor_uses_configured_window(self, bus, store, blobs, sim_clock):
        session = HistorySession(
            HistoryConfig(merge_window_seconds=1.0),
            bus=bus,
            apply=store.apply,
            blobs=blobs,
            clock=sim_clock,
        )
        store.set("system.difficulty", "hard")
        sim_clock.step(2.0)
        store.set("system.difficulty", "nightmare")
        assert session.compact() == 0
        assert len(session.log) == 2


class TestLifecycle:
    def test_close_detaches_and_saves(self, session, store, blobs):
        store.set("system.difficulty", "hard")
        session.close()
        store.set("system.difficulty", "nightmare")
        assert len(session.log) == 1
        saved = json.loads(blobs.read("gamecfg.history"))
        assert len(saved["entries"]) == 1

    def test_start_restores_persisted_history(self, session, store, bus, blobs, sim_clock):
        store.set("system.difficulty", "hard")
        store.set("characters.char1.name", "Aria the Wise")
        session.close()

        fresh = HistorySession(HistoryConfig(), bus=bus, apply=store.apply, blobs=blobs, clock=sim_clock)
        assert fresh.start() == 2
        assert fresh.log.cursor == 1
        assert fresh.undo() is True
        assert store.get("characters.char1.name") == "Aria"

    def test_file_blob_store_default(self, tmp_path):
        config = HistoryConfig(storage_directory=str(tmp_path / "hist"), storage_key="proj")
        session = HistorySession(config)
        assert isinstance(session.storage.blobs, FileBlobStore)
        session.log.record_change("modify", "a.b", 1, 2)
        assert (tmp_path / "hist" / "proj.json").is_file()


class TestFromConfig:
    def test_reads_history_section(self, blobs):
        cfg = OmegaConf.create({"gamecfg": {"history": {"capacity": 3, "storage": {"key": "k"}}}})
        session = HistorySession.from_config(cfg, blobs=blobs)
        assert session.log.capacity == 3
        assert session.storage.key == "k"

    def test_missing_section_uses_defaults(self, blobs):
        session = HistorySession.from_config(OmegaConf.create({"gamecfg": {}}), blobs=blobs)
        assert session.log.capacity == 50

    def test_default_yaml(self, config_path, blobs):
        session = HistorySession.from_config(OmegaConf.load(config_path), blobs=blobs)
        assert session.config.merge_window_seconds == 5.0


class TestStatusAndExport:
    def test_get_status(self, session, store):
        store.set("system.difficulty", "hard")
        status = session.get_status()
        assert status["totalEntries"] == 1
        assert status["currentIndex"] == 0
        assert status["canUndo"] is True
        assert status["state"] == "recording"
        assert status["capacity"] == 50
        assert status["batchOpen"] is False
        assert status["storageKey"] == "gamecfg.history"
        assert status["lastError"] is None

    def test_export_defaults_to_configured_directory(self, session, store, tmp_path):
        (tmp_path / "exports").mkdir()
        store.set("system.difficulty", "hard")
        path = session.export()
        assert path.parent == tmp_path / "exports"
        assert path.name.startswith("config-history-")
        data = json.loads(path.read_text())
        assert data["type"] == "config-history"
        assert len(data["entries"]) == 1

    def test_export_explicit_path(self, session, tmp_path):
        path = session.export(tmp_path / "out.json")
        assert path == tmp_path / "out.json"
        assert json.loads(path.read_text())["entries"] == []
