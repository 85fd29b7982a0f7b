"""Tests for gamecfg.history.config: HistoryConfig dataclass."""

from __future__ import annotations

from omegaconf import OmegaConf

from gamecfg.history.config import HistoryConfig


class TestHistoryConfigDefaults:
    def test_defaults(self):
        cfg = HistoryConfig()
        assert cfg.enabled is True
        assert cfg.capacity == 50
        assert cfg.merge_window_seconds == 5.0
        assert cfg.autosave is True
        assert cfg.storage_directory == "data/history"
        assert cfg.storage_key == "gamecfg.history"
        assert cfg.export_directory == "data/exports"


class TestHistoryConfigFromOmegaconf:
    def test_from_none(self):
        assert HistoryConfig.from_omegaconf(None) == HistoryConfig()

    def test_from_empty_dict(self):
        cfg = HistoryConfig.from_omegaconf({})
        assert cfg.capacity == 50

    def test_from_full_dict(self):
        cfg = HistoryConfig.from_omegaconf(
            {
                "enabled": False,
                "capacity": 200,
                "merge_window_seconds": 2.5,
                "autosave": False,
                "storage": {"directory": "/tmp/hist", "key": "proj.history"},
                "export": {"directory": "/tmp/exports"},
            }
        )
        assert cfg.enabled is False
        assert cfg.capacity == 200
        assert cfg.merge_window_seconds == 2.5
        assert cfg.autosave is False
        assert cfg.storage_directory == "/tmp/hist"
        assert cfg.storage_key == "proj.history"
        assert cfg.export_directory == "/tmp/exports"

    def test_from_omegaconf_node(self):
        node = OmegaConf.create({"capacity": 10, "storage": {"key": "k"}})
        cfg = HistoryConfig.from_omegaconf(node)
        assert cfg.capacity == 10
        assert cfg.storage_key == "k"

    def test_null_sections(self):
        cfg = HistoryConfig.from_omegaconf({"storage": None, "export": None})
        assert cfg.storage_directory == "data/history"

    def test_capacity_clamped(self):
        assert HistoryConfig.from_omegaconf({"capacity": 0}).capacity == 1
