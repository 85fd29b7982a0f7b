"""Tests for the configuration system."""

from __future__ import annotations

import pytest
from omegaconf import DictConfig, OmegaConf
from pydantic import ValidationError

from gamecfg.core.config import AppConfig
from gamecfg.core.config_schema import validate_config


class TestAppConfig:
    def test_load_default(self, config_path):
        cfg = AppConfig(config_path).load()
        assert isinstance(cfg, DictConfig)
        assert cfg.gamecfg.system.name == "GameConfig Editor"
        assert cfg.gamecfg.history.capacity == 50
        assert cfg.gamecfg.history.merge_window_seconds == 5.0

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig(tmp_path / "nonexistent.yaml").load()

    def test_override(self, config_path):
        config = AppConfig(config_path)
        config.load()
        config.override("gamecfg.history.capacity", 200)
        assert config.cfg.gamecfg.history.capacity == 200

    def test_override_before_load(self, config_path):
        with pytest.raises(RuntimeError):
            AppConfig(config_path).override("gamecfg.history.capacity", 1)

    def test_cfg_before_load(self, config_path):
        with pytest.raises(RuntimeError):
            AppConfig(config_path).cfg

    def test_local_override_merged(self, tmp_path):
        (tmp_path / "default.yaml").write_text("gamecfg:\n  history:\n    capacity: 50\n")
        (tmp_path / "local.yaml").write_text("gamecfg:\n  history:\n    capacity: 7\n")
        cfg = AppConfig(tmp_path / "default.yaml").load()
        assert cfg.gamecfg.history.capacity == 7

    def test_default_validates(self, config_path):
        AppConfig(config_path).load(validate=True)


class TestConfigSchema:
    def test_defaults(self):
        root = validate_config({})
        assert root.gamecfg.history.capacity == 50
        assert root.gamecfg.history.storage.key == "gamecfg.history"

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValidationError):
            validate_config({"gamecfg": {"history": {"capacity": 0}}})

    def test_rejects_bad_log_level(self):
        with pytest.raises(ValidationError):
            validate_config({"gamecfg": {"system": {"log_level": "LOUD"}}})

    def test_validate_flag_in_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(
            OmegaConf.to_yaml(
                {"gamecfg": {"system": {"validate_config": True}, "history": {"capacity": -1}}}
            )
        )
        with pytest.raises(ValidationError):
            AppConfig(path).load()
