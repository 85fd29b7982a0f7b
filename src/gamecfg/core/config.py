"""Hierarchical YAML configuration system using OmegaConf."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from omegaconf import DictConfig, OmegaConf


class AppConfig:
    """Loads the editor's YAML configuration.

    Supports a base config, an optional ``local.yaml`` override next to it,
    and dot-path overrides applied from the command line.
    """

    def __init__(self, config_path: str | Path = "config/default.yaml"):
        self._config_path = Path(config_path)
        self._config: DictConfig | None = None

    def load(self, validate: bool = False) -> DictConfig:
        """Load the base config and merge ``local.yaml`` if present.

        Args:
            validate: If True, validate the loaded config against the
                Pydantic schema and raise ``pydantic.ValidationError``
                on invalid values.
        """
        if not self._config_path.exists():
            raise FileNotFoundError(f"Config not found: {self._config_path}")

        base = OmegaConf.load(self._config_path)
        assert isinstance(base, DictConfig)

        local = self._config_path.parent / "local.yaml"
        if local.is_file() and local != self._config_path:
            base = OmegaConf.merge(base, OmegaConf.load(local))

        if validate or OmegaConf.select(base, "gamecfg.system.validate_config", default=False):
            from gamecfg.core.config_schema import validate_config

            validate_config(OmegaConf.to_container(base, resolve=True))

        self._config = base
        return self._config

    def override(self, dotpath: str, value: Any) -> None:
        """Override a config value using dot notation.

        Example: config.override("gamecfg.history.capacity", 200)
        """
        if self._config is None:
            raise RuntimeError("Config not loaded yet. Call load() first.")
        OmegaConf.update(self._config, dotpath, value)

    @property
    def cfg(self) -> DictConfig:
        if self._config is None:
            raise RuntimeError("Config not loaded yet. Call load() first.")
        return self._config
