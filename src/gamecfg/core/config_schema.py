"""Pydantic schema for editor configuration validation.

Mirrors the YAML structure in config/default.yaml.  Used when
``validate=True`` is passed to ``AppConfig.load()``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field


class SystemConfig(BaseModel):
    name: str = "GameConfig Editor"
    version: str = "0.1.0"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: str | None = None
    log_json: bool = False
    validate_config: bool = False


class HistoryStorageConfig(BaseModel):
    directory: str = "data/history"
    key: str = Field(default="gamecfg.history", min_length=1)


class HistoryExportConfig(BaseModel):
    directory: str = "data/exports"


class HistorySection(BaseModel):
    enabled: bool = True
    capacity: int = Field(default=50, ge=1)
    merge_window_seconds: float = Field(default=5.0, gt=0)
    autosave: bool = True
    storage: HistoryStorageConfig = Field(default_factory=HistoryStorageConfig)
    export: HistoryExportConfig = Field(default_factory=HistoryExportConfig)


class GameCfgSection(BaseModel):
    system: SystemConfig = Field(default_factory=SystemConfig)
    history: HistorySection = Field(default_factory=HistorySection)


class RootConfig(BaseModel):
    gamecfg: GameCfgSection = Field(default_factory=GameCfgSection)


def validate_config(data: dict[str, Any]) -> RootConfig:
    """Validate a plain config dict.  Raises ``pydantic.ValidationError``."""
    return RootConfig.model_validate(data)
