"""In-memory configuration store addressed by dot paths."""

from gamecfg.store.config_store import ConfigStore

__all__ = ["ConfigStore"]
