"""ConfigStore: nested game configuration edited through dot paths."""

from __future__ import annotations

import copy
import logging
from typing import Any

from gamecfg.core.bus import EventBus
from gamecfg.core.types import CONFIG_CHANGED, ChangeKind
from gamecfg.history.record import ApplyInstruction

logger = logging.getLogger(__name__)

_MISSING = object()


def split_path(path: str) -> list[str]:
    keys = path.split(".")
    if not path or any(not k for k in keys):
        raise ValueError(f"invalid config path {path!r}")
    return keys


class ConfigStore:
    """Holds config sections (``characters``, ``events``, ...) as nested dicts.

    User edits go through :meth:`set` / :meth:`delete` and publish
    ``config-changed`` on the bus.  :meth:`apply` is the history log's
    apply callback and writes silently.

    Values are deep-copied on the way in and out so records stay
    independent of later mutation.
    """

    def __init__(self, data: dict[str, Any] | None = None, bus: EventBus | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(data) if data else {}
        self._bus = bus

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _lookup(self, path: str) -> Any:
        node: Any = self._data
        for key in split_path(path):
            if not isinstance(node, dict) or key not in node:
                return _MISSING
            node = node[key]
        return node

    def get(self, path: str, default: Any = None) -> Any:
        value = self._lookup(path)
        if value is _MISSING:
            return default
        return copy.deepcopy(value)

    def has(self, path: str) -> bool:
        return self._lookup(path) is not _MISSING

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    # ------------------------------------------------------------------
    # User edits
    # ------------------------------------------------------------------

    def set(self, path: str, value: Any, description: str | None = None) -> None:
        """Set *path*, creating intermediate sections.  Publishes Add or Modify."""
        old = self._lookup(path)
        self._write(path, value)
        if old is _MISSING:
            self._publish(ChangeKind.ADD, path, None, value, description)
        else:
            self._publish(ChangeKind.MODIFY, path, old, value, description)

    def delete(self, path: str, description: str | None = None) -> None:
        """Remove *path*.  Publishes Delete.

        Raises:
            KeyError: If *path* does not exist.
        """
        old = self._lookup(path)
        if old is _MISSING:
            raise KeyError(path)
        self._remove(path)
        self._publish(ChangeKind.DELETE, path, old, None, description)

    # ------------------------------------------------------------------
    # History apply callback
    # ------------------------------------------------------------------

    def apply(self, instruction: ApplyInstruction) -> None:
        """Adopt a historical value without publishing a change."""
        if instruction.kind is ChangeKind.DELETE:
            self._remove(instruction.target)
        elif instruction.kind in (ChangeKind.MODIFY, ChangeKind.ADD):
            self._write(instruction.target, instruction.value)
        else:
            raise ValueError(f"cannot apply {instruction.kind.value} instruction")
        logger.debug(
            "Applied %s %s (undo=%s)",
            instruction.kind.value,
            instruction.target,
            instruction.is_undo,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _write(self, path: str, value: Any) -> None:
        keys = split_path(path)
        node = self._data
        for key in keys[:-1]:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        node[keys[-1]] = copy.deepcopy(value)

    def _remove(self, path: str) -> None:
        keys = split_path(path)
        node: Any = self._data
        for key in keys[:-1]:
            if not isinstance(node, dict) or key not in node:
                return
            node = node[key]
        if isinstance(node, dict):
            node.pop(keys[-1], None)

    def _publish(
        self,
        kind: ChangeKind,
        path: str,
        old: Any,
        new: Any,
        description: str | None,
    ) -> None:
        if self._bus is None:
            return
        self._bus.publish(
            CONFIG_CHANGED,
            kind=kind,
            target=path,
            old_value=copy.deepcopy(old),
            new_value=copy.deepcopy(new),
            description=description,
        )
