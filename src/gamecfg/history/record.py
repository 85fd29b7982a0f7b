"""Change records: immutable descriptions of one configuration transition.

A record is one variant of a small tagged union keyed by
:class:`~gamecfg.core.types.ChangeKind`.  Each variant carries only the
fields its semantics need and knows how to express its own undo and redo
as a list of :class:`ApplyInstruction` for the configuration store.

Values are opaque: records never look inside ``old_value``/``new_value``.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, ClassVar

from gamecfg.core.types import ChangeKind
from gamecfg.history.errors import MalformedHistoryError

BATCH_TARGET = "multiple"
CHECKPOINT_TARGET = "system"


@dataclass(frozen=True)
class ApplyInstruction:
    """Tells the configuration store which value should now be active.

    ``kind`` is MODIFY, ADD or DELETE.  ``value`` is ``None`` for DELETE.
    ``is_undo`` is set by the log when the instruction unwinds a change.
    """

    kind: ChangeKind
    target: str
    value: Any = None
    is_undo: bool = False


@dataclass(frozen=True)
class ChangeDescriptor:
    """One field edit inside a batch."""

    kind: ChangeKind
    target: str
    old_value: Any = None
    new_value: Any = None

    def __post_init__(self) -> None:
        if not self.kind.is_edit:
            raise ValueError(f"batch children must be edits, got {self.kind.value}")

    def undo_instruction(self) -> ApplyInstruction:
        if self.kind is ChangeKind.ADD:
            return ApplyInstruction(ChangeKind.DELETE, self.target)
        if self.kind is ChangeKind.DELETE:
            return ApplyInstruction(ChangeKind.ADD, self.target, self.old_value)
        return ApplyInstruction(ChangeKind.MODIFY, self.target, self.old_value)

    def redo_instruction(self) -> ApplyInstruction:
        if self.kind is ChangeKind.ADD:
            return ApplyInstruction(ChangeKind.ADD, self.target, self.new_value)
        if self.kind is ChangeKind.DELETE:
            return ApplyInstruction(ChangeKind.DELETE, self.target)
        return ApplyInstruction(ChangeKind.MODIFY, self.target, self.new_value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "target": self.target,
            "oldValue": self.old_value,
            "newValue": self.new_value,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ChangeDescriptor:
        try:
            kind = ChangeKind(d.get("kind", d.get("type", "modify")))
            return cls(
                kind=kind,
                target=str(d["target"]),
                old_value=d.get("oldValue"),
                new_value=d.get("newValue"),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise MalformedHistoryError(f"bad batch child {d!r}: {e}") from e


@dataclass(frozen=True, kw_only=True)
class ChangeRecord:
    """Fields shared by every record variant."""

    kind: ClassVar[ChangeKind]

    id: str
    timestamp: float  # epoch seconds
    target: str
    description: str = ""

    def undo_instructions(self) -> list[ApplyInstruction]:
        return []

    def redo_instructions(self) -> list[ApplyInstruction]:
        return []

    def _payload(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON wire form."""
        d = {
            "id": self.id,
            "timestamp": format_timestamp(self.timestamp),
            "kind": self.kind.value,
            "target": self.target,
            "description": self.description,
        }
        d.update(self._payload())
        return d


@dataclass(frozen=True, kw_only=True)
class ModifyRecord(ChangeRecord):
    kind: ClassVar[ChangeKind] = ChangeKind.MODIFY

    old_value: Any = None
    new_value: Any = None

    def as_descriptor(self) -> ChangeDescriptor:
        return ChangeDescriptor(self.kind, self.target, self.old_value, self.new_value)

    def undo_instructions(self) -> list[ApplyInstruction]:
        return [self.as_descriptor().undo_instruction()]

    def redo_instructions(self) -> list[ApplyInstruction]:
        return [self.as_descriptor().redo_instruction()]

    def _payload(self) -> dict[str, Any]:
        return {"oldValue": self.old_value, "newValue": self.new_value}


@dataclass(frozen=True, kw_only=True)
class AddRecord(ChangeRecord):
    kind: ClassVar[ChangeKind] = ChangeKind.ADD

    new_value: Any = None

    def undo_instructions(self) -> list[ApplyInstruction]:
        return [ApplyInstruction(ChangeKind.DELETE, self.target)]

    def redo_instructions(self) -> list[ApplyInstruction]:
        return [ApplyInstruction(ChangeKind.ADD, self.target, self.new_value)]

    def _payload(self) -> dict[str, Any]:
        return {"newValue": self.new_value}


@dataclass(frozen=True, kw_only=True)
class DeleteRecord(ChangeRecord):
    kind: ClassVar[ChangeKind] = ChangeKind.DELETE

    old_value: Any = None

    def undo_instructions(self) -> list[ApplyInstruction]:
        return [ApplyInstruction(ChangeKind.ADD, self.target, self.old_value)]

    def redo_instructions(self) -> list[ApplyInstruction]:
        return [ApplyInstruction(ChangeKind.DELETE, self.target)]

    def _payload(self) -> dict[str, Any]:
        return {"oldValue": self.old_value}


@dataclass(frozen=True, kw_only=True)
class BatchRecord(ChangeRecord):
    """Several edits replayed as one step."""

    kind: ClassVar[ChangeKind] = ChangeKind.BATCH

    target: str = BATCH_TARGET
    changes: tuple[ChangeDescriptor, ...] = field(default_factory=tuple)

    def undo_instructions(self) -> list[ApplyInstruction]:
        return [c.undo_instruction() for c in reversed(self.changes)]

    def redo_instructions(self) -> list[ApplyInstruction]:
        return [c.redo_instruction() for c in self.changes]

    def _payload(self) -> dict[str, Any]:
        return {"changes": [c.to_dict() for c in self.changes]}


@dataclass(frozen=True, kw_only=True)
class CheckpointRecord(ChangeRecord):
    """Marker entry; undo and redo are no-ops."""

    kind: ClassVar[ChangeKind] = ChangeKind.CHECKPOINT

    target: str = CHECKPOINT_TARGET
    checkpoint_id: str = ""

    def _payload(self) -> dict[str, Any]:
        return {"checkpointId": self.checkpoint_id}


RECORD_TYPES: dict[ChangeKind, type[ChangeRecord]] = {
    ChangeKind.MODIFY: ModifyRecord,
    ChangeKind.ADD: AddRecord,
    ChangeKind.DELETE: DeleteRecord,
    ChangeKind.BATCH: BatchRecord,
    ChangeKind.CHECKPOINT: CheckpointRecord,
}


# ---------------------------------------------------------------------------
# Construction helpers
# ---------------------------------------------------------------------------


def generate_id(timestamp: float) -> str:
    """Time-prefixed id: sorts by creation millisecond, unique via a random tail."""
    return f"{int(timestamp * 1000):011x}-{uuid.uuid4().hex[:8]}"


def default_description(kind: ChangeKind, target: str) -> str:
    if kind is ChangeKind.BATCH:
        return "Batch operation"
    if kind is ChangeKind.CHECKPOINT:
        return "Checkpoint"
    return f"{kind.value.capitalize()} {target}"


def _build(
    kind: ChangeKind,
    common: dict[str, Any],
    old_value: Any = None,
    new_value: Any = None,
    changes: tuple[ChangeDescriptor, ...] = (),
    checkpoint_id: str | None = None,
) -> ChangeRecord:
    """Instantiate ``RECORD_TYPES[kind]`` with only the fields it declares."""
    fields: dict[str, Any] = {}
    if kind in (ChangeKind.MODIFY, ChangeKind.DELETE):
        fields["old_value"] = old_value
    if kind in (ChangeKind.MODIFY, ChangeKind.ADD):
        fields["new_value"] = new_value
    if kind is ChangeKind.BATCH:
        fields["changes"] = changes
    if kind is ChangeKind.CHECKPOINT:
        fields["checkpoint_id"] = checkpoint_id or common["id"]
    return RECORD_TYPES[kind](**common, **fields)


def make_record(
    kind: ChangeKind,
    target: str | None,
    old_value: Any = None,
    new_value: Any = None,
    description: str | None = None,
    *,
    timestamp: float,
    changes: list[ChangeDescriptor] | tuple[ChangeDescriptor, ...] = (),
    checkpoint_id: str | None = None,
) -> ChangeRecord:
    """Build the record variant for *kind* with a fresh id."""
    record_id = generate_id(timestamp)
    common: dict[str, Any] = {"id": record_id, "timestamp": timestamp}
    if target:
        common["target"] = target
    elif kind is ChangeKind.BATCH:
        target = BATCH_TARGET
    elif kind is ChangeKind.CHECKPOINT:
        target = CHECKPOINT_TARGET
    else:
        target = common["target"] = "unknown"
    common["description"] = description or default_description(kind, target)
    return _build(kind, common, old_value, new_value, tuple(changes), checkpoint_id)


def merged(earlier: ModifyRecord, later: ModifyRecord) -> ModifyRecord:
    """Fold *later* into *earlier*, keeping the earlier old value."""
    return replace(
        earlier,
        new_value=later.new_value,
        timestamp=later.timestamp,
        description=f"{earlier.description} (merged)",
    )


# ---------------------------------------------------------------------------
# Wire form
# ---------------------------------------------------------------------------


def format_timestamp(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def parse_timestamp(value: Any) -> float:
    """Accept ISO-8601 strings (``Z`` suffix allowed) or epoch numbers."""
    if isinstance(value, bool):
        raise ValueError(f"invalid timestamp {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


def record_from_dict(d: dict[str, Any]) -> ChangeRecord:
    """Rebuild a record from its wire form.

    Raises:
        MalformedHistoryError: On unknown kinds or missing required keys.
    """
    if not isinstance(d, dict):
        raise MalformedHistoryError(f"entry is not an object: {d!r}")
    try:
        kind = ChangeKind(d.get("kind", d.get("type")))
    except ValueError as e:
        raise MalformedHistoryError(f"unknown change kind in {d.get('id')!r}") from e
    try:
        common: dict[str, Any] = {
            "id": str(d["id"]),
            "timestamp": parse_timestamp(d["timestamp"]),
            "description": str(d.get("description") or ""),
        }
        target = d.get("target")
        if target is not None:
            common["target"] = str(target)
        elif kind.is_edit:
            raise KeyError("target")
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedHistoryError(f"entry missing or invalid field {e}") from e

    if not common["description"]:
        common["description"] = default_description(kind, common.get("target", ""))

    changes: tuple[ChangeDescriptor, ...] = ()
    if kind is ChangeKind.BATCH:
        raw_changes = d.get("changes") or []
        if not isinstance(raw_changes, list):
            raise MalformedHistoryError(f"batch {common['id']} changes is not a list")
        changes = tuple(ChangeDescriptor.from_dict(c) for c in raw_changes)

    checkpoint_id = None
    if kind is ChangeKind.CHECKPOINT:
        checkpoint_id = d.get("checkpointId")
        if checkpoint_id is None and isinstance(d.get("newValue"), dict):
            checkpoint_id = d["newValue"].get("id")
        if checkpoint_id is not None:
            checkpoint_id = str(checkpoint_id)

    return _build(kind, common, d.get("oldValue"), d.get("newValue"), changes, checkpoint_id)
