"""Tests for gamecfg.history.checkpoints: named navigation targets."""

from __future__ import annotations

import pytest

from gamecfg.core.clock import SimClock
from gamecfg.core.types import ChangeKind
from gamecfg.history.checkpoints import CheckpointNavigator
from gamecfg.history.log import HistoryLog
from gamecfg.history.record import CheckpointRecord


class _CountingLog(HistoryLog):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.undo_calls = 0
        self.redo_calls = 0

    def undo(self) -> bool:
        self.undo_calls += 1
        return super().undo()

    def redo(self) -> bool:
        self.redo_calls += 1
        return super().redo()


@pytest.fixture
def log() -> _CountingLog:
    return _CountingLog(clock=SimClock())


@pytest.fixture
def nav(log) -> CheckpointNavigator:
    return CheckpointNavigator(log)


class TestCreateCheckpoint:
    def test_creates_entry(self, log, nav):
        cp_id = nav.create_checkpoint("Before balance pass")
        entry = log.current
        assert isinstance(entry, CheckpointRecord)
        assert entry.kind is ChangeKind.CHECKPOINT
        assert entry.checkpoint_id == cp_id
        assert entry.target == "system"
        assert entry.description == "Before balance pass"
        assert log.cursor == 0

    def test_default_description(self, log, nav):
        nav.create_checkpoint()
        assert log.current.description == "Checkpoint"

    def test_checkpoint_truncates_redo_branch(self, log, nav):
        log.record_change(ChangeKind.MODIFY, "x", 0, 1)
        log.record_change(ChangeKind.MODIFY, "x", 1, 2)
        log.undo()
        nav.create_checkpoint("cp")
        assert len(log) == 2
        assert log.can_redo() is False


class TestJumpToCheckpoint:
    def test_jump_back_one_step(self, log, nav):
        log.record_change(ChangeKind.MODIFY, "a", 0, 1)
        log.record_change(ChangeKind.MODIFY, "b", 0, 1)
        cp_id = nav.create_checkpoint("C")
        log.record_change(ChangeKind.MODIFY, "d", 0, 1)
        assert log.cursor == 3

        assert nav.jump_to_checkpoint(cp_id) is True
        assert log.cursor == 2
        assert log.undo_calls == 1
        assert log.redo_calls == 0

    def test_jump_forward(self, log, nav):
        cp_id = nav.create_checkpoint("start")
        log.record_change(ChangeKind.MODIFY, "a", 0, 1)
        late = nav.create_checkpoint("late")
        while log.undo():
            pass
        log.undo_calls = 0

        assert nav.jump_to_checkpoint(late) is True
        assert log.cursor == 2
        assert log.redo_calls == 3
        assert nav.jump_to_checkpoint(cp_id) is True
        assert log.cursor == 0

    def test_jump_to_current_is_noop(self, log, nav):
        cp_id = nav.create_checkpoint()
        assert nav.jump_to_checkpoint(cp_id) is True
        assert log.undo_calls == 0
        assert log.redo_calls == 0

    def test_jump_by_record_id(self, log, nav):
        nav.create_checkpoint()
        record_id = log.current.id
        log.record_change(ChangeKind.MODIFY, "a", 0, 1)
        assert nav.jump_to_checkpoint(record_id) is True
        assert log.cursor == 0

    def test_unknown_checkpoint(self, log, nav):
        log.record_change(ChangeKind.MODIFY, "a", 0, 1)
        assert nav.jump_to_checkpoint("nope") is False
        assert log.cursor == 0

    def test_jump_stops_on_failure(self, log, nav):
        cp_id = nav.create_checkpoint()
        log.record_change(ChangeKind.MODIFY, "a", 0, 1)
        log.record_change(ChangeKind.MODIFY, "b", 0, 1)
        calls = []

        def flaky(instruction):
            calls.append(instruction)
            if len(calls) == 2:
                raise RuntimeError("store offline")

        log.set_apply_callback(flaky)
        assert nav.jump_to_checkpoint(cp_id) is False
        assert log.cursor == 1
        assert log.is_recording is True

    def test_jump_restores_store(self, history, store):
        nav = CheckpointNavigator(history)
        store.set("system.difficulty", "hard")
        cp_id = nav.create_checkpoint("hard mode")
        store.set("characters.char1.stats.intelligence", 20)
        store.set("system.difficulty", "nightmare")

        assert nav.jump_to_checkpoint(cp_id)
        assert store.get("system.difficulty") == "hard"
        assert store.get("characters.char1.stats.intelligence") == 10


class TestListing:
    def test_get_checkpoints(self, log, nav):
        log.record_change(ChangeKind.MODIFY, "a", 0, 1)
        first = nav.create_checkpoint("one")
        log.record_change(ChangeKind.MODIFY, "a", 1, 2)
        second = nav.create_checkpoint("two")

        cps = nav.get_checkpoints()
        assert [c.checkpoint_id for c in cps] == [first, second]
        assert [c.index for c in cps] == [1, 3]
        assert [c.description for c in cps] == ["one", "two"]

    def test_evicted_checkpoint_disappears(self):
        log = HistoryLog(capacity=2, clock=SimClock())
        nav = CheckpointNavigator(log)
        cp_id = nav.create_checkpoint()
        log.record_change(ChangeKind.MODIFY, "a", 0, 1)
        log.record_change(ChangeKind.MODIFY, "a", 1, 2)
        assert nav.get_checkpoints() == []
        assert nav.jump_to_checkpoint(cp_id) is False

    def test_save_snapshot_does_not_record(self, log, nav):
        log.record_change(ChangeKind.MODIFY, "a", 0, 1)
        snap = nav.save_snapshot("Initial state")
        assert snap.description == "Initial state"
        assert snap.history_index == 0
        assert snap.history_length == 1
        assert len(log) == 1
