"""Tests for the interruption ledger and the task store."""

from __future__ import annotations

import pytest

from pomoplus.models import InterruptionReason, PomodoroSession, Priority
from pomoplus.store.sync_queue import MutationType
from pomoplus.timer.interruptions import InterruptionLedger


@pytest.fixture()
def ledger(timer, queue, clock):
    return InterruptionLedger(timer, persister=queue, clock=clock)


class TestInterruptionLedger:
    def test_add_to_live_session(self, timer, ledger):
        session = timer.start_pomodoro()
        item = ledger.add_interruption(session.id, InterruptionReason.PHONE, "call")
        assert item.duration == 0
        assert session.interruptions == 1
        assert session.interruption_list == [item]

    def test_add_then_remove_restores_both_copies(self, timer, ledger):
        session = timer.start_pomodoro()
        timer.complete_pomodoro()
        # a live session sharing the id with the historical one
        timer.current_session = PomodoroSession(
            id=session.id, start_time=session.start_time, duration=session.duration,
        )
        live = timer.current_session
        historical = timer.sessions[0]

        item = ledger.add_interruption(session.id, "email")
        assert live.interruptions == 1
        assert historical.interruptions == 1
        assert live.interruption_list is not historical.interruption_list

        assert ledger.remove_interruption(item.id)
        assert live.interruptions == 0 and live.interruption_list == []
        assert historical.interruptions == 0 and historical.interruption_list == []

    def test_historical_change_enqueues_update_session(self, timer, ledger, queue):
        session = timer.start_pomodoro()
        timer.complete_pomodoro()
        ledger.add_interruption(session.id, InterruptionReason.SOCIAL)
        entry = queue.pending()[-1]
        assert entry.type == MutationType.UPDATE_SESSION
        assert entry.payload["interruptions"] == 1

    def test_unknown_reason_raises(self, timer, ledger):
        session = timer.start_pomodoro()
        with pytest.raises(ValueError):
            ledger.add_interruption(session.id, "coffee")

    def test_remove_unknown_returns_false(self, ledger):
        assert ledger.remove_interruption("nope") is False

    def test_close_sets_duration(self, timer, ledger):
        session = timer.start_pomodoro()
        item = ledger.add_interruption(session.id, InterruptionReason.URGENT)
        assert ledger.close_interruption(item.id, 90)
        assert ledger.interruptions_for(session.id)[0].duration == 90

    def test_interruptions_for_historical_session(self, timer, ledger):
        session = timer.start_pomodoro()
        ledger.add_interruption(session.id, InterruptionReason.OTHER)
        timer.complete_pomodoro()
        assert len(ledger.interruptions_for(session.id)) == 1
        assert ledger.interruptions_for("missing") == []


class TestTaskStore:
    def test_add_task_enqueues_create(self, tasks, queue):
        task = tasks.add_task("Plan sprint", estimated_pomodoros=0, priority="high")
        assert task.estimated_pomodoros == 1
        assert task.priority == Priority.HIGH
        entry = queue.pending()[0]
        assert entry.type == MutationType.CREATE_TASK
        assert entry.payload["title"] == "Plan sprint"

    def test_update_bumps_updated_at(self, tasks, clock):
        task = tasks.add_task("Draft")
        clock.advance(minutes=5)
        updated = tasks.update_task(task.id, title="Final draft", bogus=True)
        assert updated.title == "Final draft"
        assert updated.updated_at > task.created_at
        assert not hasattr(updated, "bogus")

    def test_update_unknown_task_is_noop(self, tasks, queue):
        assert tasks.update_task("missing", title="x") is None
        assert len(queue) == 0

    def test_delete_task(self, tasks, queue):
        task = tasks.add_task("Throwaway")
        assert tasks.delete_task(task.id)
        assert tasks.get(task.id) is None
        assert queue.pending()[-1].type == MutationType.DELETE_TASK
        assert tasks.delete_task(task.id) is False

    def test_open_tasks_excludes_completed(self, tasks):
        a = tasks.add_task("A")
        tasks.add_task("B")
        tasks.complete_task(a.id)
        assert [t.title for t in tasks.open_tasks()] == ["B"]
