"""Tests for the session coordinator wiring (pomoplus/router/coordinator.py)."""

from __future__ import annotations

import pytest
from conftest import run_out

from pomoplus.inference.energy import Energy
from pomoplus.models import Priority
from pomoplus.router.coordinator import SessionCoordinator
from pomoplus.settings import SchedulerSettings
from pomoplus.store.state import AUTO_RESCHEDULE_KEY, GAMIFICATION_KEY, POMODORO_KEY, StateStore
from pomoplus.timer.engine import TimerPhase


def _finish_pomodoro(core: SessionCoordinator, task_id=None) -> None:
    core.timer.start_pomodoro(task_id)
    run_out(core.timer)


class TestPomodoroCompletion:
    def test_completion_feeds_scheduler_progression_and_energy(self, core):
        task = core.tasks.add_task("Essay", estimated_pomodoros=2)
        _finish_pomodoro(core, task.id)

        assert core.scheduler.consecutive_pomodoros == 1
        stats = core.progression.stats
        assert stats.total_pomodoros == 1
        assert stats.total_focus_time == 25
        assert stats.current_streak == 1
        # 25 for the pomodoro, 50 for the "first_pomodoro" badge
        assert stats.total_xp == 75
        assert core.energy.current.factors.recent_activity == pytest.approx(0.8)
        assert core.energy.current.level == Energy.HIGH
        assert core.tasks.get(task.id).completed_pomodoros == 1

    def test_reaching_estimate_does_not_complete_task(self, core):
        task = core.tasks.add_task("Quick", estimated_pomodoros=1)
        _finish_pomodoro(core, task.id)
        assert not core.tasks.get(task.id).is_completed

    def test_break_completion_resets_run(self, core):
        _finish_pomodoro(core)
        core.start_break()
        run_out(core.timer)
        assert core.scheduler.consecutive_pomodoros == 0
        assert core.timer.phase == TimerPhase.IDLE


class TestCommands:
    def test_complete_task_grants_xp_once(self, core):
        task = core.tasks.add_task("Ship it")
        core.complete_task(task.id)
        assert core.progression.stats.total_xp == 50
        assert core.progression.stats.total_tasks == 1
        core.complete_task(task.id)
        assert core.progression.stats.total_xp == 50

    def test_complete_task_records_complexity_history(self, core, clock):
        task = core.tasks.add_task("Research", estimated_pomodoros=1, tags=["research"])
        _finish_pomodoro(core, task.id)
        core.complete_task(task.id)
        entries = core.complexity_history.entries
        assert len(entries) == 1
        assert entries[0].actual_duration == 25
        assert entries[0].accuracy == pytest.approx(1.0)
        assert entries[0].timestamp == clock()

    def test_update_task_completion_grants_task_xp(self, core):
        task = core.tasks.add_task("Patched")
        updated = core.update_task(task.id, title="Patched again", is_completed=True)
        assert updated.is_completed
        assert updated.title == "Patched again"
        assert core.progression.stats.total_xp == 50
        assert core.progression.stats.total_tasks == 1
        core.complete_task(task.id)
        assert core.progression.stats.total_xp == 50

    def test_update_unknown_task(self, core):
        assert core.update_task("missing", is_completed=True) is None
        assert core.progression.stats.total_xp == 0

    def test_complete_unknown_task(self, core):
        assert core.complete_task("missing") is None

    def test_long_break_every_interval(self, core, clock):
        _finish_pomodoro(core)
        assert core.start_break() is False
        assert core.timer.time_left == 5 * 60
        assert core.scheduler.last_break_time == clock()
        run_out(core.timer)
        for _ in range(3):
            _finish_pomodoro(core)
        assert core.start_break() is True
        assert core.timer.time_left == 15 * 60

    def test_next_action_prefers_due_break(self, queue, clock):
        core = SessionCoordinator(
            persister=queue,
            clock=clock,
            scheduler_settings=SchedulerSettings(auto_start_break=True, max_consecutive_pomodoros=2),
        )
        core.tasks.add_task("Long", estimated_pomodoros=5)
        _finish_pomodoro(core)
        assert core.next_action().kind == "task"
        _finish_pomodoro(core)
        action = core.next_action()
        assert action.kind == "break"
        assert action.is_long_break is False

    def test_advance_starts_highest_priority_task(self, core):
        core.tasks.add_task("Low", priority=Priority.LOW)
        high = core.tasks.add_task("High", priority=Priority.HIGH)
        action = core.advance()
        assert action.kind == "task"
        assert core.timer.phase == TimerPhase.WORK
        assert core.timer.current_task_id == high.id

    def test_advance_while_running_does_nothing(self, core):
        core.tasks.add_task("A")
        core.timer.start_pomodoro()
        session = core.timer.current_session
        assert core.advance().kind == "idle"
        assert core.timer.current_session is session

    def test_advance_after_stopped_break_starts_task(self, core):
        task = core.tasks.add_task("After break", estimated_pomodoros=3)
        _finish_pomodoro(core)
        core.start_break(False)
        core.timer.stop_pomodoro()
        assert core.timer.phase == TimerPhase.IDLE
        action = core.advance()
        assert action.kind == "task"
        assert core.timer.current_task_id == task.id

    def test_next_action_idle_without_tasks(self, core):
        assert core.next_action().kind == "idle"


class TestPersistence:
    def test_snapshot_restore_round_trip(self, core, queue, clock, tmp_path):
        store = StateStore(tmp_path / "state.db")
        task = core.tasks.add_task("Persist me", estimated_pomodoros=3, tags=["design"])
        core.timer.update_settings({"pomodoro_duration": 30})
        _finish_pomodoro(core, task.id)
        core.scheduler.update_settings({"energy_based": False})
        core.save(store)

        assert set(store.keys()) == {POMODORO_KEY, GAMIFICATION_KEY, AUTO_RESCHEDULE_KEY}

        fresh = SessionCoordinator(persister=queue, clock=clock)
        fresh.restore(store)
        assert [t.title for t in fresh.tasks.all_tasks()] == ["Persist me"]
        assert fresh.timer.settings.pomodoro_duration == 30
        assert fresh.timer.time_left == 30 * 60
        assert len(fresh.timer.sessions) == 1
        assert fresh.progression.stats.total_xp == core.progression.stats.total_xp
        assert fresh.scheduler.settings.energy_based is False
        assert fresh.scheduler.consecutive_pomodoros == 1
        assert fresh.energy.current.level == core.energy.current.level

    def test_malformed_snapshot_falls_back_to_defaults(self, core, tmp_path):
        store = StateStore(tmp_path / "state.db")
        store.save(POMODORO_KEY, {"tasks": [{"no_id": True}]})
        store.save(GAMIFICATION_KEY, {"user_stats": {"badges": [{"id": "x"}]}})
        store.save(AUTO_RESCHEDULE_KEY, {"energy_level": {"level": "sleepy"}})
        core.restore(store)
        assert core.tasks.all_tasks() == []
        assert core.progression.stats.total_xp == 0
        assert core.energy.current.level == Energy.MEDIUM

    def test_restore_from_empty_store(self, core, tmp_path):
        core.restore(StateStore(tmp_path / "empty.db"))
        assert core.timer.phase == TimerPhase.IDLE
        assert core.progression.stats.level == 1
