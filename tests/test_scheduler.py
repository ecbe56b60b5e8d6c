"""Tests for the auto-reschedule task scheduler (pomoplus/router/scheduler.py)."""

from __future__ import annotations

from datetime import datetime

import pytest

from pomoplus.inference.energy import Energy
from pomoplus.models import Priority, Task
from pomoplus.router.scheduler import TaskScheduler
from pomoplus.settings import SchedulerSettings


def _t(id: str, priority: Priority, estimated: int = 1, done: bool = False) -> Task:
    return Task(id=id, title=id, priority=priority, estimated_pomodoros=estimated, is_completed=done)


@pytest.fixture()
def scheduler():
    return TaskScheduler()


class TestGetNextTask:
    def test_low_energy_picks_short_low_priority_task(self, scheduler):
        tasks = [_t("essay", Priority.HIGH, 4), _t("email", Priority.LOW, 1)]
        assert scheduler.get_next_task(tasks, Energy.LOW).id == "email"

    def test_priority_sort_is_stable(self, scheduler):
        tasks = [_t("m1", Priority.MEDIUM), _t("h1", Priority.HIGH), _t("h2", Priority.HIGH)]
        ranked = scheduler.rank(tasks, Energy.MEDIUM)
        assert [t.id for t in ranked] == ["h1", "h2", "m1"]

    def test_high_energy_keeps_long_tasks(self, scheduler):
        tasks = [_t("short", Priority.HIGH, 1), _t("long", Priority.LOW, 3)]
        assert scheduler.get_next_task(tasks, "high").id == "long"

    def test_energy_filter_can_empty_the_list(self, scheduler):
        tasks = [_t("short", Priority.HIGH, 2)]
        assert scheduler.get_next_task(tasks, Energy.HIGH) is None

    def test_completed_tasks_are_skipped(self, scheduler):
        tasks = [_t("done", Priority.HIGH, done=True), _t("open", Priority.LOW)]
        assert scheduler.get_next_task(tasks, Energy.MEDIUM).id == "open"

    def test_disabled_or_empty_returns_none(self):
        off = TaskScheduler(SchedulerSettings(enabled=False))
        assert off.get_next_task([_t("a", Priority.HIGH)], Energy.MEDIUM) is None
        assert TaskScheduler().get_next_task([], Energy.MEDIUM) is None

    def test_without_priority_keeps_input_order(self):
        s = TaskScheduler(SchedulerSettings(priority_based=False, energy_based=False))
        tasks = [_t("low", Priority.LOW, 9), _t("high", Priority.HIGH)]
        assert s.get_next_task(tasks, Energy.LOW).id == "low"


class TestBreakDecisions:
    def test_break_due_after_max_consecutive(self):
        s = TaskScheduler(SchedulerSettings(auto_start_break=True, max_consecutive_pomodoros=2))
        s.increment_consecutive_pomodoros()
        assert not s.should_start_break()
        assert s.should_start_next_task()
        assert s.increment_consecutive_pomodoros() == 2
        assert s.should_start_break()
        assert not s.should_start_next_task()

    def test_auto_start_break_off_never_breaks(self, scheduler):
        for _ in range(10):
            scheduler.increment_consecutive_pomodoros()
        assert not scheduler.should_start_break()

    def test_reset_and_last_break(self, scheduler):
        scheduler.increment_consecutive_pomodoros()
        scheduler.reset_consecutive_pomodoros()
        when = datetime(2024, 3, 4, 10, 0)
        scheduler.set_last_break_time(when)
        assert scheduler.consecutive_pomodoros == 0
        assert scheduler.snapshot()["last_break_time"] == when.isoformat()

    def test_update_settings_ignores_unknown(self, scheduler):
        updated = scheduler.update_settings({"energy_based": "false", "nonsense": 3})
        assert updated.energy_based is False
