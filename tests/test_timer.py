"""Tests for the Pomodoro timer state machine (pomoplus/timer/engine.py)."""

from __future__ import annotations

import pytest
from conftest import run_out

from pomoplus.store.sync_queue import MutationType
from pomoplus.timer.engine import BREAK_COMPLETED, POMODORO_COMPLETED, TimerPhase, format_time


class TestStartAndPause:
    def test_initial_state_is_idle(self, timer):
        assert timer.phase == TimerPhase.IDLE
        assert not timer.is_running
        assert timer.time_left == 25 * 60

    def test_start_creates_running_session(self, timer, tasks):
        task = tasks.add_task("Write", estimated_pomodoros=2)
        session = timer.start_pomodoro(task.id)
        assert timer.phase == TimerPhase.WORK
        assert session.task_id == task.id
        assert session.duration == 25
        assert not session.is_break
        assert timer.time_left == 1500

    def test_unknown_task_starts_without_task(self, timer):
        session = timer.start_pomodoro("missing")
        assert session.task_id is None
        assert timer.current_task_id is None
        assert timer.is_running

    def test_tick_while_paused_keeps_time_left(self, timer):
        timer.start_pomodoro()
        timer.tick()
        timer.pause_pomodoro()
        before = timer.time_left
        timer.tick()
        assert timer.time_left == before
        assert timer.phase == TimerPhase.PAUSED
        assert timer.current_session is not None

    def test_resume_continues_countdown(self, timer):
        timer.start_pomodoro()
        timer.pause_pomodoro()
        timer.resume()
        timer.tick()
        assert timer.time_left == 1499

    def test_pause_while_idle_is_ignored(self, timer):
        timer.pause_pomodoro()
        timer.resume()
        assert timer.phase == TimerPhase.IDLE
        assert not timer.is_running

    def test_stop_discards_session(self, timer):
        timer.start_pomodoro()
        timer.stop_pomodoro()
        assert timer.current_session is None
        assert timer.sessions == []
        assert timer.phase == TimerPhase.IDLE
        assert timer.time_left == 25 * 60


class TestCompletion:
    def test_full_countdown_completes_pomodoro(self, timer, tasks, queue):
        task = tasks.add_task("Read", estimated_pomodoros=1)
        timer.start_pomodoro(task.id)
        run_out(timer)

        assert timer.phase == TimerPhase.IDLE
        assert len(timer.sessions) == 1
        done = timer.sessions[0]
        assert done.is_completed
        assert done.end_time is not None
        assert tasks.get(task.id).completed_pomodoros == 1
        types = [e.type for e in queue.pending()]
        assert MutationType.CREATE_SESSION in types
        assert types.count(MutationType.UPDATE_TASK) == 1

    def test_over_completion_is_allowed(self, timer, tasks):
        task = tasks.add_task("Tiny", estimated_pomodoros=1)
        for _ in range(2):
            timer.start_pomodoro(task.id)
            timer.complete_pomodoro()
        assert tasks.get(task.id).completed_pomodoros == 2

    def test_complete_without_session_is_noop(self, timer, queue):
        assert timer.complete_pomodoro() is None
        assert len(queue) == 0

    def test_listener_receives_completed_session(self, timer):
        events = []
        timer.register_listener(lambda event, payload: events.append((event, payload)))
        timer.start_pomodoro()
        session = timer.complete_pomodoro()
        assert events == [(POMODORO_COMPLETED, session)]

    def test_failing_listener_does_not_break_timer(self, timer):
        def boom(event, payload):
            raise RuntimeError("bad subscriber")

        timer.register_listener(boom)
        timer.start_pomodoro()
        assert timer.complete_pomodoro() is not None
        assert timer.phase == TimerPhase.IDLE


class TestBreaks:
    def test_short_break_counts_down_and_completes(self, timer):
        events = []
        timer.register_listener(lambda event, payload: events.append(event))
        timer.start_break()
        assert timer.phase == TimerPhase.BREAK
        assert timer.time_left == 5 * 60
        run_out(timer)
        assert timer.phase == TimerPhase.IDLE
        assert events == [BREAK_COMPLETED]

    def test_long_break_uses_long_duration(self, timer):
        timer.start_break(is_long=True)
        assert timer.time_left == 15 * 60

    def test_break_creates_no_session_record(self, timer):
        timer.start_break()
        run_out(timer)
        assert timer.sessions == []

    def test_stop_during_break_returns_to_idle(self, timer):
        events = []
        timer.register_listener(lambda event, payload: events.append(event))
        timer.start_break()
        timer.tick()
        timer.stop_pomodoro()
        assert timer.phase == TimerPhase.IDLE
        assert timer.is_break is False
        assert timer.time_left == 25 * 60
        timer.resume()
        assert timer.phase == TimerPhase.IDLE
        assert events == []

    def test_complete_break_outside_break_does_not_notify(self, timer):
        events = []
        timer.register_listener(lambda event, payload: events.append(event))
        timer.complete_break()
        assert events == []


class TestResetAndSettings:
    def test_reset_restores_pomodoro_duration(self, timer):
        timer.start_pomodoro()
        for _ in range(10):
            timer.tick()
        timer.reset_timer()
        assert timer.time_left == 1500
        assert timer.progress() == 0.0

    def test_reset_during_break_restores_break_length(self, timer):
        timer.start_break(is_long=True)
        timer.tick()
        timer.reset_timer()
        assert timer.time_left == 900

    def test_update_settings_coerces_and_ignores_unknown(self, timer, queue):
        settings = timer.update_settings({"pomodoro_duration": "50", "bogus": 1})
        assert settings.pomodoro_duration == 50
        assert not hasattr(settings, "bogus")
        assert timer.time_left == 50 * 60
        assert queue.pending()[-1].type == MutationType.UPDATE_SETTINGS

    def test_set_current_task_attaches_to_live_session(self, timer, tasks):
        task = tasks.add_task("Later")
        timer.start_pomodoro()
        timer.set_current_task(task.id)
        assert timer.current_session.task_id == task.id
        assert timer.current_task is task

    def test_progress_reports_elapsed_percentage(self, timer):
        timer.start_pomodoro()
        for _ in range(150):
            timer.tick()
        assert timer.progress() == pytest.approx(10.0)


class TestFormatTime:
    def test_formats_minutes_and_seconds(self):
        assert format_time(1500) == "25:00"
        assert format_time(61) == "01:01"
        assert format_time(0) == "00:00"

    def test_negative_clamps_to_zero(self):
        assert format_time(-5) == "00:00"
