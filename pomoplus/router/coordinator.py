"""
Session Coordinator — one-directional composition of the session core.

    TimerEngine ──(pomodoro_completed)──▶ coordinator
        ├─ TaskScheduler.increment_consecutive_pomodoros
        ├─ ProgressionEngine: XP, counters, streak, achievements, badges
        └─ EnergyModel.calculate_energy_level
    coordinator.next_action() ─▶ TaskScheduler.get_next_task(tasks, energy)
    coordinator.advance()     ─▶ TimerEngine.start_pomodoro / start_break

The timer and the scheduler never call each other; this layer owns the wiring
and the snapshot/restore of the three persisted storage keys.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional

from ..inference import statistics
from ..inference.complexity import ComplexityHistory, ComplexityScorer
from ..inference.energy import EnergyLevel, EnergyModel
from ..models import PomodoroSession, Task
from ..progression.engine import ProgressionEngine, UserStats
from ..settings import SchedulerSettings, TimerSettings, from_dict
from ..store.state import AUTO_RESCHEDULE_KEY, GAMIFICATION_KEY, POMODORO_KEY, StateStore
from ..store.sync_queue import MemorySyncQueue, Persister
from ..store.tasks import TaskStore
from ..timer.engine import BREAK_COMPLETED, POMODORO_COMPLETED, TimerEngine, TimerPhase
from ..timer.interruptions import InterruptionLedger
from .scheduler import TaskScheduler

logger = logging.getLogger(__name__)


@dataclass
class NextAction:
    kind: str                    # break | task | idle
    task: Optional[Task] = None
    is_long_break: bool = False


class SessionCoordinator:
    """
    Builds and wires the core components for one user on one device.

    Usage:
        core = SessionCoordinator()
        task = core.tasks.add_task("Write report", estimated_pomodoros=2)
        core.timer.start_pomodoro(task.id)
        for _ in range(25 * 60):
            core.timer.tick()
        core.next_action()
    """

    def __init__(
        self,
        persister: Optional[Persister] = None,
        clock: Callable[[], datetime] = datetime.now,
        timer_settings: Optional[TimerSettings] = None,
        scheduler_settings: Optional[SchedulerSettings] = None,
        max_retries: int = 3,
    ):
        self._clock = clock
        self.persister = persister if persister is not None else MemorySyncQueue()

        self.tasks = TaskStore(self.persister, clock=clock, max_retries=max_retries)
        self.timer = TimerEngine(self.tasks, settings=timer_settings, persister=self.persister, clock=clock)
        self.ledger = InterruptionLedger(self.timer, persister=self.persister, clock=clock)
        self.scheduler = TaskScheduler(scheduler_settings)
        self.energy = EnergyModel(clock=clock)
        self.progression = ProgressionEngine(persister=self.persister, clock=clock)
        self.scorer = ComplexityScorer()
        self.complexity_history = ComplexityHistory(
            minutes_per_pomodoro=self.timer.settings.pomodoro_duration,
            clock=clock,
        )

        self.timer.register_listener(self._on_timer_event)

    # ------------------------------------------------------------------
    # Timer events
    # ------------------------------------------------------------------

    def _on_timer_event(self, event: str, payload: Any) -> None:
        if event == POMODORO_COMPLETED:
            self._on_pomodoro_completed(payload)
        elif event == BREAK_COMPLETED:
            self.scheduler.reset_consecutive_pomodoros()
            self.recalculate_energy()

    def _on_pomodoro_completed(self, session: PomodoroSession) -> None:
        self.scheduler.increment_consecutive_pomodoros()
        self.progression.award_pomodoro_xp()
        self._refresh_progression()
        self.recalculate_energy()
        logger.info(
            "Pomodoro %s completed (task=%s, streak of %d)",
            session.id, session.task_id, self.scheduler.consecutive_pomodoros,
        )

    def _refresh_progression(self) -> None:
        sessions = self.timer.sessions
        p = self.progression
        p.sync_counters(sessions, self.tasks.all_tasks())
        p.refresh_daily_streak(sessions, self.today())
        p.check_achievements()
        p.check_badges(
            focus_score=self.focus_score(),
            interruptions=statistics.recent_interruptions(sessions),
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def complete_task(self, task_id: str) -> Optional[Task]:
        task = self.tasks.get(task_id)
        if task is None or task.is_completed:
            return task
        updated = self.tasks.complete_task(task_id)
        self._record_complexity(updated)
        self.progression.award_task_xp()
        self._refresh_progression()
        return updated

    def update_task(self, task_id: str, **updates: Any) -> Optional[Task]:
        """Patch a task; marking an open task completed goes through complete_task()."""
        completing = updates.pop("is_completed", None)
        if updates:
            task = self.tasks.update_task(task_id, **updates)
        else:
            task = self.tasks.get(task_id)
        if task is None:
            return None
        if completing and not task.is_completed:
            return self.complete_task(task_id)
        if completing is False and task.is_completed:
            task = self.tasks.update_task(task_id, is_completed=False)
        self._refresh_progression()
        return task

    def _record_complexity(self, task: Task) -> None:
        minutes = sum(
            s.duration for s in self.timer.sessions
            if s.task_id == task.id and s.is_completed and not s.is_break
        )
        if minutes:
            self.complexity_history.record(task, minutes, self.scorer)

    def start_break(self, is_long: Optional[bool] = None) -> bool:
        """Start a break; long every `long_break_interval` completed pomodoros."""
        if is_long is None:
            done = self.timer.completed_pomodoros()
            interval = self.timer.settings.long_break_interval
            is_long = done > 0 and interval > 0 and done % interval == 0
        self.scheduler.set_last_break_time(self._clock())
        self.timer.start_break(is_long=is_long)
        return is_long

    def recalculate_energy(self) -> EnergyLevel:
        return self.energy.calculate_energy_level(
            self.scheduler.consecutive_pomodoros,
            self.scheduler.last_break_time,
        )

    def next_task(self) -> Optional[Task]:
        return self.scheduler.get_next_task(self.tasks.all_tasks(), self.energy.current.level)

    def next_action(self) -> NextAction:
        if self.scheduler.should_start_break():
            done = self.timer.completed_pomodoros()
            interval = self.timer.settings.long_break_interval
            return NextAction("break", is_long_break=done > 0 and interval > 0 and done % interval == 0)
        if self.scheduler.should_start_next_task():
            task = self.next_task()
            if task is not None:
                return NextAction("task", task=task)
        return NextAction("idle")

    def advance(self) -> NextAction:
        """Carry out next_action() when the timer is idle; otherwise do nothing."""
        if self.timer.phase != TimerPhase.IDLE:
            return NextAction("idle")
        action = self.next_action()
        if action.kind == "break":
            self.start_break(action.is_long_break)
        elif action.kind == "task" and action.task is not None:
            self.timer.start_pomodoro(action.task.id)
        return action

    def today(self) -> date:
        return self._clock().date()

    def focus_score(self) -> int:
        return statistics.focus_score(self.timer.sessions, self.timer.daily_goal, self.today())

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        timer = self.timer.snapshot()
        stats = self.progression.stats
        auto = self.scheduler.snapshot()
        auto["energy_level"] = self.energy.current.to_dict()
        return {
            POMODORO_KEY: {
                "tasks": [t.to_dict() for t in self.tasks.all_tasks()],
                "settings": timer["settings"],
                "sessions": timer["sessions"],
                "daily_goal": timer["daily_goal"],
                "current_streak": stats.current_streak,
                "longest_streak": stats.longest_streak,
            },
            GAMIFICATION_KEY: self.progression.snapshot(),
            AUTO_RESCHEDULE_KEY: auto,
        }

    def save(self, store: StateStore) -> None:
        for key, payload in self.snapshot().items():
            store.save(key, payload)

    def restore(self, store: StateStore) -> None:
        """Load whatever snapshots parse; anything malformed stays at defaults."""
        self._restore_pomodoro(store.load(POMODORO_KEY))
        self._restore_gamification(store.load(GAMIFICATION_KEY))
        self._restore_auto_reschedule(store.load(AUTO_RESCHEDULE_KEY))

    def _restore_pomodoro(self, data: Optional[Dict[str, Any]]) -> None:
        if not data:
            return
        try:
            tasks = [Task.from_dict(t) for t in data.get("tasks", [])]
            sessions = [PomodoroSession.from_dict(s) for s in data.get("sessions", [])]
            settings = from_dict(TimerSettings, data.get("settings"))
            daily_goal = int(data.get("daily_goal", self.timer.daily_goal))
        except (KeyError, TypeError, ValueError):
            logger.warning("Malformed %s snapshot, starting from defaults", POMODORO_KEY)
            return
        self.tasks.load(tasks)
        self.timer.settings = settings
        self.complexity_history.minutes_per_pomodoro = settings.pomodoro_duration
        self.timer.restore(sessions, daily_goal)

    def _restore_gamification(self, data: Optional[Dict[str, Any]]) -> None:
        if not data or "user_stats" not in data:
            return
        try:
            self.progression.stats = UserStats.from_dict(data["user_stats"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Malformed %s snapshot, starting from defaults", GAMIFICATION_KEY)

    def _restore_auto_reschedule(self, data: Optional[Dict[str, Any]]) -> None:
        if not data:
            return
        try:
            settings = from_dict(SchedulerSettings, data.get("settings"))
            consecutive = int(data.get("consecutive_pomodoros", 0))
            last_break = data.get("last_break_time")
            last_break_time = datetime.fromisoformat(last_break) if last_break else None
            energy = EnergyLevel.from_dict(data["energy_level"]) if data.get("energy_level") else None
        except (KeyError, TypeError, ValueError):
            logger.warning("Malformed %s snapshot, starting from defaults", AUTO_RESCHEDULE_KEY)
            return
        self.scheduler.settings = settings
        self.scheduler.consecutive_pomodoros = consecutive
        self.scheduler.last_break_time = last_break_time
        if energy is not None:
            self.energy.current = energy
