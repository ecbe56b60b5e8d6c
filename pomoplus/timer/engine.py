"""
Pomodoro Timer Engine — work/break state machine driven by an external tick.

The engine holds no wall-clock timer of its own: a 1 Hz caller invokes
tick(), every other transition is an explicit call. All operations are total;
invalid transitions (pausing while idle, completing without a session) are
ignored rather than raised.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..models import PomodoroSession, Task, new_id
from ..settings import TimerSettings, apply_patch
from ..store.sync_queue import MemorySyncQueue, MutationType, Persister, SyncQueueEntry
from ..store.tasks import TaskStore

logger = logging.getLogger(__name__)

POMODORO_COMPLETED = "pomodoro_completed"
BREAK_COMPLETED = "break_completed"


class TimerPhase(str, Enum):
    IDLE = "idle"
    WORK = "work"
    PAUSED = "paused"
    BREAK = "break"


class TimerEngine:

    def __init__(
        self,
        task_store: TaskStore,
        settings: Optional[TimerSettings] = None,
        persister: Optional[Persister] = None,
        clock: Callable[[], datetime] = datetime.now,
        daily_goal: int = 6,
    ):
        self._tasks = task_store
        self._persister = persister if persister is not None else MemorySyncQueue()
        self._clock = clock
        self._listeners: List[Callable[[str, Any], None]] = []

        self.settings = settings or TimerSettings()
        self.daily_goal = daily_goal
        self.current_session: Optional[PomodoroSession] = None
        self.current_task_id: Optional[str] = None
        self.sessions: List[PomodoroSession] = []
        self.is_running: bool = False
        self.is_break: bool = False
        self.time_left: int = self.settings.pomodoro_duration * 60
        self._phase_total: int = self.time_left

    # ------------------------------------------------------------------
    # Work sessions
    # ------------------------------------------------------------------

    def start_pomodoro(self, task_id: Optional[str] = None) -> PomodoroSession:
        task = self._tasks.get(task_id)
        # unknown ids silently fall back to "no task"
        resolved_id = task.id if task else None
        session = PomodoroSession(
            id=new_id(),
            task_id=resolved_id,
            start_time=self._clock(),
            duration=self.settings.pomodoro_duration,
        )
        self.current_session = session
        self.current_task_id = resolved_id
        self.is_break = False
        self.is_running = True
        self.time_left = self.settings.pomodoro_duration * 60
        self._phase_total = self.time_left
        return session

    def pause_pomodoro(self) -> None:
        if self.is_running:
            self.is_running = False

    def resume(self) -> None:
        if self.is_running or self.time_left <= 0:
            return
        if self.current_session is not None or self.is_break:
            self.is_running = True

    def stop_pomodoro(self) -> None:
        """Abandon the current session or break and return to idle."""
        self.current_session = None
        self.current_task_id = None
        self.is_running = False
        self.is_break = False
        self.time_left = self.settings.pomodoro_duration * 60
        self._phase_total = self.time_left

    def complete_pomodoro(self) -> Optional[PomodoroSession]:
        if self.current_session is None:
            return None
        session = self.current_session
        session.end_time = self._clock()
        session.is_completed = True
        self.sessions.append(session)
        self._enqueue(MutationType.CREATE_SESSION, session.to_dict())

        if self.current_task_id is not None:
            self._tasks.increment_completed(self.current_task_id)

        self.current_session = None
        self.is_running = False
        self._notify(POMODORO_COMPLETED, session)
        return session

    # ------------------------------------------------------------------
    # Breaks
    # ------------------------------------------------------------------

    def start_break(self, is_long: bool = False) -> None:
        minutes = (
            self.settings.long_break_duration if is_long
            else self.settings.short_break_duration
        )
        self.is_break = True
        self.time_left = minutes * 60
        self._phase_total = self.time_left
        self.is_running = True

    def complete_break(self) -> None:
        was_break = self.is_break
        self.is_break = False
        self.is_running = False
        if was_break:
            self._notify(BREAK_COMPLETED, None)

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------

    def tick(self) -> None:
        if not self.is_running or self.time_left <= 0:
            return
        self.time_left -= 1
        if self.time_left <= 0:
            self.time_left = 0
            if self.is_break:
                self.complete_break()
            else:
                self.complete_pomodoro()

    def reset_timer(self) -> None:
        if self.is_break:
            self.time_left = self._phase_total
        else:
            self.time_left = self.settings.pomodoro_duration * 60
            self._phase_total = self.time_left

    # ------------------------------------------------------------------
    # Settings & task selection
    # ------------------------------------------------------------------

    def set_current_task(self, task_id: Optional[str]) -> Optional[Task]:
        task = self._tasks.get(task_id)
        self.current_task_id = task.id if task else None
        if self.current_session is not None:
            self.current_session.task_id = self.current_task_id
        return task

    def update_settings(self, patch: Dict[str, Any]) -> TimerSettings:
        apply_patch(self.settings, patch)
        self._enqueue(MutationType.UPDATE_SETTINGS, asdict(self.settings))
        if self.current_session is None and not self.is_break:
            self.time_left = self.settings.pomodoro_duration * 60
            self._phase_total = self.time_left
        return self.settings

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def phase(self) -> TimerPhase:
        if self.is_break:
            return TimerPhase.BREAK if self.is_running else TimerPhase.PAUSED
        if self.current_session is not None:
            return TimerPhase.WORK if self.is_running else TimerPhase.PAUSED
        return TimerPhase.IDLE

    @property
    def current_task(self) -> Optional[Task]:
        return self._tasks.get(self.current_task_id)

    def progress(self) -> float:
        """Percentage of the current phase already elapsed."""
        if self._phase_total <= 0:
            return 0.0
        return (self._phase_total - self.time_left) / self._phase_total * 100

    def completed_pomodoros(self) -> int:
        return sum(1 for s in self.sessions if s.is_completed and not s.is_break)

    def find_session(self, session_id: str) -> Optional[PomodoroSession]:
        for s in self.sessions:
            if s.id == session_id:
                return s
        return None

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {
            "settings": asdict(self.settings),
            "sessions": [s.to_dict() for s in self.sessions],
            "daily_goal": self.daily_goal,
        }

    def restore(self, sessions: List[PomodoroSession], daily_goal: Optional[int] = None) -> None:
        self.sessions = list(sessions)
        if daily_goal is not None:
            self.daily_goal = daily_goal
        self.time_left = self.settings.pomodoro_duration * 60
        self._phase_total = self.time_left

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def register_listener(self, fn: Callable[[str, Any], None]) -> None:
        """Register a callback(event, payload) fired on pomodoro/break completion."""
        self._listeners.append(fn)

    def _notify(self, event: str, payload: Any) -> None:
        for listener in self._listeners:
            try:
                listener(event, payload)
            except Exception:
                logger.exception("Timer listener failed on %s", event)

    def _enqueue(self, kind: MutationType, payload: Dict[str, Any]) -> None:
        self._persister.enqueue_mutation(SyncQueueEntry(type=kind, payload=payload))


def format_time(seconds: int) -> str:
    """Render seconds as MM:SS."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"
