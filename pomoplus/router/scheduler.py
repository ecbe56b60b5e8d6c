"""
Auto-Reschedule Scheduler — picks the next task and decides when a break is due.

Selection pipeline (each stage independently toggled by settings):

  1. drop completed tasks
  2. priority_based → stable sort high > medium > low
  3. energy_based   → low energy keeps tasks of ≤ 2 pomodoros,
                      high energy keeps tasks of ≥ 3, medium keeps all
  4. first remaining task wins

The energy filter runs after the priority sort, so it can discard the task
priority ranked first, and it can empty the list even when open tasks exist.

The consecutive-pomodoro counter is caller-driven: the scheduler does not
subscribe to timer events itself.
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..inference.energy import Energy
from ..models import PRIORITY_RANK, Task
from ..settings import SchedulerSettings, apply_patch


class TaskScheduler:

    def __init__(self, settings: Optional[SchedulerSettings] = None):
        self.settings = settings or SchedulerSettings()
        self.consecutive_pomodoros: int = 0
        self.last_break_time: Optional[datetime] = None

    # ------------------------------------------------------------------
    # Task selection
    # ------------------------------------------------------------------

    def get_next_task(self, candidates: Sequence[Task], energy_level: Energy | str) -> Optional[Task]:
        ranked = self.rank(candidates, energy_level)
        return ranked[0] if ranked else None

    def rank(self, candidates: Sequence[Task], energy_level: Energy | str) -> List[Task]:
        """Full ordered candidate list the selection pipeline produces."""
        s = self.settings
        if not s.enabled or not candidates:
            return []

        tasks = [t for t in candidates if not t.is_completed]

        if s.priority_based:
            tasks.sort(key=lambda t: -PRIORITY_RANK[t.priority])

        if s.energy_based:
            energy = Energy(energy_level)
            if energy == Energy.LOW:
                tasks = [t for t in tasks if t.estimated_pomodoros <= 2]
            elif energy == Energy.HIGH:
                tasks = [t for t in tasks if t.estimated_pomodoros >= 3]

        return tasks

    # ------------------------------------------------------------------
    # Break policy
    # ------------------------------------------------------------------

    def should_start_break(self) -> bool:
        s = self.settings
        return (
            s.enabled
            and s.auto_start_break
            and self.consecutive_pomodoros >= s.max_consecutive_pomodoros
        )

    def should_start_next_task(self) -> bool:
        s = self.settings
        # a due break always pre-empts the next task
        return s.enabled and s.auto_start_next_task and not self.should_start_break()

    # ------------------------------------------------------------------
    # Counters & settings
    # ------------------------------------------------------------------

    def increment_consecutive_pomodoros(self) -> int:
        self.consecutive_pomodoros += 1
        return self.consecutive_pomodoros

    def reset_consecutive_pomodoros(self) -> None:
        self.consecutive_pomodoros = 0

    def set_last_break_time(self, when: datetime) -> None:
        self.last_break_time = when

    def update_settings(self, patch: Dict[str, Any]) -> SchedulerSettings:
        return apply_patch(self.settings, patch)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "settings": asdict(self.settings),
            "consecutive_pomodoros": self.consecutive_pomodoros,
            "last_break_time": self.last_break_time.isoformat() if self.last_break_time else None,
        }
