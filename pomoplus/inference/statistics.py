"""
Session statistics — daily/weekly rollups, per-task totals and focus score.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Sequence, Set

from ..models import PomodoroSession, Task


@dataclass
class DayStats:
    date: str                   # "YYYY-MM-DD"
    pomodoros: int
    hours: float
    tasks: int


@dataclass
class WeeklyStats:
    total_pomodoros: int
    total_hours: float
    average_per_day: float
    current_streak: int
    longest_streak: int
    completed_tasks: int


@dataclass
class TaskStats:
    task_id: str
    task_name: str
    pomodoros: int
    hours: float
    percentage: float


def _completed_work(sessions: Sequence[PomodoroSession]) -> List[PomodoroSession]:
    return [s for s in sessions if s.is_completed and not s.is_break]


def active_days(sessions: Sequence[PomodoroSession]) -> Set[date]:
    return {s.start_time.date() for s in _completed_work(sessions)}


def streaks(sessions: Sequence[PomodoroSession], today: date, window_days: int = 30) -> tuple[int, int]:
    """(current, longest) runs of active days within the trailing window."""
    days = active_days(sessions)
    current = longest = run = 0
    for i in range(window_days):
        day = today - timedelta(days=i)
        if day in days:
            run += 1
            # still inside the run that includes today
            if i == run - 1:
                current = run
        else:
            longest = max(longest, run)
            run = 0
    longest = max(longest, run)
    return current, longest


def daily_stats(sessions: Sequence[PomodoroSession], tasks: Sequence[Task], today: date) -> List[DayStats]:
    """One row per day for the last 7 days, oldest first."""
    done = _completed_work(sessions)
    rows = []
    for offset in range(6, -1, -1):
        day = today - timedelta(days=offset)
        day_sessions = [s for s in done if s.start_time.date() == day]
        task_ids = {s.task_id for s in day_sessions if s.task_id}
        rows.append(DayStats(
            date=day.isoformat(),
            pomodoros=len(day_sessions),
            hours=sum(s.duration for s in day_sessions) / 60,
            tasks=sum(1 for t in tasks if t.id in task_ids),
        ))
    return rows


def weekly_stats(sessions: Sequence[PomodoroSession], tasks: Sequence[Task], today: date) -> WeeklyStats:
    week = {today - timedelta(days=i) for i in range(7)}
    week_sessions = [s for s in _completed_work(sessions) if s.start_time.date() in week]
    current, longest = streaks(sessions, today)
    return WeeklyStats(
        total_pomodoros=len(week_sessions),
        total_hours=sum(s.duration for s in week_sessions) / 60,
        average_per_day=len(week_sessions) / 7,
        current_streak=current,
        longest_streak=longest,
        completed_tasks=sum(1 for t in tasks if t.is_completed),
    )


def task_stats(sessions: Sequence[PomodoroSession], tasks: Sequence[Task]) -> List[TaskStats]:
    per_task: Dict[str, List[PomodoroSession]] = {}
    for s in _completed_work(sessions):
        if s.task_id:
            per_task.setdefault(s.task_id, []).append(s)

    total = sum(len(v) for v in per_task.values())
    titles = {t.id: t.title for t in tasks}
    rows = [
        TaskStats(
            task_id=task_id,
            task_name=titles.get(task_id, "Unknown task"),
            pomodoros=len(items),
            hours=sum(s.duration for s in items) / 60,
            percentage=len(items) / total * 100 if total else 0.0,
        )
        for task_id, items in per_task.items()
    ]
    rows.sort(key=lambda r: -r.pomodoros)
    return rows


def focus_score(sessions: Sequence[PomodoroSession], daily_goal: int, today: date) -> int:
    """0-100 blend of weekly goal completion (70%) and streak consistency (30%)."""
    if daily_goal <= 0:
        return 0
    stats = weekly_stats(sessions, [], today)
    completion_rate = stats.total_pomodoros / (daily_goal * 7)
    consistency = stats.current_streak / 7
    return min(100, int((completion_rate * 0.7 + consistency * 0.3) * 100 + 0.5))


def recent_interruptions(sessions: Sequence[PomodoroSession], window: int = 5) -> int | None:
    """Interruptions across the last *window* completed pomodoros, None if fewer exist."""
    done = _completed_work(sessions)
    if len(done) < window:
        return None
    return sum(s.interruptions for s in done[-window:])
