"""
Data export — sessions, tasks, user stats and settings as JSON or CSV text.

The "excel" format is a CSV variant with a summary header and a per-day
table, meant to be opened directly in a spreadsheet.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime
from typing import Any, Dict, List, Sequence

from .models import PomodoroSession, Task
from .progression.engine import UserStats

EXPORT_VERSION = "1.0.0"

_EXTENSIONS = {"json": "json", "csv": "csv", "excel": "csv"}


def export_filename(fmt: str, today: date | None = None) -> str:
    if fmt not in _EXTENSIONS:
        raise ValueError(f"Unsupported export format: {fmt!r}")
    today = today or date.today()
    return f"pomodoro-export-{today.isoformat()}.{_EXTENSIONS[fmt]}"


def export_data(
    sessions: Sequence[PomodoroSession],
    tasks: Sequence[Task],
    user_stats: UserStats,
    settings: Dict[str, Any],
    fmt: str = "json",
) -> str:
    if fmt == "json":
        return to_json(sessions, tasks, user_stats, settings)
    if fmt == "csv":
        return to_csv(sessions, tasks, user_stats)
    if fmt == "excel":
        return to_excel(sessions, tasks, user_stats)
    raise ValueError(f"Unsupported export format: {fmt!r}")


def to_json(
    sessions: Sequence[PomodoroSession],
    tasks: Sequence[Task],
    user_stats: UserStats,
    settings: Dict[str, Any],
) -> str:
    payload = {
        "sessions": [s.to_dict() for s in sessions],
        "tasks": [t.to_dict() for t in tasks],
        "user_stats": user_stats.to_dict(),
        "settings": settings,
        "export_date": datetime.now().isoformat(),
        "version": EXPORT_VERSION,
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _display(dt: datetime | None) -> str:
    return dt.strftime("%Y-%m-%d %H:%M") if dt else ""


def _yes(flag: bool) -> str:
    return "Yes" if flag else "No"


def to_csv(
    sessions: Sequence[PomodoroSession],
    tasks: Sequence[Task],
    user_stats: UserStats,
) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")

    w.writerow(["Pomodoro+ Export Data"])
    w.writerow([f"Export Date: {_display(datetime.now())}"])
    w.writerow([])

    w.writerow(["=== POMODORO SESSIONS ==="])
    w.writerow(["ID", "Task ID", "Start Time", "End Time", "Duration (min)",
                "Completed", "Break", "Interruptions"])
    for s in sessions:
        w.writerow([s.id, s.task_id or "", _display(s.start_time), _display(s.end_time),
                    s.duration, _yes(s.is_completed), _yes(s.is_break), s.interruptions])
    w.writerow([])

    w.writerow(["=== TASKS ==="])
    w.writerow(["ID", "Title", "Description", "Estimated Pomodoros", "Completed Pomodoros",
                "Priority", "Tags", "Completed", "Created At", "Updated At"])
    for t in tasks:
        w.writerow([t.id, t.title, t.description or "", t.estimated_pomodoros,
                    t.completed_pomodoros, t.priority.value, "; ".join(t.tags),
                    _yes(t.is_completed), _display(t.created_at), _display(t.updated_at)])
    w.writerow([])

    w.writerow(["=== USER STATISTICS ==="])
    w.writerow(["Metric", "Value"])
    for label, value in _stat_rows(user_stats):
        w.writerow([label, value])
    w.writerow([])

    w.writerow(["=== BADGES ==="])
    w.writerow(["ID", "Name", "Description", "Category", "Rarity", "Unlocked At"])
    for b in user_stats.badges:
        w.writerow([b.id, b.name, b.description, b.category, b.rarity.value,
                    _display(b.unlocked_at)])

    return buf.getvalue().rstrip("\n")


def to_excel(
    sessions: Sequence[PomodoroSession],
    tasks: Sequence[Task],
    user_stats: UserStats,
) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")

    completed = [s for s in sessions if s.is_completed]
    focus_minutes = sum(s.duration for s in completed)
    avg_length = focus_minutes / len(completed) if completed else 0.0
    completion_rate = len(completed) / len(sessions) * 100 if sessions else 0.0

    w.writerow(["Pomodoro+ Export Report"])
    w.writerow([f"Generated: {_display(datetime.now())}"])
    w.writerow([f"Total Sessions: {len(sessions)}"])
    w.writerow([f"Total Tasks: {len(tasks)}"])
    w.writerow([f"User Level: {user_stats.level}"])
    w.writerow([f"Total XP: {user_stats.total_xp}"])
    w.writerow([])

    w.writerow(["=== SUMMARY STATISTICS ==="])
    w.writerow([f"Total Focus Time: {focus_minutes} minutes ({focus_minutes / 60:.1f} hours)"])
    w.writerow([f"Average Session Length: {avg_length:.1f} minutes"])
    w.writerow([f"Completion Rate: {completion_rate:.1f}%"])
    w.writerow([f"Current Streak: {user_stats.current_streak} days"])
    w.writerow([f"Longest Streak: {user_stats.longest_streak} days"])
    w.writerow([])

    w.writerow(["=== DAILY STATISTICS ==="])
    w.writerow(["Date", "Sessions", "Pomodoros", "Focus Time (min)", "Tasks Completed"])
    for row in _daily_rows(sessions, tasks):
        w.writerow(row)

    return buf.getvalue().rstrip("\n")


def _stat_rows(stats: UserStats) -> List[tuple]:
    return [
        ("Level", stats.level),
        ("Total XP", stats.total_xp),
        ("Current Streak", stats.current_streak),
        ("Longest Streak", stats.longest_streak),
        ("Total Pomodoros", stats.total_pomodoros),
        ("Total Tasks", stats.total_tasks),
        ("Total Focus Time (min)", stats.total_focus_time),
        ("Badges Unlocked", len(stats.badges)),
    ]


def _daily_rows(sessions: Sequence[PomodoroSession], tasks: Sequence[Task]) -> List[list]:
    days: Dict[date, Dict[str, int]] = {}

    def bucket(day: date) -> Dict[str, int]:
        return days.setdefault(day, {"sessions": 0, "pomodoros": 0, "focus": 0, "tasks": 0})

    for s in sessions:
        b = bucket(s.start_time.date())
        b["sessions"] += 1
        if s.is_completed and not s.is_break:
            b["pomodoros"] += 1
            b["focus"] += s.duration
    for t in tasks:
        if t.is_completed:
            bucket(t.updated_at.date())["tasks"] += 1

    return [
        [day.isoformat(), b["sessions"], b["pomodoros"], b["focus"], b["tasks"]]
        for day, b in sorted(days.items())
    ]
