"""
Progression Engine — XP, levels, streaks, badges and achievements.

Level curve: level = floor(sqrt(total_xp / 100)) + 1, so level L starts at
(L - 1)^2 * 100 total XP. Within-level progress is always derived from
total_xp; the stored `xp` field is a legacy running counter kept for display.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..inference.statistics import active_days
from ..models import PomodoroSession, Task
from ..store.sync_queue import MemorySyncQueue, MutationType, Persister, SyncQueueEntry
from .catalog import (
    DEFAULT_BADGES,
    RARITY_XP,
    Achievement,
    Badge,
    RequirementType,
    fresh_achievements,
)

logger = logging.getLogger(__name__)

POMODORO_XP = 25
TASK_XP = 50
STREAK_XP_PER_DAY = 10
STREAK_XP_CAP = 100


def level_for_xp(total_xp: int) -> int:
    return math.isqrt(max(0, int(total_xp)) // 100) + 1


def xp_for_level(level: int) -> int:
    return (level - 1) ** 2 * 100


@dataclass
class UserStats:
    level: int = 1
    xp: int = 0                          # legacy running counter, display only
    total_xp: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_pomodoros: int = 0
    total_tasks: int = 0
    total_focus_time: int = 0            # minutes
    badges: List[Badge] = field(default_factory=list)
    achievements: List[Achievement] = field(default_factory=fresh_achievements)
    last_active_date: Optional[str] = None   # "YYYY-MM-DD"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "xp": self.xp,
            "total_xp": self.total_xp,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "total_pomodoros": self.total_pomodoros,
            "total_tasks": self.total_tasks,
            "total_focus_time": self.total_focus_time,
            "badges": [b.to_dict() for b in self.badges],
            "achievements": [a.to_dict() for a in self.achievements],
            "last_active_date": self.last_active_date,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserStats":
        achievements = [Achievement.from_dict(a) for a in data.get("achievements", [])]
        known = {a.id for a in achievements}
        # catalogue entries added since the snapshot was written
        achievements += [a for a in fresh_achievements() if a.id not in known]
        total_xp = int(data.get("total_xp", 0))
        return cls(
            level=level_for_xp(total_xp),
            xp=int(data.get("xp", 0)),
            total_xp=total_xp,
            current_streak=int(data.get("current_streak", 0)),
            longest_streak=int(data.get("longest_streak", 0)),
            total_pomodoros=int(data.get("total_pomodoros", 0)),
            total_tasks=int(data.get("total_tasks", 0)),
            total_focus_time=int(data.get("total_focus_time", 0)),
            badges=[Badge.from_dict(b) for b in data.get("badges", [])],
            achievements=achievements,
            last_active_date=data.get("last_active_date"),
        )


class ProgressionEngine:

    def __init__(
        self,
        stats: Optional[UserStats] = None,
        persister: Optional[Persister] = None,
        clock: Callable[[], datetime] = datetime.now,
        badges: Sequence[Badge] = DEFAULT_BADGES,
    ):
        self.stats = stats or UserStats()
        self._persister = persister if persister is not None else MemorySyncQueue()
        self._clock = clock
        self._catalog = list(badges)
        self._listeners: List[Callable[[int, int], None]] = []

    # ------------------------------------------------------------------
    # XP & levels
    # ------------------------------------------------------------------

    def add_xp(self, amount: int, reason: str = "") -> None:
        s = self.stats
        old_level = s.level
        s.xp += amount
        s.total_xp += amount
        s.level = level_for_xp(s.total_xp)
        logger.debug("+%d XP (%s), total %d", amount, reason or "unspecified", s.total_xp)

        if s.level > old_level:
            logger.info("Level up! %d -> %d", old_level, s.level)
            for listener in self._listeners:
                try:
                    listener(old_level, s.level)
                except Exception:
                    logger.exception("Level-up listener failed")

    def get_level_progress(self) -> Dict[str, float]:
        s = self.stats
        floor_xp = xp_for_level(s.level)
        needed = xp_for_level(s.level + 1) - floor_xp
        current = s.total_xp - floor_xp
        return {
            "current": current,
            "next": needed,
            "percentage": current / needed * 100 if needed else 0.0,
        }

    @property
    def xp_to_next_level(self) -> int:
        return xp_for_level(self.stats.level + 1) - xp_for_level(self.stats.level)

    def award_pomodoro_xp(self) -> None:
        self.add_xp(POMODORO_XP, "Pomodoro completed")

    def award_task_xp(self) -> None:
        self.add_xp(TASK_XP, "Task completed")

    def award_streak_xp(self, streak_days: int) -> None:
        amount = min(streak_days * STREAK_XP_PER_DAY, STREAK_XP_CAP)
        self.add_xp(amount, f"Streak bonus: {streak_days} days")

    def register_listener(self, fn: Callable[[int, int], None]) -> None:
        """Register a callback(old_level, new_level) fired on level-up."""
        self._listeners.append(fn)

    # ------------------------------------------------------------------
    # Streaks
    # ------------------------------------------------------------------

    def update_streak(self, increment: bool) -> None:
        s = self.stats
        if increment:
            s.current_streak += 1
            s.longest_streak = max(s.longest_streak, s.current_streak)
        else:
            s.current_streak = 0
        s.last_active_date = self._clock().date().isoformat()

    def refresh_daily_streak(self, sessions: Sequence[PomodoroSession], today: Optional[date] = None) -> None:
        """Continue, start or reset the day streak from session history."""
        today = today or self._clock().date()
        today_s = today.isoformat()
        yesterday_s = (today - timedelta(days=1)).isoformat()
        last = self.stats.last_active_date

        if today in active_days(sessions):
            if last == today_s and self.stats.current_streak:
                return
            if last != yesterday_s:
                # gap since the last active day: the new streak starts at 1
                self.stats.current_streak = 0
            self.update_streak(True)
        elif last not in (today_s, yesterday_s) and self.stats.current_streak:
            self.update_streak(False)

    # ------------------------------------------------------------------
    # Counters
    # ------------------------------------------------------------------

    def sync_counters(self, sessions: Sequence[PomodoroSession], tasks: Sequence[Task]) -> None:
        """Refresh totals from history; totals never move backwards."""
        done = [x for x in sessions if x.is_completed and not x.is_break]
        s = self.stats
        s.total_pomodoros = max(s.total_pomodoros, len(done))
        s.total_tasks = max(s.total_tasks, sum(1 for t in tasks if t.is_completed))
        s.total_focus_time = max(s.total_focus_time, sum(x.duration for x in done))

    # ------------------------------------------------------------------
    # Badges
    # ------------------------------------------------------------------

    def check_badges(
        self,
        focus_score: Optional[float] = None,
        interruptions: Optional[int] = None,
    ) -> List[Badge]:
        """Unlock every available badge whose requirement is met; return the new ones."""
        s = self.stats
        observed: Dict[RequirementType, Optional[float]] = {
            RequirementType.POMODOROS: s.total_pomodoros,
            RequirementType.STREAK: s.current_streak,
            RequirementType.TASKS: s.total_tasks,
            RequirementType.FOCUS_SCORE: focus_score,
            RequirementType.INTERRUPTIONS: interruptions,
        }
        unlocked = []
        for badge in self.available_badges():
            value = observed[badge.requirement.type]
            if value is None:
                continue
            if badge.requirement.met_by(value):
                new = self.unlock_badge(badge.id)
                if new is not None:
                    unlocked.append(new)
        return unlocked

    def unlock_badge(self, badge_id: str) -> Optional[Badge]:
        if any(b.id == badge_id for b in self.stats.badges):
            return None
        badge = next((b for b in self._catalog if b.id == badge_id), None)
        if badge is None:
            return None

        earned = badge.unlocked(self._clock())
        self.stats.badges.append(earned)
        logger.info("Badge unlocked: %s", badge.name)
        self._enqueue(MutationType.UNLOCK_BADGE, earned.to_dict())
        self.add_xp(RARITY_XP[badge.rarity], f"Badge unlocked: {badge.name}")
        return earned

    def available_badges(self) -> List[Badge]:
        owned = {b.id for b in self.stats.badges}
        return [b for b in self._catalog if b.id not in owned]

    def unlocked_badges(self) -> List[Badge]:
        return list(self.stats.badges)

    def recent_badges(self, limit: int = 3) -> List[Badge]:
        ordered = sorted(self.stats.badges, key=lambda b: b.unlocked_at or datetime.min, reverse=True)
        return ordered[:limit]

    def badge_totals(self) -> Dict[str, int]:
        return {
            "total": len(self._catalog),
            "unlocked": len(self.stats.badges),
            "available": len(self.available_badges()),
        }

    # ------------------------------------------------------------------
    # Achievements
    # ------------------------------------------------------------------

    def check_achievements(self) -> List[Achievement]:
        unlocked = []
        for achievement in self.stats.achievements:
            if achievement.unlocked_at is not None:
                continue
            progress = int(getattr(self.stats, achievement.counter, 0))
            if progress >= achievement.max_progress:
                if self.unlock_achievement(achievement.id):
                    unlocked.append(achievement)
            else:
                achievement.progress = max(achievement.progress, progress)
        return unlocked

    def unlock_achievement(self, achievement_id: str) -> bool:
        achievement = next((a for a in self.stats.achievements if a.id == achievement_id), None)
        if achievement is None or achievement.unlocked_at is not None:
            return False
        achievement.unlocked_at = self._clock()
        achievement.progress = achievement.max_progress
        logger.info("Achievement unlocked: %s", achievement.name)
        self._enqueue(MutationType.UNLOCK_ACHIEVEMENT, achievement.to_dict())
        self.add_xp(achievement.xp_reward, f"Achievement unlocked: {achievement.name}")
        return True

    def recent_achievements(self, limit: int = 3) -> List[Achievement]:
        done = [a for a in self.stats.achievements if a.unlocked_at is not None]
        done.sort(key=lambda a: a.unlocked_at, reverse=True)  # type: ignore[arg-type, return-value]
        return done[:limit]

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        return {"user_stats": self.stats.to_dict()}

    def _enqueue(self, kind: MutationType, payload: Dict[str, Any]) -> None:
        self._persister.enqueue_mutation(SyncQueueEntry(type=kind, payload=payload))
