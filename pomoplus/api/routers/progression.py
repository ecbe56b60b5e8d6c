"""
/progression — XP, level, streaks, badges and achievements.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from ...api.deps import get_core
from ...api.schemas import AchievementOut, BadgeOut, LevelProgressOut, UserStatsOut
from ...progression.catalog import Achievement, Badge

router = APIRouter(prefix="/progression", tags=["progression"])


def _badge(b: Badge) -> BadgeOut:
    return BadgeOut(
        id=b.id,
        name=b.name,
        description=b.description,
        emoji=b.emoji,
        category=b.category,
        rarity=b.rarity.value,
        unlocked_at=b.unlocked_at,
    )


def _achievement(a: Achievement) -> AchievementOut:
    return AchievementOut(
        id=a.id,
        name=a.name,
        description=a.description,
        xp_reward=a.xp_reward,
        progress=a.progress,
        max_progress=a.max_progress,
        unlocked_at=a.unlocked_at,
    )


@router.get("", response_model=UserStatsOut)
def user_stats(core=Depends(get_core)):
    s = core.progression.stats
    return UserStatsOut(
        level=s.level,
        xp=s.xp,
        total_xp=s.total_xp,
        current_streak=s.current_streak,
        longest_streak=s.longest_streak,
        total_pomodoros=s.total_pomodoros,
        total_tasks=s.total_tasks,
        total_focus_time=s.total_focus_time,
        badges=[_badge(b) for b in s.badges],
        achievements=[_achievement(a) for a in s.achievements],
        last_active_date=s.last_active_date,
    )


@router.get("/level", response_model=LevelProgressOut)
def level_progress(core=Depends(get_core)):
    p = core.progression
    return LevelProgressOut(level=p.stats.level, total_xp=p.stats.total_xp, **p.get_level_progress())


@router.get("/badges")
def badges(core=Depends(get_core)):
    p = core.progression
    return {
        "totals": p.badge_totals(),
        "unlocked": [_badge(b).model_dump(mode="json") for b in p.unlocked_badges()],
        "available": [_badge(b).model_dump(mode="json") for b in p.available_badges()],
        "recent": [_badge(b).model_dump(mode="json") for b in p.recent_badges()],
    }


@router.get("/achievements", response_model=List[AchievementOut])
def achievements(core=Depends(get_core)):
    return [_achievement(a) for a in core.progression.stats.achievements]


@router.get("/achievements/recent", response_model=List[AchievementOut])
def recent_achievements(core=Depends(get_core)):
    return [_achievement(a) for a in core.progression.recent_achievements()]
