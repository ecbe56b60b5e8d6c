"""
Energy Model — estimates the user's current energy (low | medium | high).

Two independent views:

  calculate_energy_level()   pull-model snapshot from the hour of day, the
                             current run of consecutive pomodoros and the time
                             since the last break. The result replaces the
                             cached `current` value.
  analyze_energy_patterns()  descriptive per-hour profile mined from session
                             history. It is never fed back into the snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..models import PRIORITY_RANK, PomodoroSession, Task


class Energy(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class EnergyFactors:
    time_of_day: float
    recent_activity: float
    break_quality: float


@dataclass
class EnergyLevel:
    level: Energy
    timestamp: datetime
    factors: EnergyFactors

    @property
    def overall(self) -> float:
        f = self.factors
        return (f.time_of_day + f.recent_activity + f.break_quality) / 3

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "timestamp": self.timestamp.isoformat(),
            "factors": {
                "time_of_day": self.factors.time_of_day,
                "recent_activity": self.factors.recent_activity,
                "break_quality": self.factors.break_quality,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EnergyLevel":
        f = data.get("factors", {})
        return cls(
            level=Energy(data["level"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            factors=EnergyFactors(
                time_of_day=float(f.get("time_of_day", 0.7)),
                recent_activity=float(f.get("recent_activity", 0.5)),
                break_quality=float(f.get("break_quality", 0.5)),
            ),
        )


@dataclass
class EnergyPattern:
    hour: int                    # 0-23
    energy_level: Energy
    productivity: float          # 0-1
    focus: float                 # 0-1
    motivation: float            # 0-1
    session_count: int = 0


# Inclusive hour bands, checked in order
_TIME_OF_DAY_BANDS = [
    (6, 10, 0.9),    # morning
    (11, 14, 0.7),   # midday
    (15, 18, 0.4),   # afternoon
    (19, 22, 0.6),   # evening
]
_NIGHT_FACTOR = 0.3

HIGH_THRESHOLD = 0.7
MEDIUM_THRESHOLD = 0.4


def classify(score: float) -> Energy:
    if score >= HIGH_THRESHOLD:
        return Energy.HIGH
    if score >= MEDIUM_THRESHOLD:
        return Energy.MEDIUM
    return Energy.LOW


def time_of_day_factor(hour: int) -> float:
    for start, end, value in _TIME_OF_DAY_BANDS:
        if start <= hour <= end:
            return value
    return _NIGHT_FACTOR


def break_quality_factor(now: datetime, last_break_time: Optional[datetime]) -> float:
    if last_break_time is None:
        return 0.5
    minutes = (now - last_break_time).total_seconds() / 60
    if minutes >= 15:
        return 0.9
    if minutes >= 5:
        return 0.7
    return 0.3


def default_energy_level(now: Optional[datetime] = None) -> EnergyLevel:
    return EnergyLevel(
        level=Energy.MEDIUM,
        timestamp=now or datetime.now(),
        factors=EnergyFactors(time_of_day=0.7, recent_activity=0.5, break_quality=0.5),
    )


class EnergyModel:

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock
        self.current: EnergyLevel = default_energy_level(clock())

    def calculate_energy_level(
        self,
        consecutive_pomodoros: int = 0,
        last_break_time: Optional[datetime] = None,
    ) -> EnergyLevel:
        now = self._clock()
        factors = EnergyFactors(
            time_of_day=time_of_day_factor(now.hour),
            recent_activity=max(0.0, 1 - consecutive_pomodoros * 0.2),
            break_quality=break_quality_factor(now, last_break_time),
        )
        overall = (factors.time_of_day + factors.recent_activity + factors.break_quality) / 3
        self.current = EnergyLevel(level=classify(overall), timestamp=now, factors=factors)
        return self.current

    # ------------------------------------------------------------------
    # Historical profile
    # ------------------------------------------------------------------

    def analyze_energy_patterns(self, sessions: Sequence[PomodoroSession]) -> List[EnergyPattern]:
        by_hour: Dict[int, List[PomodoroSession]] = {}
        for s in sessions:
            by_hour.setdefault(s.start_time.hour, []).append(s)

        patterns = []
        for hour in sorted(by_hour):
            bucket = by_hour[hour]
            completed = [s for s in bucket if s.is_completed]
            if completed:
                total_duration = sum(s.duration for s in completed)
                avg_interruptions = sum(s.interruptions for s in completed) / len(completed)
                productivity = min(1.0, total_duration / (len(completed) * 25))
                focus = max(0.0, 1 - avg_interruptions / 3)
            else:
                productivity = 0.0
                focus = 0.0
            motivation = len(completed) / len(bucket)

            patterns.append(EnergyPattern(
                hour=hour,
                energy_level=classify((productivity + focus + motivation) / 3),
                productivity=productivity,
                focus=focus,
                motivation=motivation,
                session_count=len(bucket),
            ))
        return patterns

    @staticmethod
    def peak_hours(patterns: Sequence[EnergyPattern], limit: int = 3) -> List[int]:
        """Hours with the best combined score, best first."""
        ranked = sorted(
            patterns,
            key=lambda p: -(p.productivity + p.focus + p.motivation),
        )
        return [p.hour for p in ranked[:limit]]

    # ------------------------------------------------------------------
    # Task suggestions
    # ------------------------------------------------------------------

    def task_recommendations(
        self,
        tasks: Sequence[Task],
        level: Optional[Energy] = None,
        limit: int = 3,
    ) -> List[Task]:
        level = Energy(level) if level is not None else self.current.level
        available = [t for t in tasks if not t.is_completed]
        if level == Energy.LOW:
            available = [t for t in available if t.estimated_pomodoros <= 2]
        elif level == Energy.HIGH:
            available = [t for t in available if t.estimated_pomodoros >= 3]
        available.sort(key=lambda t: -PRIORITY_RANK[t.priority])
        return available[:limit]
