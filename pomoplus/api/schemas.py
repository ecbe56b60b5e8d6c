"""
Pydantic schemas for the FastAPI local API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ..models import Interruption, InterruptionReason, PomodoroSession, Priority, Task

# ── Tasks ──────────────────────────────────────────────────────────────────

class TaskIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    estimated_pomodoros: int = Field(default=1, ge=1)
    priority: Priority = Priority.MEDIUM
    tags: List[str] = Field(default_factory=list)


class TaskPatch(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    estimated_pomodoros: Optional[int] = Field(None, ge=1)
    completed_pomodoros: Optional[int] = Field(None, ge=0)
    priority: Optional[Priority] = None
    tags: Optional[List[str]] = None
    is_completed: Optional[bool] = None


class TaskOut(BaseModel):
    id: str
    title: str
    description: Optional[str]
    estimated_pomodoros: int
    completed_pomodoros: int
    priority: Priority
    tags: List[str]
    is_completed: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def of(cls, task: Task) -> "TaskOut":
        return cls(**task.__dict__)


# ── Complexity ─────────────────────────────────────────────────────────────

class ComplexityFactorsOut(BaseModel):
    duration: float
    priority: float
    tags: float
    dependencies: float
    context: float
    cognitive: float
    physical: float
    emotional: float


class ComplexityOut(BaseModel):
    task_id: str
    overall: int = Field(..., ge=0, le=100)
    level: str
    factors: ComplexityFactorsOut
    recommendations: List[str]
    estimated_difficulty: int = Field(..., ge=1, le=10)
    time_multiplier: float = Field(..., ge=1.0, le=1.5)


class ComplexityTaskSummary(BaseModel):
    task_id: str
    title: str
    score: int
    level: str


class ComplexityStatsOut(BaseModel):
    average_complexity: int
    distribution: Dict[str, int]
    most_complex: List[ComplexityTaskSummary]
    least_complex: List[ComplexityTaskSummary]


# ── Sessions & interruptions ───────────────────────────────────────────────

class InterruptionIn(BaseModel):
    reason: InterruptionReason
    description: Optional[str] = None


class InterruptionClose(BaseModel):
    duration: int = Field(..., ge=0, description="Seconds the interruption lasted")


class InterruptionOut(BaseModel):
    id: str
    session_id: str
    timestamp: datetime
    reason: InterruptionReason
    description: Optional[str]
    duration: int

    @classmethod
    def of(cls, item: Interruption) -> "InterruptionOut":
        return cls(**item.__dict__)


class SessionOut(BaseModel):
    id: str
    task_id: Optional[str]
    start_time: datetime
    end_time: Optional[datetime]
    duration: int
    is_completed: bool
    is_break: bool
    interruptions: int
    interruption_list: List[InterruptionOut]

    @classmethod
    def of(cls, session: PomodoroSession) -> "SessionOut":
        return cls(
            id=session.id,
            task_id=session.task_id,
            start_time=session.start_time,
            end_time=session.end_time,
            duration=session.duration,
            is_completed=session.is_completed,
            is_break=session.is_break,
            interruptions=session.interruptions,
            interruption_list=[InterruptionOut.of(i) for i in session.interruption_list],
        )


# ── Timer ──────────────────────────────────────────────────────────────────

class StartPomodoroIn(BaseModel):
    task_id: Optional[str] = None


class StartBreakIn(BaseModel):
    is_long: Optional[bool] = None


class TickIn(BaseModel):
    seconds: int = Field(default=1, ge=1, le=3600)


class TimerStateOut(BaseModel):
    phase: str
    is_running: bool
    is_break: bool
    time_left: int
    formatted_time: str
    progress: float
    current_task_id: Optional[str]
    current_session: Optional[SessionOut]
    completed_pomodoros: int


class TimerSettingsPatch(BaseModel):
    pomodoro_duration: Optional[int] = Field(None, ge=1, le=180)
    short_break_duration: Optional[int] = Field(None, ge=1, le=60)
    long_break_duration: Optional[int] = Field(None, ge=1, le=120)
    auto_start_breaks: Optional[bool] = None
    auto_start_pomodoros: Optional[bool] = None
    sound_enabled: Optional[bool] = None
    notifications_enabled: Optional[bool] = None
    long_break_interval: Optional[int] = Field(None, ge=1, le=12)


# ── Scheduler & energy ─────────────────────────────────────────────────────

class SchedulerSettingsPatch(BaseModel):
    enabled: Optional[bool] = None
    auto_start_next_task: Optional[bool] = None
    auto_start_break: Optional[bool] = None
    break_before_next_task: Optional[bool] = None
    priority_based: Optional[bool] = None
    energy_based: Optional[bool] = None
    max_consecutive_pomodoros: Optional[int] = Field(None, ge=1, le=20)


class EnergyFactorsOut(BaseModel):
    time_of_day: float = Field(..., ge=0.0, le=1.0)
    recent_activity: float = Field(..., ge=0.0, le=1.0)
    break_quality: float = Field(..., ge=0.0, le=1.0)


class EnergyOut(BaseModel):
    level: str
    timestamp: datetime
    factors: EnergyFactorsOut


class EnergyPatternOut(BaseModel):
    hour: int
    energy_level: str
    productivity: float
    focus: float
    motivation: float
    session_count: int


class NextActionOut(BaseModel):
    kind: str
    task: Optional[TaskOut] = None
    is_long_break: bool = False
    consecutive_pomodoros: int
    energy_level: str


# ── Progression ────────────────────────────────────────────────────────────

class LevelProgressOut(BaseModel):
    level: int
    total_xp: int
    current: float
    next: float
    percentage: float


class BadgeOut(BaseModel):
    id: str
    name: str
    description: str
    emoji: str
    category: str
    rarity: str
    unlocked_at: Optional[datetime]


class AchievementOut(BaseModel):
    id: str
    name: str
    description: str
    xp_reward: int
    progress: int
    max_progress: int
    unlocked_at: Optional[datetime]


class UserStatsOut(BaseModel):
    level: int = Field(..., ge=1)
    xp: int
    total_xp: int = Field(..., ge=0)
    current_streak: int
    longest_streak: int
    total_pomodoros: int
    total_tasks: int
    total_focus_time: int
    badges: List[BadgeOut]
    achievements: List[AchievementOut]
    last_active_date: Optional[str]
