"""
Badge and achievement catalogue.

Requirements compare a named counter with a fixed value. Comparisons are
strict, so each threshold sits one below the count the badge description
names: "3 days in a row" is written as streak > 2.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class RequirementType(str, Enum):
    POMODOROS = "pomodoros"
    STREAK = "streak"
    TASKS = "tasks"
    FOCUS_SCORE = "focus_score"
    INTERRUPTIONS = "interruptions"


class Condition(str, Enum):
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    EQUAL_TO = "equal_to"


class Rarity(str, Enum):
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


RARITY_XP = {
    Rarity.COMMON: 50,
    Rarity.RARE: 100,
    Rarity.EPIC: 200,
    Rarity.LEGENDARY: 500,
}


@dataclass(frozen=True)
class Requirement:
    type: RequirementType
    value: float
    condition: Condition

    def met_by(self, observed: float) -> bool:
        if self.condition == Condition.GREATER_THAN:
            return observed > self.value
        if self.condition == Condition.LESS_THAN:
            return observed < self.value
        return observed == self.value


@dataclass
class Badge:
    id: str
    name: str
    description: str
    emoji: str
    category: str                # daily | weekly | monthly | special
    requirement: Requirement
    rarity: Rarity
    unlocked_at: Optional[datetime] = None

    def unlocked(self, when: datetime) -> "Badge":
        return replace(self, unlocked_at=when)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "emoji": self.emoji,
            "category": self.category,
            "requirement": {
                "type": self.requirement.type.value,
                "value": self.requirement.value,
                "condition": self.requirement.condition.value,
            },
            "rarity": self.rarity.value,
            "unlocked_at": self.unlocked_at.isoformat() if self.unlocked_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Badge":
        req = data["requirement"]
        unlocked = data.get("unlocked_at")
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            emoji=data.get("emoji", ""),
            category=data.get("category", "special"),
            requirement=Requirement(
                type=RequirementType(req["type"]),
                value=req["value"],
                condition=Condition(req["condition"]),
            ),
            rarity=Rarity(data["rarity"]),
            unlocked_at=datetime.fromisoformat(unlocked) if unlocked else None,
        )


@dataclass
class Achievement:
    id: str
    name: str
    description: str
    xp_reward: int
    max_progress: int
    counter: str                 # UserStats attribute tracked for progress
    progress: int = 0
    unlocked_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "xp_reward": self.xp_reward,
            "max_progress": self.max_progress,
            "counter": self.counter,
            "progress": self.progress,
            "unlocked_at": self.unlocked_at.isoformat() if self.unlocked_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Achievement":
        unlocked = data.get("unlocked_at")
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            xp_reward=int(data["xp_reward"]),
            max_progress=int(data["max_progress"]),
            counter=data["counter"],
            progress=int(data.get("progress", 0)),
            unlocked_at=datetime.fromisoformat(unlocked) if unlocked else None,
        )


def _req(kind: RequirementType, value: float, condition: Condition = Condition.GREATER_THAN) -> Requirement:
    return Requirement(type=kind, value=value, condition=condition)


DEFAULT_BADGES: List[Badge] = [
    Badge("first_pomodoro", "First Step", "Complete your first pomodoro", "🎯",
          "daily", _req(RequirementType.POMODOROS, 0), Rarity.COMMON),
    Badge("streak_3", "Consistency", "Focus 3 days in a row", "🔥",
          "daily", _req(RequirementType.STREAK, 2), Rarity.COMMON),
    Badge("streak_7", "Weekly Hero", "Focus 7 days in a row", "👑",
          "weekly", _req(RequirementType.STREAK, 6), Rarity.RARE),
    Badge("streak_30", "Monthly Legend", "Focus 30 days in a row", "🏆",
          "monthly", _req(RequirementType.STREAK, 29), Rarity.LEGENDARY),
    Badge("pomodoro_100", "Centurion", "Complete 100 pomodoros", "💯",
          "special", _req(RequirementType.POMODOROS, 99), Rarity.EPIC),
    Badge("focus_master", "Focus Master", "Reach a focus score above 90", "🧠",
          "special", _req(RequirementType.FOCUS_SCORE, 90), Rarity.EPIC),
    Badge("interruption_free", "Uninterrupted", "Complete 5 pomodoros without an interruption", "⚡",
          "special", _req(RequirementType.INTERRUPTIONS, 0, Condition.EQUAL_TO), Rarity.RARE),
]

DEFAULT_ACHIEVEMENTS: List[Achievement] = [
    Achievement("pomodoro_milestone_10", "10 Pomodoros", "Complete 10 pomodoros",
                xp_reward=100, max_progress=10, counter="total_pomodoros"),
    Achievement("pomodoro_milestone_50", "50 Pomodoros", "Complete 50 pomodoros",
                xp_reward=500, max_progress=50, counter="total_pomodoros"),
    Achievement("pomodoro_milestone_100", "100 Pomodoros", "Complete 100 pomodoros",
                xp_reward=1000, max_progress=100, counter="total_pomodoros"),
    Achievement("task_milestone_10", "10 Tasks", "Complete 10 tasks",
                xp_reward=200, max_progress=10, counter="total_tasks"),
    Achievement("focus_milestone_1000", "1000 Minutes", "Focus for 1000 minutes",
                xp_reward=300, max_progress=1000, counter="total_focus_time"),
]


def fresh_achievements() -> List[Achievement]:
    return [replace(a) for a in DEFAULT_ACHIEVEMENTS]
