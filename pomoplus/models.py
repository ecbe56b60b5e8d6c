"""
Core records — tasks, Pomodoro sessions and interruptions.

Plain dataclasses shared by every component. to_dict()/from_dict() convert
to the JSON-compatible shape used by the state store, the sync queue and the
export boundary (datetimes as ISO 8601 strings).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class InterruptionReason(str, Enum):
    PHONE = "phone"
    EMAIL = "email"
    SOCIAL = "social"
    URGENT = "urgent"
    OTHER = "other"


def new_id() -> str:
    return uuid.uuid4().hex


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt else None


def _parse(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class Task:
    id: str
    title: str
    estimated_pomodoros: int = 1
    completed_pomodoros: int = 0
    priority: Priority = Priority.MEDIUM
    tags: List[str] = field(default_factory=list)
    is_completed: bool = False
    description: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "estimated_pomodoros": self.estimated_pomodoros,
            "completed_pomodoros": self.completed_pomodoros,
            "priority": self.priority.value,
            "tags": list(self.tags),
            "is_completed": self.is_completed,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description"),
            estimated_pomodoros=int(data.get("estimated_pomodoros", 1)),
            completed_pomodoros=int(data.get("completed_pomodoros", 0)),
            priority=Priority(data.get("priority", "medium")),
            tags=list(data.get("tags", [])),
            is_completed=bool(data.get("is_completed", False)),
            created_at=_parse(data.get("created_at")) or datetime.now(),
            updated_at=_parse(data.get("updated_at")) or datetime.now(),
        )


@dataclass
class Interruption:
    id: str
    session_id: str
    timestamp: datetime
    reason: InterruptionReason
    description: Optional[str] = None
    duration: int = 0                  # seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "timestamp": _iso(self.timestamp),
            "reason": self.reason.value,
            "description": self.description,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Interruption":
        return cls(
            id=data["id"],
            session_id=data["session_id"],
            timestamp=_parse(data["timestamp"]),  # type: ignore[arg-type]
            reason=InterruptionReason(data["reason"]),
            description=data.get("description"),
            duration=int(data.get("duration", 0)),
        )


@dataclass
class PomodoroSession:
    id: str
    start_time: datetime
    duration: int                      # minutes
    task_id: Optional[str] = None
    end_time: Optional[datetime] = None
    is_completed: bool = False
    is_break: bool = False
    interruptions: int = 0
    interruption_list: List[Interruption] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "start_time": _iso(self.start_time),
            "end_time": _iso(self.end_time),
            "duration": self.duration,
            "is_completed": self.is_completed,
            "is_break": self.is_break,
            "interruptions": self.interruptions,
            "interruption_list": [i.to_dict() for i in self.interruption_list],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PomodoroSession":
        interruptions = [Interruption.from_dict(i) for i in data.get("interruption_list", [])]
        return cls(
            id=data["id"],
            task_id=data.get("task_id"),
            start_time=_parse(data["start_time"]),  # type: ignore[arg-type]
            end_time=_parse(data.get("end_time")),
            duration=int(data.get("duration", 25)),
            is_completed=bool(data.get("is_completed", False)),
            is_break=bool(data.get("is_break", False)),
            interruptions=len(interruptions),
            interruption_list=interruptions,
        )
