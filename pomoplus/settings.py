"""
User-tunable runtime settings — timer durations and auto-reschedule toggles.

Settings objects are plain dataclasses owned by the component that reads them
(TimerEngine, TaskScheduler). Use apply_patch(obj, patch) to mutate one:
unknown keys are ignored and values are coerced to the default's type.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, TypeVar

T = TypeVar("T")


@dataclass
class TimerSettings:
    pomodoro_duration: int = 25        # minutes
    short_break_duration: int = 5      # minutes
    long_break_duration: int = 15      # minutes
    auto_start_breaks: bool = False
    auto_start_pomodoros: bool = False
    sound_enabled: bool = True
    notifications_enabled: bool = True
    long_break_interval: int = 4       # pomodoros between long breaks


@dataclass
class SchedulerSettings:
    enabled: bool = True
    auto_start_next_task: bool = True
    auto_start_break: bool = False
    break_before_next_task: bool = True    # stored, not consulted
    priority_based: bool = True
    energy_based: bool = True
    max_consecutive_pomodoros: int = 4


TIMER_DEFAULTS: Dict[str, Any] = asdict(TimerSettings())
SCHEDULER_DEFAULTS: Dict[str, Any] = asdict(SchedulerSettings())


def _coerce(default: Any, value: Any) -> Any:
    # bool("false") is True, so strings need explicit handling
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    return type(default)(value)


def apply_patch(obj: T, patch: Dict[str, Any]) -> T:
    """Apply *patch* to a settings dataclass in place (unknown keys ignored)."""
    known = {f.name for f in fields(obj)}  # type: ignore[arg-type]
    for k, v in patch.items():
        if k in known and v is not None:
            setattr(obj, k, _coerce(getattr(obj, k), v))
    return obj


def from_dict(cls: type[T], data: Dict[str, Any] | None) -> T:
    """Build a settings object from a persisted dict, falling back to defaults."""
    obj = cls()
    if data:
        apply_patch(obj, data)
    return obj
