"""
/settings — read and update the timer durations and toggles.
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Request

from ...api.deps import commit, get_core
from ...api.schemas import TimerSettingsPatch
from ...settings import TIMER_DEFAULTS

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
def read_settings(core=Depends(get_core)):
    """Return current timer settings with their defaults for reference."""
    return {"settings": asdict(core.timer.settings), "defaults": TIMER_DEFAULTS}


@router.put("")
def write_settings(request: Request, patch: TimerSettingsPatch, core=Depends(get_core)):
    """Apply a partial update; omitted fields keep their value."""
    data = {k: v for k, v in patch.model_dump().items() if v is not None}
    updated = core.timer.update_settings(data)
    core.complexity_history.minutes_per_pomodoro = updated.pomodoro_duration
    commit(request)
    return {"settings": asdict(updated)}
