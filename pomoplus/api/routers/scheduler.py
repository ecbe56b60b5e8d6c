"""
/scheduler — auto-reschedule settings, next-task selection and energy.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, Request

from ...api.deps import commit, get_core
from ...api.schemas import (
    EnergyFactorsOut,
    EnergyOut,
    EnergyPatternOut,
    NextActionOut,
    SchedulerSettingsPatch,
    TaskOut,
)
from ...inference.energy import EnergyLevel
from ...settings import SCHEDULER_DEFAULTS

router = APIRouter(prefix="/scheduler", tags=["scheduler"])


def _energy(level: EnergyLevel) -> EnergyOut:
    return EnergyOut(
        level=level.level.value,
        timestamp=level.timestamp,
        factors=EnergyFactorsOut(**asdict(level.factors)),
    )


# ── Settings ────────────────────────────────────────────────────────────────

@router.get("/settings")
def read_settings(core=Depends(get_core)):
    return {"settings": asdict(core.scheduler.settings), "defaults": SCHEDULER_DEFAULTS}


@router.put("/settings")
def write_settings(request: Request, patch: SchedulerSettingsPatch, core=Depends(get_core)):
    """Apply a partial update; omitted fields keep their value."""
    data = {k: v for k, v in patch.model_dump().items() if v is not None}
    updated = core.scheduler.update_settings(data)
    commit(request)
    return {"settings": asdict(updated)}


# ── Selection ───────────────────────────────────────────────────────────────

@router.get("/next", response_model=NextActionOut)
def next_action(core=Depends(get_core)):
    """What auto-reschedule would do now: break, task or idle."""
    action = core.next_action()
    return NextActionOut(
        kind=action.kind,
        task=TaskOut.of(action.task) if action.task else None,
        is_long_break=action.is_long_break,
        consecutive_pomodoros=core.scheduler.consecutive_pomodoros,
        energy_level=core.energy.current.level.value,
    )


@router.get("/queue", response_model=List[TaskOut])
def ranked_queue(core=Depends(get_core)):
    """Every candidate in selection order for the cached energy level."""
    ranked = core.scheduler.rank(core.tasks.all_tasks(), core.energy.current.level)
    return [TaskOut.of(t) for t in ranked]


# ── Energy ──────────────────────────────────────────────────────────────────

@router.get("/energy", response_model=EnergyOut)
def current_energy(core=Depends(get_core)):
    return _energy(core.energy.current)


@router.post("/energy", response_model=EnergyOut)
def recalculate_energy(request: Request, core=Depends(get_core)):
    level = core.recalculate_energy()
    commit(request)
    return _energy(level)


@router.get("/energy/patterns", response_model=List[EnergyPatternOut])
def energy_patterns(core=Depends(get_core)):
    patterns = core.energy.analyze_energy_patterns(core.timer.sessions)
    return [
        EnergyPatternOut(
            hour=p.hour,
            energy_level=p.energy_level.value,
            productivity=p.productivity,
            focus=p.focus,
            motivation=p.motivation,
            session_count=p.session_count,
        )
        for p in patterns
    ]


@router.get("/energy/recommendations", response_model=List[TaskOut])
def energy_recommendations(core=Depends(get_core)):
    return [TaskOut.of(t) for t in core.energy.task_recommendations(core.tasks.all_tasks())]
