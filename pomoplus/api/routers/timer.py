"""
/timer — drive the work/break state machine and read its current state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request

from ...api.deps import commit, get_core
from ...api.schemas import SessionOut, StartBreakIn, StartPomodoroIn, TickIn, TimerStateOut
from ...router.coordinator import SessionCoordinator
from ...timer.engine import format_time

router = APIRouter(prefix="/timer", tags=["timer"])


def _state(core: SessionCoordinator) -> TimerStateOut:
    t = core.timer
    return TimerStateOut(
        phase=t.phase.value,
        is_running=t.is_running,
        is_break=t.is_break,
        time_left=t.time_left,
        formatted_time=format_time(t.time_left),
        progress=round(t.progress(), 2),
        current_task_id=t.current_task_id,
        current_session=SessionOut.of(t.current_session) if t.current_session else None,
        completed_pomodoros=t.completed_pomodoros(),
    )


@router.get("", response_model=TimerStateOut)
def get_timer(core=Depends(get_core)):
    return _state(core)


@router.post("/start", response_model=TimerStateOut)
def start(request: Request, req: Optional[StartPomodoroIn] = None, core=Depends(get_core)):
    """Start a pomodoro; an unknown task id starts it without a task."""
    core.timer.start_pomodoro(req.task_id if req else None)
    commit(request)
    return _state(core)


@router.post("/pause", response_model=TimerStateOut)
def pause(core=Depends(get_core)):
    core.timer.pause_pomodoro()
    return _state(core)


@router.post("/resume", response_model=TimerStateOut)
def resume(core=Depends(get_core)):
    core.timer.resume()
    return _state(core)


@router.post("/stop", response_model=TimerStateOut)
def stop(core=Depends(get_core)):
    core.timer.stop_pomodoro()
    return _state(core)


@router.post("/complete", response_model=TimerStateOut)
def complete(request: Request, core=Depends(get_core)):
    """Finish the current phase now."""
    if core.timer.is_break:
        core.timer.complete_break()
    else:
        core.timer.complete_pomodoro()
    commit(request)
    return _state(core)


@router.post("/break", response_model=TimerStateOut)
def start_break(request: Request, req: Optional[StartBreakIn] = None, core=Depends(get_core)):
    """Start a break; without is_long the pomodoro count decides."""
    core.start_break(req.is_long if req else None)
    commit(request)
    return _state(core)


@router.post("/reset", response_model=TimerStateOut)
def reset(core=Depends(get_core)):
    core.timer.reset_timer()
    return _state(core)


@router.post("/tick", response_model=TimerStateOut)
def tick(request: Request, req: Optional[TickIn] = None, core=Depends(get_core)):
    """Advance the clock manually by one or more seconds."""
    before = core.timer.phase
    for _ in range(req.seconds if req else 1):
        core.timer.tick()
    if core.timer.phase != before:
        commit(request)
    return _state(core)


@router.post("/advance")
def advance(request: Request, core=Depends(get_core)):
    """Auto-start whatever the scheduler recommends when the timer is idle."""
    action = core.advance()
    commit(request)
    return {
        "action": action.kind,
        "task_id": action.task.id if action.task else None,
        "is_long_break": action.is_long_break,
        "timer": _state(core).model_dump(mode="json"),
    }
