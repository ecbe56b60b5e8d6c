"""
/sessions — session history, interruptions and statistics rollups.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ...api.deps import commit, get_core
from ...api.schemas import InterruptionClose, InterruptionIn, InterruptionOut, SessionOut
from ...inference import statistics
from ...router.coordinator import SessionCoordinator

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _session_exists(core: SessionCoordinator, session_id: str) -> bool:
    live = core.timer.current_session
    if live is not None and live.id == session_id:
        return True
    return core.timer.find_session(session_id) is not None


@router.get("", response_model=List[SessionOut])
def list_sessions(limit: int = Query(100, ge=1, le=1000), core=Depends(get_core)):
    """Completed session history, most recent first."""
    return [SessionOut.of(s) for s in reversed(core.timer.sessions[-limit:])]


# ── Statistics ──────────────────────────────────────────────────────────────

@router.get("/stats/daily")
def daily(core=Depends(get_core)):
    today = core.today()
    rows = statistics.daily_stats(core.timer.sessions, core.tasks.all_tasks(), today)
    return [asdict(r) for r in rows]


@router.get("/stats/weekly")
def weekly(core=Depends(get_core)):
    today = core.today()
    return asdict(statistics.weekly_stats(core.timer.sessions, core.tasks.all_tasks(), today))


@router.get("/stats/tasks")
def per_task(core=Depends(get_core)):
    return [asdict(r) for r in statistics.task_stats(core.timer.sessions, core.tasks.all_tasks())]


@router.get("/stats/focus")
def focus(core=Depends(get_core)):
    return {"focus_score": core.focus_score(), "daily_goal": core.timer.daily_goal}


# ── Interruptions ───────────────────────────────────────────────────────────

@router.get("/{session_id}/interruptions", response_model=List[InterruptionOut])
def list_interruptions(session_id: str, core=Depends(get_core)):
    if not _session_exists(core, session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return [InterruptionOut.of(i) for i in core.ledger.interruptions_for(session_id)]


@router.post("/{session_id}/interruptions", response_model=InterruptionOut, status_code=201)
def add_interruption(
    request: Request,
    session_id: str,
    body: InterruptionIn,
    core=Depends(get_core),
):
    if not _session_exists(core, session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    item = core.ledger.add_interruption(session_id, body.reason, body.description)
    commit(request)
    return InterruptionOut.of(item)


@router.post("/interruptions/{interruption_id}/close")
def close_interruption(
    request: Request,
    interruption_id: str,
    body: InterruptionClose,
    core=Depends(get_core),
):
    if not core.ledger.close_interruption(interruption_id, body.duration):
        raise HTTPException(status_code=404, detail="Interruption not found")
    commit(request)
    return {"status": "closed"}


@router.delete("/interruptions/{interruption_id}")
def remove_interruption(request: Request, interruption_id: str, core=Depends(get_core)):
    if not core.ledger.remove_interruption(interruption_id):
        raise HTTPException(status_code=404, detail="Interruption not found")
    commit(request)
    return {"status": "removed"}
