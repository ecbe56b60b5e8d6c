"""
/tasks — task CRUD, explicit completion and complexity annotation.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request

from ...api.deps import commit, get_core
from ...api.schemas import (
    ComplexityFactorsOut,
    ComplexityOut,
    ComplexityStatsOut,
    TaskIn,
    TaskOut,
    TaskPatch,
)
from ...router.coordinator import SessionCoordinator

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _task_or_404(core: SessionCoordinator, task_id: str):
    task = core.tasks.get(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.get("", response_model=List[TaskOut])
def list_tasks(include_completed: bool = True, core=Depends(get_core)):
    tasks = core.tasks.all_tasks() if include_completed else core.tasks.open_tasks()
    return [TaskOut.of(t) for t in tasks]


@router.post("", response_model=TaskOut, status_code=201)
def create_task(request: Request, task: TaskIn, core=Depends(get_core)):
    t = core.tasks.add_task(
        task.title,
        estimated_pomodoros=task.estimated_pomodoros,
        priority=task.priority,
        tags=task.tags,
        description=task.description,
    )
    commit(request)
    return TaskOut.of(t)


# ── Complexity ──────────────────────────────────────────────────────────────
# Declared before /{task_id} so "complexity" is not captured as an id.

@router.get("/complexity/stats", response_model=ComplexityStatsOut)
def complexity_stats(core=Depends(get_core)):
    return ComplexityStatsOut(**core.scorer.stats(core.tasks.all_tasks()))


@router.get("/complexity/insights")
def complexity_insights(core=Depends(get_core)):
    """Estimation trend from completed tasks plus portfolio-level advice."""
    history = core.complexity_history
    return {
        "trends": history.trends(),
        "recommendations": core.scorer.recommendations(core.tasks.all_tasks(), history),
    }


@router.get("/complexity/level/{level}", response_model=List[TaskOut])
def tasks_by_level(level: str, core=Depends(get_core)):
    if level not in ("simple", "moderate", "complex", "very-complex"):
        raise HTTPException(status_code=404, detail="Unknown complexity level")
    return [TaskOut.of(t) for t in core.scorer.tasks_by_level(core.tasks.all_tasks(), level)]


@router.get("/{task_id}/complexity", response_model=ComplexityOut)
def task_complexity(task_id: str, core=Depends(get_core)):
    task = _task_or_404(core, task_id)
    score = core.scorer.score(task)
    return ComplexityOut(
        task_id=task.id,
        overall=score.overall,
        level=score.level,
        factors=ComplexityFactorsOut(**score.factors.__dict__),
        recommendations=score.recommendations,
        estimated_difficulty=score.estimated_difficulty,
        time_multiplier=score.time_multiplier,
    )


# ── Single task ─────────────────────────────────────────────────────────────

@router.get("/{task_id}", response_model=TaskOut)
def get_task(task_id: str, core=Depends(get_core)):
    return TaskOut.of(_task_or_404(core, task_id))


@router.patch("/{task_id}", response_model=TaskOut)
def update_task(request: Request, task_id: str, patch: TaskPatch, core=Depends(get_core)):
    data = {k: v for k, v in patch.model_dump().items() if v is not None}
    updated = core.update_task(task_id, **data)
    if updated is None:
        raise HTTPException(status_code=404, detail="Task not found")
    commit(request)
    return TaskOut.of(updated)


@router.delete("/{task_id}")
def delete_task(request: Request, task_id: str, core=Depends(get_core)):
    if not core.tasks.delete_task(task_id):
        raise HTTPException(status_code=404, detail="Task not found")
    commit(request)
    return {"status": "removed"}


@router.post("/{task_id}/complete", response_model=TaskOut)
def complete_task(request: Request, task_id: str, core=Depends(get_core)):
    _task_or_404(core, task_id)
    task = core.complete_task(task_id)
    commit(request)
    return TaskOut.of(task)
