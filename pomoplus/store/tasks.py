"""
Task Store — canonical set of Task records with offline-sync side effects.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..models import Priority, Task, new_id
from .sync_queue import MemorySyncQueue, MutationType, Persister, SyncQueueEntry

logger = logging.getLogger(__name__)

# Fields update_task() may touch; id and created_at are fixed at creation.
_MUTABLE_FIELDS = {
    "title",
    "description",
    "estimated_pomodoros",
    "completed_pomodoros",
    "priority",
    "tags",
    "is_completed",
}


class TaskStore:

    def __init__(
        self,
        persister: Optional[Persister] = None,
        clock: Callable[[], datetime] = datetime.now,
        max_retries: int = 3,
    ):
        self._tasks: List[Task] = []
        self._persister = persister if persister is not None else MemorySyncQueue()
        self._clock = clock
        self._max_retries = max_retries

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_task(
        self,
        title: str,
        estimated_pomodoros: int = 1,
        priority: Priority | str = Priority.MEDIUM,
        tags: Iterable[str] = (),
        description: Optional[str] = None,
        completed_pomodoros: int = 0,
        is_completed: bool = False,
    ) -> Task:
        now = self._clock()
        task = Task(
            id=new_id(),
            title=title,
            description=description,
            estimated_pomodoros=max(1, int(estimated_pomodoros)),
            completed_pomodoros=max(0, int(completed_pomodoros)),
            priority=Priority(priority),
            tags=list(tags),
            is_completed=is_completed,
            created_at=now,
            updated_at=now,
        )
        self._tasks.append(task)
        self._enqueue(MutationType.CREATE_TASK, task.to_dict())
        return task

    def update_task(self, task_id: str, **updates: Any) -> Optional[Task]:
        """Merge *updates* into the task; unknown fields are ignored."""
        idx = self._index(task_id)
        if idx is None:
            return None
        clean: Dict[str, Any] = {k: v for k, v in updates.items() if k in _MUTABLE_FIELDS}
        if "priority" in clean:
            clean["priority"] = Priority(clean["priority"])
        if "tags" in clean:
            clean["tags"] = list(clean["tags"])
        clean["updated_at"] = self._clock()

        updated = replace(self._tasks[idx], **clean)
        self._tasks[idx] = updated
        self._enqueue(MutationType.UPDATE_TASK, {"id": task_id, "updates": clean})
        return updated

    def increment_completed(self, task_id: str) -> Optional[Task]:
        task = self.get(task_id)
        if task is None:
            return None
        return self.update_task(task_id, completed_pomodoros=task.completed_pomodoros + 1)

    def complete_task(self, task_id: str) -> Optional[Task]:
        return self.update_task(task_id, is_completed=True)

    def delete_task(self, task_id: str) -> bool:
        before = len(self._tasks)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        removed = len(self._tasks) < before
        if removed:
            self._enqueue(MutationType.DELETE_TASK, {"id": task_id})
        return removed

    def load(self, tasks: Iterable[Task]) -> None:
        """Replace the in-memory set from persisted state (no sync entries)."""
        self._tasks = list(tasks)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, task_id: Optional[str]) -> Optional[Task]:
        if task_id is None:
            return None
        idx = self._index(task_id)
        return self._tasks[idx] if idx is not None else None

    def all_tasks(self) -> List[Task]:
        return list(self._tasks)

    def open_tasks(self) -> List[Task]:
        return [t for t in self._tasks if not t.is_completed]

    def __len__(self) -> int:
        return len(self._tasks)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _index(self, task_id: str) -> Optional[int]:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    def _enqueue(self, kind: MutationType, payload: Dict[str, Any]) -> None:
        self._persister.enqueue_mutation(
            SyncQueueEntry(type=kind, payload=payload, max_retries=self._max_retries)
        )
        logger.debug("Queued %s for %s", kind.value, payload.get("id"))
