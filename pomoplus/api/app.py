"""
FastAPI application — local Pomodoro+ session API.
Runs on http://127.0.0.1:8765 by default.

The coordinator, state store and sync queue live on app.state so that each
call to create_app() produces a fully independent instance with no shared
module-level globals. Tests pass their own db_path and disable the tick loop.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config import config
from ..router.coordinator import SessionCoordinator
from ..store.state import StateStore
from ..store.sync_queue import SqliteSyncQueue

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Background tick loop
# ---------------------------------------------------------------------------

async def _tick_loop(core: SessionCoordinator, store: StateStore, interval_ms: int) -> None:
    while True:
        await asyncio.sleep(interval_ms / 1000.0)
        try:
            before = core.timer.phase
            core.timer.tick()
            if core.timer.phase != before:
                core.save(store)
        except Exception:
            logger.exception("Timer tick failed")


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    db_path: Optional[Path] = None,
    tick_interval_ms: Optional[int] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> FastAPI:
    """
    Build an independent app instance.

    tick_interval_ms=0 disables the background tick; time then only moves
    through POST /timer/tick.
    """
    db = Path(db_path) if db_path is not None else config.state_db_path
    interval = config.tick_interval_ms if tick_interval_ms is None else tick_interval_ms

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.store = StateStore(db)
        app.state.sync_queue = SqliteSyncQueue(db)
        app.state.core = SessionCoordinator(
            persister=app.state.sync_queue,
            clock=clock,
            max_retries=config.sync_max_retries,
        )
        app.state.core.restore(app.state.store)
        logger.info("Session state loaded from %s", db)

        tick_task = None
        if interval > 0:
            tick_task = asyncio.create_task(
                _tick_loop(app.state.core, app.state.store, interval)
            )

        yield

        if tick_task is not None:
            tick_task.cancel()
            try:
                await tick_task
            except asyncio.CancelledError:
                pass
        app.state.core.save(app.state.store)

    app = FastAPI(
        title="Pomodoro+",
        description="Local-first Pomodoro session core API",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "null"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import export, progression, scheduler, sessions, settings, tasks, timer

    app.include_router(timer.router)
    app.include_router(tasks.router)
    app.include_router(sessions.router)
    app.include_router(scheduler.router)
    app.include_router(progression.router)
    app.include_router(settings.router)
    app.include_router(export.router)

    @app.get("/health")
    def health(request: Request):
        queue = getattr(request.app.state, "sync_queue", None)
        sync = queue.status() if queue is not None else {"pending": 0, "failed": 0}
        return {"status": "ok", "version": VERSION, "sync": sync}

    return app


app = create_app()
