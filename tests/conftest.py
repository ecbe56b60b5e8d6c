"""
Shared pytest fixtures and configuration.
"""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from pomoplus.api.app import create_app
from pomoplus.router.coordinator import SessionCoordinator
from pomoplus.store.sync_queue import MemorySyncQueue
from pomoplus.store.tasks import TaskStore
from pomoplus.timer.engine import TimerEngine


class FakeClock:
    """Settable clock injected wherever components accept `clock=`."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture()
def clock():
    return FakeClock(datetime(2024, 3, 4, 9, 0, 0))


@pytest.fixture()
def queue():
    return MemorySyncQueue()


@pytest.fixture()
def tasks(queue, clock):
    return TaskStore(queue, clock=clock)


@pytest.fixture()
def timer(tasks, queue, clock):
    return TimerEngine(tasks, persister=queue, clock=clock)


@pytest.fixture()
def core(queue, clock):
    return SessionCoordinator(persister=queue, clock=clock)


def run_out(engine: TimerEngine) -> None:
    """Tick until the running phase completes."""
    while engine.is_running and engine.time_left > 0:
        engine.tick()


@pytest.fixture()
def app(tmp_path, clock):
    """Fresh app per test on its own SQLite file, background tick disabled."""
    return create_app(db_path=tmp_path / "pomoplus.db", tick_interval_ms=0, clock=clock)


@pytest_asyncio.fixture()
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
