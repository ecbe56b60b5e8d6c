"""
Request-scoped accessors for the per-app services stored on app.state.
"""

from __future__ import annotations

from fastapi import Request

from ..router.coordinator import SessionCoordinator
from ..store.state import StateStore


def get_core(request: Request) -> SessionCoordinator:
    return request.app.state.core


def get_store(request: Request) -> StateStore:
    return request.app.state.store


def commit(request: Request) -> None:
    """Write the three state snapshots after a mutating request."""
    request.app.state.core.save(request.app.state.store)
