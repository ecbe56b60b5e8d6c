"""
Keyed state storage — one JSON snapshot per storage key, SQLite-backed.

Keys mirror the persisted stores of the app:
    pomodoro-storage         tasks, timer settings, session history, goals
    gamification-storage     user stats
    auto-reschedule-storage  scheduler settings, energy cache, counters

A missing, malformed or version-mismatched snapshot loads as None and the
caller starts from defaults.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from .sync_queue import dumps

logger = logging.getLogger(__name__)

POMODORO_KEY = "pomodoro-storage"
GAMIFICATION_KEY = "gamification-storage"
AUTO_RESCHEDULE_KEY = "auto-reschedule-storage"

STATE_VERSION = 1


class StateStore:
    """SQLite-backed snapshot store."""

    def __init__(self, db_path: Path, version: int = STATE_VERSION):
        self.db_path = db_path
        self.version = version
        self._init_db()

    def save(self, key: str, payload: Dict[str, Any]) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO state (key, version, payload_json, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    version = excluded.version,
                    payload_json = excluded.payload_json,
                    updated_at = excluded.updated_at
                """,
                (key, self.version, dumps(payload), time.time()),
            )

    def load(self, key: str) -> Optional[Dict[str, Any]]:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT version, payload_json FROM state WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        version, payload_json = row
        if version != self.version:
            logger.warning("Discarding %s snapshot: version %s != %s", key, version, self.version)
            return None
        try:
            payload = json.loads(payload_json)
        except json.JSONDecodeError:
            logger.warning("Discarding malformed %s snapshot", key)
            return None
        if not isinstance(payload, dict):
            logger.warning("Discarding %s snapshot: expected an object", key)
            return None
        return payload

    def delete(self, key: str) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM state WHERE key = ?", (key,))

    def keys(self) -> List[str]:
        with self._conn() as conn:
            rows = conn.execute("SELECT key FROM state ORDER BY key").fetchall()
        return [r[0] for r in rows]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS state (
                    key           TEXT    PRIMARY KEY,
                    version       INTEGER NOT NULL,
                    payload_json  TEXT    NOT NULL DEFAULT '{}',
                    updated_at    REAL    NOT NULL
                )
                """
            )

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()
