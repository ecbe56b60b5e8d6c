"""
Offline sync queue — durable-write intents handed to an external transport.

Every mutating core call updates in-memory state first and then calls
persister.enqueue_mutation(entry). The core never waits on delivery; the
transport drains pending() and reports back with acknowledge() or
record_failure(). Entries that exhaust max_retries are dropped.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Protocol

from ..models import new_id

logger = logging.getLogger(__name__)


class MutationType(str, Enum):
    CREATE_TASK = "CREATE_TASK"
    UPDATE_TASK = "UPDATE_TASK"
    DELETE_TASK = "DELETE_TASK"
    CREATE_SESSION = "CREATE_SESSION"
    UPDATE_SESSION = "UPDATE_SESSION"
    UPDATE_SETTINGS = "UPDATE_SETTINGS"
    UNLOCK_BADGE = "UNLOCK_BADGE"
    UNLOCK_ACHIEVEMENT = "UNLOCK_ACHIEVEMENT"


@dataclass
class SyncQueueEntry:
    type: MutationType
    payload: Dict[str, Any]
    max_retries: int = 3
    id: str = field(default_factory=lambda: f"sync_{new_id()}")
    timestamp: float = field(default_factory=time.time)
    retry_count: int = 0

    @property
    def exhausted(self) -> bool:
        return self.retry_count >= self.max_retries


class Persister(Protocol):
    """Anything that accepts durable-write intents."""

    def enqueue_mutation(self, entry: SyncQueueEntry) -> None: ...


def _json_default(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, set):
        return sorted(obj)
    raise TypeError(f"Not JSON serialisable: {type(obj).__name__}")


def dumps(payload: Any) -> str:
    return json.dumps(payload, default=_json_default)


class MemorySyncQueue:
    """In-process queue; the default persister for library use and tests."""

    def __init__(self):
        self._entries: List[SyncQueueEntry] = []

    def enqueue_mutation(self, entry: SyncQueueEntry) -> None:
        # round-trip through JSON so queued payloads are snapshots
        entry.payload = json.loads(dumps(entry.payload))
        self._entries.append(entry)

    def pending(self) -> List[SyncQueueEntry]:
        return list(self._entries)

    def acknowledge(self, entry_id: str) -> bool:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.id != entry_id]
        return len(self._entries) < before

    def record_failure(self, entry_id: str) -> Optional[SyncQueueEntry]:
        for entry in self._entries:
            if entry.id != entry_id:
                continue
            entry.retry_count += 1
            if entry.exhausted:
                logger.warning("Sync entry %s (%s) exhausted retries, dropping",
                               entry.id, entry.type.value)
                self.acknowledge(entry.id)
            return entry
        return None

    def status(self) -> Dict[str, int]:
        """Counts of never-attempted entries and entries awaiting a retry."""
        return {
            "pending": sum(1 for e in self._entries if e.retry_count == 0),
            "failed": sum(1 for e in self._entries if e.retry_count > 0),
        }

    def clear(self) -> None:
        self._entries = []

    def __len__(self) -> int:
        return len(self._entries)


class SqliteSyncQueue:
    """Append-only SQLite-backed queue that survives restarts."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._init_db()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def enqueue_mutation(self, entry: SyncQueueEntry) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO sync_queue
                    (id, type, payload_json, timestamp, retry_count, max_retries)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.id,
                    entry.type.value,
                    dumps(entry.payload),
                    entry.timestamp,
                    entry.retry_count,
                    entry.max_retries,
                ),
            )

    def acknowledge(self, entry_id: str) -> bool:
        with self._conn() as conn:
            cur = conn.execute("DELETE FROM sync_queue WHERE id = ?", (entry_id,))
            return cur.rowcount > 0

    def record_failure(self, entry_id: str) -> Optional[SyncQueueEntry]:
        with self._conn() as conn:
            conn.execute(
                "UPDATE sync_queue SET retry_count = retry_count + 1 WHERE id = ?",
                (entry_id,),
            )
        entry = self._get(entry_id)
        if entry is not None and entry.exhausted:
            logger.warning("Sync entry %s (%s) exhausted retries, dropping",
                           entry.id, entry.type.value)
            self.acknowledge(entry_id)
        return entry

    def clear(self) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM sync_queue")

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def pending(self, limit: int = 500) -> List[SyncQueueEntry]:
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT id, type, payload_json, timestamp, retry_count, max_retries "
                "FROM sync_queue ORDER BY seq ASC LIMIT ?",
                (limit,),
            ).fetchall()
        return [_row_to_entry(row) for row in rows]

    def status(self) -> Dict[str, int]:
        with self._conn() as conn:
            pending, failed = conn.execute(
                """
                SELECT
                    COALESCE(SUM(CASE WHEN retry_count = 0 THEN 1 ELSE 0 END), 0),
                    COALESCE(SUM(CASE WHEN retry_count > 0 THEN 1 ELSE 0 END), 0)
                FROM sync_queue
                """
            ).fetchone()
        return {"pending": pending, "failed": failed}

    def __len__(self) -> int:
        with self._conn() as conn:
            return conn.execute("SELECT COUNT(*) FROM sync_queue").fetchone()[0]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _get(self, entry_id: str) -> Optional[SyncQueueEntry]:
        with self._conn() as conn:
            row = conn.execute(
                "SELECT id, type, payload_json, timestamp, retry_count, max_retries "
                "FROM sync_queue WHERE id = ?",
                (entry_id,),
            ).fetchone()
        return _row_to_entry(row) if row else None

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sync_queue (
                    seq           INTEGER PRIMARY KEY AUTOINCREMENT,
                    id            TEXT    NOT NULL UNIQUE,
                    type          TEXT    NOT NULL,
                    payload_json  TEXT    NOT NULL DEFAULT '{}',
                    timestamp     REAL    NOT NULL,
                    retry_count   INTEGER NOT NULL DEFAULT 0,
                    max_retries   INTEGER NOT NULL DEFAULT 3
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


def _row_to_entry(row: tuple) -> SyncQueueEntry:
    entry_id, type_, payload_json, ts, retry_count, max_retries = row
    return SyncQueueEntry(
        id=entry_id,
        type=MutationType(type_),
        payload=json.loads(payload_json),
        timestamp=ts,
        retry_count=retry_count,
        max_retries=max_retries,
    )
