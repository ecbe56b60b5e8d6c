"""
Interruption Ledger — records interruptions against Pomodoro sessions.

An interruption is written to the live session (when its id matches) and to
the historical session with the same id in one call, so both copies agree.
Counters are always recomputed from the list length, never adjusted ad hoc.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterator, List, Optional

from ..models import Interruption, InterruptionReason, PomodoroSession, new_id
from ..store.sync_queue import MemorySyncQueue, MutationType, Persister, SyncQueueEntry
from .engine import TimerEngine


class InterruptionLedger:

    def __init__(
        self,
        timer: TimerEngine,
        persister: Optional[Persister] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._timer = timer
        self._persister = persister if persister is not None else MemorySyncQueue()
        self._clock = clock

    def add_interruption(
        self,
        session_id: str,
        reason: InterruptionReason | str,
        description: Optional[str] = None,
    ) -> Interruption:
        interruption = Interruption(
            id=new_id(),
            session_id=session_id,
            timestamp=self._clock(),
            reason=InterruptionReason(reason),
            description=description,
            duration=0,
        )
        live = self._timer.current_session
        if live is not None and live.id == session_id:
            _append(live, interruption)

        for session in self._timer.sessions:
            if session.id == session_id and session is not live:
                _append(session, interruption)
                self._session_changed(session)
        return interruption

    def remove_interruption(self, interruption_id: str) -> bool:
        removed = False
        for session, is_historical in self._all_sessions():
            kept = [i for i in session.interruption_list if i.id != interruption_id]
            if len(kept) == len(session.interruption_list):
                continue
            session.interruption_list = kept
            session.interruptions = len(kept)
            removed = True
            if is_historical:
                self._session_changed(session)
        return removed

    def close_interruption(self, interruption_id: str, duration_seconds: int) -> bool:
        """Record how long an interruption lasted on every copy that holds it."""
        closed = False
        for session, is_historical in self._all_sessions():
            for i, item in enumerate(session.interruption_list):
                if item.id != interruption_id:
                    continue
                session.interruption_list[i] = Interruption(
                    id=item.id,
                    session_id=item.session_id,
                    timestamp=item.timestamp,
                    reason=item.reason,
                    description=item.description,
                    duration=max(0, int(duration_seconds)),
                )
                closed = True
                if is_historical:
                    self._session_changed(session)
        return closed

    def interruptions_for(self, session_id: str) -> List[Interruption]:
        live = self._timer.current_session
        if live is not None and live.id == session_id:
            return list(live.interruption_list)
        session = self._timer.find_session(session_id)
        return list(session.interruption_list) if session else []

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _all_sessions(self) -> Iterator[tuple[PomodoroSession, bool]]:
        live = self._timer.current_session
        if live is not None:
            yield live, False
        for session in self._timer.sessions:
            if session is not live:
                yield session, True

    def _session_changed(self, session: PomodoroSession) -> None:
        self._persister.enqueue_mutation(
            SyncQueueEntry(type=MutationType.UPDATE_SESSION, payload=session.to_dict())
        )


def _append(session: PomodoroSession, interruption: Interruption) -> None:
    # each copy gets its own list so the two never alias
    session.interruption_list = [*session.interruption_list, interruption]
    session.interruptions = len(session.interruption_list)
