"""Thread-safe registry of live calculator sessions."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .session import CalculatorSession


class SessionNotFoundError(KeyError):
    """Raised when a session id is unknown or has expired."""


class SessionLimitError(RuntimeError):
    """Raised when no more sessions can be opened."""


@dataclass(slots=True)
class _Entry:
    session: CalculatorSession
    last_accessed: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def touch(self) -> None:
        self.last_accessed = datetime.now(timezone.utc)


class SessionStore:
    """In-memory session registry with TTL purging and a size cap."""

    def __init__(self, *, max_sessions: int = 256, ttl: timedelta = timedelta(minutes=30)) -> None:
        self.max_sessions = max(1, max_sessions)
        self.ttl = ttl
        self._items: dict[str, _Entry] = {}
        self._lock = threading.Lock()

    def _purge_locked(self) -> None:
        now = datetime.now(timezone.utc)
        expired = [
            session_id
            for session_id, entry in self._items.items()
            if now - entry.last_accessed > self.ttl
        ]
        for session_id in expired:
            self._items.pop(session_id, None)

    def create(self, session: CalculatorSession) -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            self._purge_locked()
            if len(self._items) >= self.max_sessions:
                raise SessionLimitError("Too many open calculator sessions")
            self._items[session_id] = _Entry(session=session)
        return session_id

    def get(self, session_id: str) -> CalculatorSession:
        with self._lock:
            self._purge_locked()
            entry = self._items.get(session_id)
            if entry is None:
                raise SessionNotFoundError("Session expired or not found")
            entry.touch()
            return entry.session

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._items.pop(session_id, None) is None:
                raise SessionNotFoundError("Session expired or not found")

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


__all__ = ["SessionLimitError", "SessionNotFoundError", "SessionStore"]
