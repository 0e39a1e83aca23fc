"""In-memory session storage."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from photobooth.domain.sessions import SessionRecord


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(tz=UTC)


class PhotoStore(Protocol):
    """Storage interface for session records."""

    def create(self, session_id: str, active: bool = False) -> SessionRecord:
        """Create and return a new session record."""

    def get(self, session_id: str) -> SessionRecord | None:
        """Return a session if present and not expired."""

    def ensure(self, session_id: str) -> SessionRecord:
        """Return an existing session or create a minimal one."""

    def delete(self, session_id: str) -> None:
        """Remove a session record."""

    def purge_expired(self) -> list[str]:
        """Remove expired sessions and return their ids."""

    def count(self) -> int:
        """Return the number of stored sessions."""


@dataclass
class InMemoryPhotoStore(PhotoStore):
    """Dictionary-backed store; records vanish on restart."""

    _sessions: dict[str, SessionRecord]
    clock: Callable[[], datetime]

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._sessions = {}
        self.clock = clock

    def create(self, session_id: str, active: bool = False) -> SessionRecord:
        """Create a session record, replacing any stale record with the same id."""
        session = SessionRecord(id=session_id, created_at=self.clock(), active=active)
        self._sessions[session_id] = session
        return session

    def get(self, session_id: str) -> SessionRecord | None:
        """Return a session, evicting it first if its deletion time has passed."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if session.expires_at is not None and self.clock() >= session.expires_at:
            self._sessions.pop(session_id, None)
            return None
        return session

    def ensure(self, session_id: str) -> SessionRecord:
        """Return the session, recreating a minimal record if it was lost."""
        return self.get(session_id) or self.create(session_id)

    def delete(self, session_id: str) -> None:
        """Remove a session record."""
        self._sessions.pop(session_id, None)

    def purge_expired(self) -> list[str]:
        """Drop every session whose scheduled deletion time has passed."""
        now = self.clock()
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if session.expires_at is not None and now >= session.expires_at
        ]
        for session_id in expired:
            self._sessions.pop(session_id, None)
        return expired

    def count(self) -> int:
        """Return the number of stored sessions."""
        return len(self._sessions)
