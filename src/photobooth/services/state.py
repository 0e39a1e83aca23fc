"""Process-wide booth state shared by the session and upload services."""

from dataclasses import dataclass, field

from photobooth.domain.sessions import SessionRecord
from photobooth.services.photo_store import PhotoStore
from photobooth.services.short_ids import ShortIdGenerator


@dataclass
class BoothState:
    """Owns the photo store, the id allocator and the active-session pointer.

    Only ``SessionService`` moves the active pointer; the upload pipeline
    reads it and may allocate inactive sessions for the legacy upload flow.
    """

    store: PhotoStore
    short_ids: ShortIdGenerator = field(default_factory=ShortIdGenerator)
    active_session_id: str | None = None

    def active_session(self) -> SessionRecord | None:
        """Return the active session, clearing a pointer to a vanished record."""
        if self.active_session_id is None:
            return None
        session = self.store.get(self.active_session_id)
        if session is None or not session.active:
            self.active_session_id = None
            return None
        return session

    def allocate(self, active: bool = False) -> SessionRecord:
        """Create a session under the next short id not already in the store.

        Records recreated for agents or uploads after a restart can hold ids
        the counter has not reached yet; those ids are skipped.
        """
        session_id = self.short_ids.next_id()
        while self.store.get(session_id) is not None:
            session_id = self.short_ids.next_id()
        return self.store.create(session_id, active=active)


def build_share_link(base_url: str, session_id: str) -> str:
    """Return the public link for a session's photos."""
    return f"{base_url.rstrip('/')}/{session_id}"
