"""Session state machine for the photobooth."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from photobooth.domain.commands import Command, CommandType
from photobooth.domain.errors import (
    Conflict,
    EmptySession,
    InvalidState,
    NotFound,
)
from photobooth.domain.sessions import (
    FinishedSession,
    SessionRecord,
    SessionSnapshot,
    SessionStatus,
)
from photobooth.services.capture import CaptureStrategy
from photobooth.services.command_queue import CommandQueue
from photobooth.services.photo_store import utc_now
from photobooth.services.state import BoothState, build_share_link

logger = logging.getLogger(__name__)


class CaptureWatcher(Protocol):
    """Optional local collaborator started with the first session."""

    @property
    def is_running(self) -> bool:
        """Return true once the watcher is observing."""

    def start(self) -> None:
        """Begin watching."""


@dataclass
class SessionService:
    """Owns the single active session and its transitions.

    ``NONE -> ACTIVE -> FINISHED -> deleted`` or ``ACTIVE -> CANCELLED``.
    Every mutation of the active pointer goes through this service.
    """

    state: BoothState
    commands: CommandQueue
    capture: CaptureStrategy
    qr_renderer: Callable[[str], str]
    delete_delay_seconds: float = 600.0
    countdown_seconds: float = 3.0
    public_base_url: str | None = None
    watcher: CaptureWatcher | None = None
    clock: Callable[[], datetime] = utc_now
    _last_finished: FinishedSession | None = field(default=None, init=False)
    _countdown_task: asyncio.Task | None = field(default=None, init=False)

    def start(self) -> str:
        """Start a new active session and return its id."""
        if self.state.active_session() is not None:
            raise Conflict("A session is already active")
        session = self.state.allocate(active=True)
        self.state.active_session_id = session.id
        self._enqueue(CommandType.SESSION_START, session.id)
        self._ensure_watcher()
        logger.info("Session started", extra={"session_id": session.id})
        return session.id

    async def trigger(self) -> tuple[str, str]:
        """Capture a photo for the active session; return (mode, message)."""
        session = self._require_active()
        session.countdown_target = None
        message = await self.capture.trigger(session)
        logger.info(
            "Capture triggered",
            extra={"session_id": session.id, "mode": self.capture.mode},
        )
        return self.capture.mode, message

    def countdown(self, session_id: str | None = None) -> datetime:
        """Schedule a trigger after the countdown and return its target time."""
        session = self._require_active()
        if session_id and session_id != session.id:
            raise InvalidState(f"Session {session_id} is not active")
        target = self.clock() + timedelta(seconds=self.countdown_seconds)
        session.countdown_target = target
        self._cancel_countdown()
        self._countdown_task = asyncio.get_running_loop().create_task(
            self._trigger_after_countdown(session.id)
        )
        return target

    def update_status(self, session_id: str, status: SessionStatus) -> None:
        """Record a status reported by a camera agent.

        A session unknown to this process (lost on restart) is recreated and
        adopted as active when nothing else is active.
        """
        session = self.state.store.get(session_id)
        if session is None:
            logger.warning(
                "Status for unknown session; recreating",
                extra={"session_id": session_id},
            )
            session = self.state.store.create(session_id)
            if self.state.active_session() is None:
                session.active = True
                self.state.active_session_id = session.id
        session.status = status

    def current(self, session_id: str | None = None) -> SessionSnapshot:
        """Return a read-only view of the requested or active session."""
        session = (
            self.state.store.get(session_id)
            if session_id
            else self.state.active_session()
        )
        if session is None:
            return SessionSnapshot(active=False)
        return SessionSnapshot(
            active=session.active,
            session_id=session.id,
            photos=tuple(session.photos),
            status=session.status,
            countdown_target=session.countdown_target,
        )

    def finish(self, base_url: str) -> FinishedSession:
        """Close the active session and return its share link and QR code."""
        session = self._require_active()
        if not session.photos:
            raise EmptySession("No photos in session", photoCount=0)

        download_url = build_share_link(self.public_base_url or base_url, session.id)
        qr_code = self.qr_renderer(download_url)
        now = self.clock()
        session.active = False
        session.countdown_target = None
        session.finished_at = now
        session.expires_at = now + timedelta(seconds=self.delete_delay_seconds)
        self.state.active_session_id = None
        self._enqueue(CommandType.SESSION_FINISH, session.id)
        self._cancel_countdown()

        result = FinishedSession(
            session_id=session.id,
            photo_count=session.photo_count,
            download_url=download_url,
            qr_code=qr_code,
        )
        self._last_finished = result
        logger.info(
            "Session finished",
            extra={"session_id": session.id, "photo_count": session.photo_count},
        )
        return result

    def cancel(self) -> str | None:
        """Drop the active session without a share link; no-op when idle."""
        session = self.state.active_session()
        if session is None:
            return None
        self.state.active_session_id = None
        self.state.store.delete(session.id)
        self._cancel_countdown()
        logger.info("Session cancelled", extra={"session_id": session.id})
        return session.id

    def delete_photo(self, session_id: str, photo_id: str) -> None:
        """Remove one photo from a session."""
        session = self.state.store.get(session_id)
        if session is None:
            raise NotFound("Session not found")
        for index, photo in enumerate(session.photos):
            if photo.photo_id == photo_id:
                del session.photos[index]
                return
        raise NotFound("Photo not found")

    def last_finished(self) -> FinishedSession:
        """Return the most recently finished session that still exists."""
        result = self._last_finished
        if result is None or self.state.store.get(result.session_id) is None:
            raise NotFound("No finished session")
        return result

    def purge_expired(self) -> None:
        """Delete sessions whose post-finish grace period has elapsed."""
        expired = self.state.store.purge_expired()
        if expired:
            logger.info("Expired sessions removed", extra={"session_ids": expired})

    def _require_active(self) -> SessionRecord:
        session = self.state.active_session()
        if session is None:
            raise InvalidState("No active session")
        return session

    def _enqueue(self, command_type: CommandType, session_id: str) -> None:
        self.commands.enqueue(
            Command(
                type=command_type,
                timestamp=self.clock(),
                session_id=session_id,
            )
        )

    def _ensure_watcher(self) -> None:
        if self.watcher is None or self.watcher.is_running:
            return
        try:
            self.watcher.start()
        except OSError:
            logger.exception("Failed to start capture folder watcher")

    def _cancel_countdown(self) -> None:
        if self._countdown_task is not None and not self._countdown_task.done():
            self._countdown_task.cancel()
        self._countdown_task = None

    async def _trigger_after_countdown(self, session_id: str) -> None:
        await asyncio.sleep(self.countdown_seconds)
        active = self.state.active_session()
        if active is None or active.id != session_id:
            return
        try:
            await self.trigger()
        except Exception:
            logger.exception(
                "Countdown trigger failed", extra={"session_id": session_id}
            )
