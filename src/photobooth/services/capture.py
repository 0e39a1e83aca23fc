"""Capture strategies used when a session is triggered."""

import asyncio
import logging
import shlex
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from uuid import uuid4

from photobooth.domain.commands import Command, CommandType
from photobooth.domain.errors import CaptureFailed
from photobooth.domain.sessions import PhotoRecord, SessionRecord, SessionStatus
from photobooth.services.command_queue import CommandQueue
from photobooth.services.photo_store import utc_now
from photobooth.services.uploads import UploadService

logger = logging.getLogger(__name__)


class Camera(Protocol):
    """Something that takes a picture and leaves it on local disk."""

    async def capture(self) -> Path:
        """Capture a photo and return the file path."""


class CaptureStrategy(Protocol):
    """How a trigger request turns into a photo."""

    mode: str

    async def trigger(self, session: SessionRecord) -> str:
        """Start a capture for the session and return a status message."""


@dataclass
class CommandCamera(Camera):
    """Run a tethering command such as gphoto2 and collect its output file.

    ``command`` is a shell-style template; ``{filename}`` is replaced with a
    fresh path inside ``output_dir``.
    """

    command: str
    output_dir: Path
    timeout_seconds: float = 15.0
    attempts: int = 3
    retry_delay_seconds: float = 1.0

    async def capture(self) -> Path:
        """Capture with bounded retries, raising ``CaptureFailed`` at the end."""
        last_error = "unknown error"
        for attempt in range(1, self.attempts + 1):
            filename = self.output_dir / f"camera-{int(time.time() * 1000)}.jpg"
            try:
                return await self._capture_once(filename)
            except (OSError, RuntimeError, TimeoutError) as exc:
                last_error = str(exc) or type(exc).__name__
                logger.warning(
                    "Capture attempt failed",
                    extra={"attempt": attempt, "error": last_error},
                )
            if attempt < self.attempts:
                await asyncio.sleep(self.retry_delay_seconds)
        raise CaptureFailed(f"Camera capture failed: {last_error}")

    async def _capture_once(self, filename: Path) -> Path:
        args = [part.format(filename=filename) for part in shlex.split(self.command)]
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            _, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.timeout_seconds
            )
        except TimeoutError:
            process.kill()
            await process.wait()
            raise TimeoutError(
                f"capture timed out after {self.timeout_seconds}s"
            ) from None
        if process.returncode != 0:
            raise RuntimeError(stderr.decode(errors="replace").strip())
        if not filename.exists():
            raise RuntimeError("Photo file not created")
        return filename


@dataclass
class SimulatedCapture(CaptureStrategy):
    """Attach a canned image instead of using a camera."""

    photo_url: str
    mode: str = "simulated"

    async def trigger(self, session: SessionRecord) -> str:
        """Append the canned photo to the session."""
        photo_id = uuid4().hex
        session.photos.append(
            PhotoRecord(
                photo_id=photo_id,
                storage_id=f"simulated/{photo_id}",
                url=self.photo_url,
                captured_at=utc_now(),
            )
        )
        return "Simulated photo captured"


@dataclass
class LocalCapture(CaptureStrategy):
    """Capture on this machine and upload the result into the session."""

    camera: Camera
    uploads: UploadService
    mode: str = "local"

    async def trigger(self, session: SessionRecord) -> str:
        """Capture, upload and clean up the temporary file."""
        session.status = SessionStatus.CAPTURING
        try:
            path = await self.camera.capture()
        except CaptureFailed:
            session.status = SessionStatus.ERROR
            raise
        session.status = SessionStatus.UPLOADING
        try:
            report = await self.uploads.upload_path(path, session_id=session.id)
        except Exception:
            session.status = SessionStatus.ERROR
            raise
        finally:
            path.unlink(missing_ok=True)
        session.status = SessionStatus.READY
        if report.queued:
            return "Photo captured; upload queued for retry"
        return "Photo captured"


@dataclass
class RemoteCapture(CaptureStrategy):
    """Hand the trigger to a remote camera agent through the command queue."""

    commands: CommandQueue
    mode: str = "remote"

    async def trigger(self, session: SessionRecord) -> str:
        """Enqueue a trigger command addressed to the session."""
        self.commands.enqueue(
            Command(
                type=CommandType.TRIGGER,
                timestamp=utc_now(),
                session_id=session.id,
            )
        )
        return "Trigger sent to remote camera"
