"""Camera agent that runs next to the camera and serves a remote booth."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from photobooth.adapters.booth_client import BoothClient
from photobooth.domain.commands import CommandType
from photobooth.domain.errors import CaptureFailed
from photobooth.domain.sessions import SessionStatus
from photobooth.services.capture import Camera

logger = logging.getLogger(__name__)


@dataclass
class RemoteCameraAgent:
    """Long-poll the booth for commands and act on trigger requests."""

    client: BoothClient
    camera: Camera
    error_backoff_seconds: float = 5.0

    async def run_forever(self) -> None:
        """Process commands until cancelled, backing off after any failure."""
        logger.info("Camera agent listening for commands")
        while True:
            try:
                await self.run_once()
            except httpx.HTTPError as exc:
                logger.warning("Booth unreachable", extra={"error": str(exc)})
                await asyncio.sleep(self.error_backoff_seconds)
            except Exception:
                logger.exception("Command handling failed")
                await asyncio.sleep(self.error_backoff_seconds)

    async def run_once(self) -> str | None:
        """Handle at most one command; return its type when one arrived."""
        command = await self.client.poll_command(wait=True)
        if command is None:
            return None
        command_type = command["command"]
        session_id = command.get("sessionId")
        if command_type == CommandType.TRIGGER.value:
            await self._handle_trigger(session_id)
        else:
            logger.info(
                "Session event", extra={"command": command_type, "session_id": session_id}
            )
        return command_type

    async def capture_into(self, session_id: str) -> dict[str, Any]:
        """Capture a photo and upload it into the given session."""
        await self.client.update_status(session_id, SessionStatus.CAPTURING)
        try:
            path = await self.camera.capture()
        except CaptureFailed:
            await self.client.update_status(session_id, SessionStatus.ERROR)
            raise
        await self.client.update_status(session_id, SessionStatus.UPLOADING)
        try:
            result = await self._upload(path, session_id)
        finally:
            path.unlink(missing_ok=True)
        await self.client.update_status(session_id, SessionStatus.READY)
        return result

    async def _handle_trigger(self, session_id: str | None) -> None:
        current = await self.client.current()
        active_id = current.get("sessionId") if current.get("active") else None
        if session_id is None or session_id != active_id:
            logger.warning(
                "Skipping stale trigger",
                extra={"session_id": session_id, "active_session_id": active_id},
            )
            return
        try:
            result = await self.capture_into(session_id)
        except CaptureFailed as exc:
            logger.error(exc.message, extra={"session_id": session_id})
            return
        logger.info(
            "Photo delivered",
            extra={"session_id": session_id, "photo_count": result.get("photoCount")},
        )

    async def _upload(self, path: Path, session_id: str) -> dict[str, Any]:
        try:
            return await self.client.upload_photo(path, session_id)
        except (httpx.HTTPError, OSError):
            await self.client.update_status(session_id, SessionStatus.ERROR)
            raise
