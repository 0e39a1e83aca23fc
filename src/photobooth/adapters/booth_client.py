"""HTTP client for the booth server API, used by the remote camera agent."""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import httpx

from photobooth.domain.sessions import SessionStatus


class BoothClient(Protocol):
    """Interface for talking to a booth server."""

    async def start_session(self) -> str:
        """Start a session and return its id."""

    async def current(self) -> dict[str, Any]:
        """Return the current session payload."""

    async def poll_command(self, wait: bool = True) -> dict[str, Any] | None:
        """Return the next command, or ``None`` when none arrived."""

    async def trigger(self) -> dict[str, Any]:
        """Trigger a capture on the active session."""

    async def update_status(self, session_id: str, status: SessionStatus) -> None:
        """Report the agent's capture status."""

    async def upload_photo(self, path: Path, session_id: str) -> dict[str, Any]:
        """Upload a captured file into the session."""

    async def finish(self) -> dict[str, Any]:
        """Finish the active session and return the share payload."""


@dataclass
class HttpxBoothClient(BoothClient):
    """Booth API client using httpx."""

    base_url: str
    http_client: httpx.AsyncClient
    poll_timeout_seconds: float = 30.0

    @classmethod
    def create(cls, base_url: str) -> "HttpxBoothClient":
        """Create a booth client with a managed httpx session."""
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def start_session(self) -> str:
        """Start a session on the booth."""
        payload = await self._post("/api/session/start")
        return str(payload["sessionId"])

    async def current(self) -> dict[str, Any]:
        """Fetch the active session snapshot."""
        response = await self.http_client.get(
            f"{self.base_url}/api/session/current", timeout=10
        )
        response.raise_for_status()
        return response.json()

    async def poll_command(self, wait: bool = True) -> dict[str, Any] | None:
        """Long-poll the command queue."""
        response = await self.http_client.get(
            f"{self.base_url}/api/session/command",
            params={"wait": "true" if wait else "false"},
            timeout=self.poll_timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        if not payload.get("command"):
            return None
        return payload

    async def trigger(self) -> dict[str, Any]:
        """Trigger a capture."""
        return await self._post("/api/session/trigger", timeout=60)

    async def update_status(self, session_id: str, status: SessionStatus) -> None:
        """Report a status change for the session."""
        await self._post(
            "/api/session/status",
            json={"sessionId": session_id, "status": status.value},
        )

    async def upload_photo(self, path: Path, session_id: str) -> dict[str, Any]:
        """Upload a local file as multipart form data."""
        content_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
        response = await self.http_client.post(
            f"{self.base_url}/api/upload",
            data={"sessionId": session_id},
            files={"photo": (path.name, path.read_bytes(), content_type)},
            timeout=60,
        )
        response.raise_for_status()
        return response.json()

    async def finish(self) -> dict[str, Any]:
        """Finish the active session."""
        return await self._post("/api/session/finish")

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _post(
        self, path: str, json: dict[str, Any] | None = None, timeout: float = 10
    ) -> dict[str, Any]:
        response = await self.http_client.post(
            f"{self.base_url}{path}", json=json, timeout=timeout
        )
        response.raise_for_status()
        return response.json()
