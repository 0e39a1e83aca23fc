"""Shared test fixtures."""

from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from photobooth.adapters.booth_client import BoothClient
from photobooth.adapters.cloudinary_storage import PhotoStorage
from photobooth.config import Settings
from photobooth.containers import AppContainer, build_container
from photobooth.domain.errors import CaptureFailed, StorageUnavailable
from photobooth.domain.sessions import SessionStatus
from photobooth.domain.uploads import StoredPhoto, UploadFile
from photobooth.services.capture import Camera


@dataclass
class FakeClock:
    """Manually advanced clock."""

    now: datetime = field(
        default_factory=lambda: datetime(2024, 6, 1, 12, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class FakePhotoStorage(PhotoStorage):
    """In-memory storage that can be told to fail."""

    records: dict[str, StoredPhoto] = field(default_factory=dict)
    upload_calls: list[str] = field(default_factory=list)
    failures: int = 0
    fail_all: bool = False
    failing_filenames: set[str] = field(default_factory=set)
    list_error: bool = False

    async def upload(
        self, data: bytes, public_id: str, filename: str, content_type: str
    ) -> StoredPhoto:
        self.upload_calls.append(public_id)
        if self.fail_all or filename in self.failing_filenames or self.failures > 0:
            self.failures = max(self.failures - 1, 0)
            raise StorageUnavailable("storage down")
        photo = StoredPhoto(
            storage_id=public_id,
            url=f"https://res.cloudinary.com/demo/image/upload/{public_id}.jpg",
            created_at=datetime.now(tz=UTC),
        )
        self.records[public_id] = photo
        return photo

    async def fetch(self, public_id: str) -> StoredPhoto | None:
        return self.records.get(public_id)

    async def list_by_prefix(self, prefix: str) -> list[StoredPhoto]:
        if self.list_error:
            raise StorageUnavailable("listing failed")
        return [
            photo
            for public_id, photo in self.records.items()
            if public_id.startswith(prefix)
        ]


@dataclass
class FakeCamera(Camera):
    """Camera that writes a small JPEG into a directory."""

    directory: Path
    fail: bool = False
    captured: list[Path] = field(default_factory=list)

    async def capture(self) -> Path:
        if self.fail:
            raise CaptureFailed("Camera capture failed: no camera")
        path = self.directory / f"shot-{len(self.captured) + 1}.jpg"
        path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
        self.captured.append(path)
        return path


@dataclass
class FakeBoothClient(BoothClient):
    """Booth client that records calls instead of talking HTTP."""

    commands: deque[dict[str, Any]] = field(default_factory=deque)
    active_session_id: str | None = None
    statuses: list[tuple[str, SessionStatus]] = field(default_factory=list)
    uploads: list[tuple[str, str]] = field(default_factory=list)
    finished: int = 0
    closed: bool = False

    async def start_session(self) -> str:
        self.active_session_id = "0001"
        return self.active_session_id

    async def current(self) -> dict[str, Any]:
        if self.active_session_id is None:
            return {"active": False}
        return {"active": True, "sessionId": self.active_session_id}

    async def poll_command(self, wait: bool = True) -> dict[str, Any] | None:
        if not self.commands:
            return None
        return self.commands.popleft()

    async def trigger(self) -> dict[str, Any]:
        return {"success": True, "mode": "remote"}

    async def update_status(self, session_id: str, status: SessionStatus) -> None:
        self.statuses.append((session_id, status))

    async def upload_photo(self, path: Path, session_id: str) -> dict[str, Any]:
        self.uploads.append((path.name, session_id))
        return {"success": True, "photoCount": len(self.uploads)}

    async def finish(self) -> dict[str, Any]:
        self.finished += 1
        return {"success": True, "sessionId": self.active_session_id}

    async def close(self) -> None:
        self.closed = True


def image_upload(name: str = "photo.jpg", size: int = 16) -> UploadFile:
    """Build a small valid JPEG upload."""
    return UploadFile(filename=name, content_type="image/jpeg", data=b"\xff" * size)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        cloudinary_cloud_name="demo",
        cloudinary_api_key="key",
        cloudinary_api_secret="secret",
        environment="test",
        capture_mode="simulated",
        upload_retry_delay_seconds=0,
        long_poll_max_wait_seconds=0.3,
        long_poll_interval_seconds=0.05,
        countdown_seconds=0.05,
    )


@pytest.fixture
def storage() -> FakePhotoStorage:
    return FakePhotoStorage()


@pytest.fixture
def container(settings: Settings, storage: FakePhotoStorage) -> AppContainer:
    return build_container(settings, storage=storage)
