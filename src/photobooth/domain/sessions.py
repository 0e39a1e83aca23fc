"""Domain models for photobooth sessions."""

import enum
from dataclasses import dataclass, field
from datetime import datetime


class SessionStatus(str, enum.Enum):
    """Capture status reported for an active session."""

    READY = "Ready"
    CAPTURING = "Capturing"
    UPLOADING = "Uploading"
    ERROR = "Error"


@dataclass(frozen=True)
class PhotoRecord:
    """A photo stored remotely and attached to a session."""

    photo_id: str
    storage_id: str
    url: str
    captured_at: datetime

    def to_payload(self) -> dict[str, object]:
        """Serialize for polling clients."""
        return {
            "photoId": self.photo_id,
            "publicId": self.storage_id,
            "cloudinaryUrl": self.url,
            "capturedAt": self.captured_at.isoformat(),
        }


@dataclass
class SessionRecord:
    """One photobooth run held in memory."""

    id: str
    created_at: datetime
    photos: list[PhotoRecord] = field(default_factory=list)
    active: bool = False
    status: SessionStatus = SessionStatus.READY
    finished_at: datetime | None = None
    expires_at: datetime | None = None
    countdown_target: datetime | None = None

    @property
    def photo_count(self) -> int:
        """Number of photos currently attached."""
        return len(self.photos)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view returned to polling clients."""

    active: bool
    session_id: str | None = None
    photos: tuple[PhotoRecord, ...] = ()
    status: SessionStatus | None = None
    countdown_target: datetime | None = None

    def to_payload(self) -> dict[str, object]:
        """Serialize the snapshot for the current-session endpoint."""
        if self.session_id is None:
            return {"active": False}
        return {
            "active": self.active,
            "sessionId": self.session_id,
            "photoCount": len(self.photos),
            "photos": [photo.to_payload() for photo in self.photos],
            "status": self.status.value if self.status else None,
            "countdownTarget": (
                int(self.countdown_target.timestamp() * 1000)
                if self.countdown_target
                else None
            ),
        }


@dataclass(frozen=True)
class FinishedSession:
    """Result of finishing a session."""

    session_id: str
    photo_count: int
    download_url: str
    qr_code: str

    def to_payload(self) -> dict[str, object]:
        """Serialize the finish result."""
        return {
            "success": True,
            "sessionId": self.session_id,
            "qrCode": self.qr_code,
            "downloadUrl": self.download_url,
            "photoCount": self.photo_count,
        }
