"""Models for uploads and remote storage results."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class UploadFile:
    """A file received from a client, before storage."""

    filename: str
    content_type: str
    data: bytes


@dataclass(frozen=True)
class StoredPhoto:
    """An object held by the remote storage service."""

    storage_id: str
    url: str
    created_at: datetime | None = None


@dataclass
class RetryItem:
    """A failed upload waiting for the background sweep."""

    file: UploadFile
    session_id: str
    photo_id: str
    attempts: int = 0


@dataclass
class UploadReport:
    """Outcome of an upload request."""

    session_id: str
    photo_count: int
    uploaded: int
    failed: int
    created_session: bool = False
    download_url: str | None = None
    qr_code: str | None = None
    photo_ids: list[str] = field(default_factory=list)

    @property
    def queued(self) -> bool:
        """True when nothing was stored and every file went to the retry queue."""
        return self.uploaded == 0 and self.failed > 0

    def to_payload(self) -> dict[str, object]:
        """Serialize the report for the upload endpoint."""
        if self.queued:
            message = "Upload failed, queued for retry"
        elif self.failed:
            message = (
                f"Uploaded {self.uploaded} photo(s); "
                f"{self.failed} queued for retry"
            )
        else:
            message = f"Uploaded {self.uploaded} photo(s)"
        payload: dict[str, object] = {
            "success": True,
            "sessionId": self.session_id,
            "photoCount": self.photo_count,
            "uploaded": self.uploaded,
            "failed": self.failed,
            "queuedForRetry": self.failed,
            "queued": self.queued,
            "photoIds": self.photo_ids,
            "message": message,
        }
        if self.download_url:
            payload["downloadUrl"] = self.download_url
        if self.qr_code:
            payload["qrCode"] = self.qr_code
        return payload
