"""Upload pipeline: validation, storage push, retries and the retry sweep."""

import asyncio
import logging
import mimetypes
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from photobooth.adapters.cloudinary_storage import PhotoStorage
from photobooth.domain.errors import (
    FileTooLarge,
    InvalidFileType,
    NoFiles,
    NotFound,
    PermanentFailure,
    StorageUnavailable,
)
from photobooth.domain.sessions import PhotoRecord, SessionRecord
from photobooth.domain.uploads import RetryItem, UploadFile, UploadReport
from photobooth.services.photo_store import utc_now
from photobooth.services.retry_queue import UploadRetryQueue
from photobooth.services.state import BoothState, build_share_link

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


@dataclass
class UploadService:
    """Push photos to remote storage and record them on sessions."""

    state: BoothState
    storage: PhotoStorage
    retry_queue: UploadRetryQueue
    qr_renderer: Callable[[str], str]
    folder: str = "photobooth"
    attempts: int = 3
    retry_delay_seconds: float = 1.0
    max_upload_bytes: int = 10 * 1024 * 1024
    _sweeping: bool = field(default=False, init=False)

    async def upload_files(
        self,
        files: list[UploadFile],
        session_id: str | None = None,
        base_url: str | None = None,
    ) -> UploadReport:
        """Upload a batch of files into the resolved session.

        Files are uploaded concurrently and recorded in completion order.
        Files that keep failing go to the retry queue; the batch still
        succeeds with a partial-failure report.
        """
        if not files:
            raise NoFiles("No files uploaded")
        for upload in files:
            validate_upload(upload, self.max_upload_bytes)

        session, created = self._resolve_session(session_id)
        results = await asyncio.gather(
            *(self._upload_one(session.id, upload) for upload in files)
        )
        photo_ids = [photo_id for photo_id in results if photo_id is not None]
        report = UploadReport(
            session_id=session.id,
            photo_count=self._photo_count(session.id),
            uploaded=len(photo_ids),
            failed=len(results) - len(photo_ids),
            created_session=created,
            photo_ids=photo_ids,
        )
        if created and base_url:
            report.download_url = build_share_link(base_url, session.id)
            report.qr_code = self.qr_renderer(report.download_url)
        logger.info(
            "Upload batch finished",
            extra={
                "session_id": session.id,
                "uploaded": report.uploaded,
                "failed": report.failed,
            },
        )
        return report

    async def upload_by_url(
        self, session_id: str, storage_id: str, url: str | None = None
    ) -> UploadReport:
        """Record a photo an agent already pushed to storage."""
        if url is None:
            stored = await self.storage.fetch(storage_id)
            if stored is None:
                raise NotFound(f"Photo {storage_id} not found in storage")
            url = stored.url
        session = self.state.store.ensure(session_id)
        photo = PhotoRecord(
            photo_id=uuid4().hex,
            storage_id=storage_id,
            url=url,
            captured_at=utc_now(),
        )
        session.photos.append(photo)
        return UploadReport(
            session_id=session.id,
            photo_count=session.photo_count,
            uploaded=1,
            failed=0,
            photo_ids=[photo.photo_id],
        )

    async def upload_path(
        self, path: Path, session_id: str | None = None
    ) -> UploadReport:
        """Read a local image and upload it."""
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        data = await asyncio.to_thread(path.read_bytes)
        upload = UploadFile(filename=path.name, content_type=content_type, data=data)
        return await self.upload_files([upload], session_id=session_id)

    async def upload_to_active(self, path: Path) -> UploadReport | None:
        """Upload a local image into the active session, if there is one."""
        active = self.state.active_session()
        if active is None:
            logger.warning("No active session for photo", extra={"path": str(path)})
            return None
        return await self.upload_path(path, session_id=active.id)

    async def process_retry_queue(self) -> None:
        """Give every queued upload one more attempt."""
        if self._sweeping:
            logger.debug("Retry sweep already running; skipping")
            return
        self._sweeping = True
        try:
            await self._retry_items(self.retry_queue.drain())
        finally:
            self._sweeping = False

    async def _retry_items(self, items: list[RetryItem]) -> None:
        if not items:
            return
        logger.info("Retrying queued uploads", extra={"count": len(items)})
        for item in items:
            try:
                photo = await self._store(item.session_id, item.photo_id, item.file)
            except StorageUnavailable as exc:
                logger.warning(
                    "Queued upload failed again",
                    extra={"photo_id": item.photo_id, "error": str(exc)},
                )
                try:
                    self.retry_queue.requeue(item)
                except PermanentFailure as failure:
                    logger.error(failure.message, extra=failure.extra)
                continue
            self._record(item.session_id, photo)

    def _resolve_session(self, session_id: str | None) -> tuple[SessionRecord, bool]:
        if session_id:
            return self.state.store.ensure(session_id), False
        active = self.state.active_session()
        if active is not None:
            return active, False
        return self.state.allocate(active=False), True

    async def _upload_one(self, session_id: str, upload: UploadFile) -> str | None:
        photo_id = uuid4().hex
        for attempt in range(1, self.attempts + 1):
            try:
                photo = await self._store(session_id, photo_id, upload)
            except StorageUnavailable as exc:
                logger.warning(
                    "Upload attempt failed",
                    extra={
                        "session_id": session_id,
                        "photo_id": photo_id,
                        "attempt": attempt,
                        "error": str(exc),
                    },
                )
                if attempt < self.attempts:
                    await asyncio.sleep(self.retry_delay_seconds)
                continue
            self._record(session_id, photo)
            return photo_id

        self.retry_queue.push(
            RetryItem(file=upload, session_id=session_id, photo_id=photo_id)
        )
        return None

    async def _store(
        self, session_id: str, photo_id: str, upload: UploadFile
    ) -> PhotoRecord:
        stored = await self.storage.upload(
            upload.data,
            public_id=f"{self.folder}/{session_id}/{photo_id}",
            filename=upload.filename,
            content_type=upload.content_type,
        )
        return PhotoRecord(
            photo_id=photo_id,
            storage_id=stored.storage_id,
            url=stored.url,
            captured_at=utc_now(),
        )

    def _record(self, session_id: str, photo: PhotoRecord) -> None:
        session = self.state.store.get(session_id)
        if session is None:
            logger.warning(
                "Session vanished before photo could be recorded",
                extra={"session_id": session_id, "photo_id": photo.photo_id},
            )
            return
        session.photos.append(photo)

    def _photo_count(self, session_id: str) -> int:
        session = self.state.store.get(session_id)
        return session.photo_count if session else 0


def validate_upload(upload: UploadFile, max_bytes: int) -> None:
    """Reject anything but reasonably sized JPEG, PNG, GIF or WebP images."""
    extension = Path(upload.filename).suffix.lower()
    if (
        extension not in ALLOWED_EXTENSIONS
        or upload.content_type.lower() not in ALLOWED_MIME_TYPES
    ):
        raise InvalidFileType(
            "Only image files (JPEG, PNG, GIF, WebP) are allowed!",
            filename=upload.filename,
        )
    if len(upload.data) > max_bytes:
        raise FileTooLarge(
            f"File exceeds the {max_bytes // (1024 * 1024)}MB limit",
            filename=upload.filename,
        )
