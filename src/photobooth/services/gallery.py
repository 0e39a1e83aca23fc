"""Resolve share links to the photos behind them."""

import logging
from dataclasses import dataclass

from photobooth.adapters.cloudinary_storage import PhotoStorage
from photobooth.domain.errors import NotFound, StorageUnavailable
from photobooth.services.state import BoothState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GalleryPhoto:
    """A photo as shown on the share page."""

    url: str
    download_url: str


@dataclass
class GalleryService:
    """Look up a session's photos in memory, falling back to remote storage."""

    state: BoothState
    storage: PhotoStorage
    folder: str = "photobooth"

    async def resolve(self, short_id: str) -> list[GalleryPhoto]:
        """Return the photos for a short id, raising ``NotFound`` if none."""
        session = self.state.store.get(short_id)
        if session is not None and session.photos:
            return [_gallery_photo(photo.url) for photo in session.photos]

        try:
            stored = await self.storage.list_by_prefix(f"{self.folder}/{short_id}/")
        except StorageUnavailable as exc:
            logger.warning(
                "Storage lookup for share link failed",
                extra={"short_id": short_id, "error": exc.message},
            )
            stored = []
        if not stored:
            raise NotFound("Session not found")
        return [_gallery_photo(photo.url) for photo in stored]


def attachment_url(url: str) -> str:
    """Return a Cloudinary URL that downloads instead of displaying."""
    if "/upload/" not in url or "/upload/fl_attachment/" in url:
        return url
    return url.replace("/upload/", "/upload/fl_attachment/", 1)


def _gallery_photo(url: str) -> GalleryPhoto:
    return GalleryPhoto(url=url, download_url=attachment_url(url))
