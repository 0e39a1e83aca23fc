"""Watch a tethering output folder and upload new photos."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from concurrent.futures import Future
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from photobooth.services.uploads import ALLOWED_EXTENSIONS

logger = logging.getLogger(__name__)


class NewPhotoHandler(FileSystemEventHandler):
    """Hand each new image file to a coroutine on the event loop."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        on_photo: Callable[[Path], Awaitable[object]],
    ) -> None:
        super().__init__()
        self.loop = loop
        self.on_photo = on_photo
        self.pending: list[Future] = []

    def on_created(self, event: FileSystemEvent) -> None:
        """Schedule an upload for a newly created image."""
        if event.is_directory:
            return
        path = Path(str(event.src_path))
        if path.name.startswith(".") or path.suffix.lower() not in ALLOWED_EXTENSIONS:
            return
        logger.info("New photo detected", extra={"path": str(path)})
        future = asyncio.run_coroutine_threadsafe(self.on_photo(path), self.loop)
        future.add_done_callback(_log_failure)
        self.pending = [item for item in self.pending if not item.done()]
        self.pending.append(future)


class CaptureFolderWatcher:
    """Lazily started watchdog observer over the capture folder."""

    def __init__(
        self,
        folder: Path,
        on_photo: Callable[[Path], Awaitable[object]],
        settle_seconds: float = 2.0,
        poll_seconds: float = 0.1,
    ) -> None:
        self.folder = folder
        self.on_photo = on_photo
        self.settle_seconds = settle_seconds
        self.poll_seconds = poll_seconds
        self._observer: Observer | None = None

    @property
    def is_running(self) -> bool:
        """Return true once the observer thread is running."""
        return self._observer is not None

    def start(self) -> None:
        """Start observing; must be called from the event loop thread."""
        if self._observer is not None:
            return
        self.folder.mkdir(parents=True, exist_ok=True)
        handler = NewPhotoHandler(asyncio.get_running_loop(), self._handle_photo)
        observer = Observer()
        observer.schedule(handler, str(self.folder), recursive=False)
        observer.start()
        self._observer = observer
        logger.info("Watching capture folder", extra={"folder": str(self.folder)})

    def stop(self) -> None:
        """Stop the observer thread."""
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None

    async def _handle_photo(self, path: Path) -> object:
        await wait_until_stable(path, self.settle_seconds, self.poll_seconds)
        return await self.on_photo(path)


async def wait_until_stable(
    path: Path, settle_seconds: float, poll_seconds: float = 0.1
) -> None:
    """Wait until the file size stops changing for ``settle_seconds``."""
    loop = asyncio.get_running_loop()
    last_size = -1
    stable_since = loop.time()
    while True:
        size = path.stat().st_size
        now = loop.time()
        if size != last_size:
            last_size = size
            stable_since = now
        elif now - stable_since >= settle_seconds:
            return
        await asyncio.sleep(poll_seconds)


def _log_failure(future: Future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("Upload of watched photo failed", exc_info=exc)
