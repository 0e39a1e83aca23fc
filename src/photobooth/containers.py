"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from photobooth.adapters.cloudinary_storage import HttpxCloudinaryStorage, PhotoStorage
from photobooth.config import AgentSettings, Settings, resolve_capture_mode
from photobooth.services.background import PeriodicTask
from photobooth.services.capture import (
    CaptureStrategy,
    CommandCamera,
    LocalCapture,
    RemoteCapture,
    SimulatedCapture,
)
from photobooth.services.capture_watcher import CaptureFolderWatcher
from photobooth.services.command_queue import CommandQueue
from photobooth.services.gallery import GalleryService
from photobooth.services.photo_store import InMemoryPhotoStore
from photobooth.services.qr import render_qr_data_url
from photobooth.services.retry_queue import UploadRetryQueue
from photobooth.services.sessions import SessionService
from photobooth.services.state import BoothState
from photobooth.services.uploads import UploadService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    state: BoothState
    command_queue: CommandQueue
    retry_queue: UploadRetryQueue
    storage: PhotoStorage
    upload_service: UploadService
    session_service: SessionService
    gallery_service: GalleryService
    retry_sweep: PeriodicTask
    expiry_sweep: PeriodicTask
    close_resources: Callable[[], Awaitable[None]]


def build_container(
    settings: Settings | None = None, storage: PhotoStorage | None = None
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    cloudinary: HttpxCloudinaryStorage | None = None
    if storage is None:
        cloudinary = HttpxCloudinaryStorage.create(
            cloud_name=resolved_settings.cloudinary_cloud_name,
            api_key=resolved_settings.cloudinary_api_key,
            api_secret=resolved_settings.cloudinary_api_secret,
        )
        storage = cloudinary

    state = BoothState(store=InMemoryPhotoStore())
    command_queue = CommandQueue(
        max_wait_seconds=resolved_settings.long_poll_max_wait_seconds,
        poll_interval_seconds=resolved_settings.long_poll_interval_seconds,
    )
    retry_queue = UploadRetryQueue(max_attempts=resolved_settings.max_retry_attempts)
    upload_service = UploadService(
        state=state,
        storage=storage,
        retry_queue=retry_queue,
        qr_renderer=render_qr_data_url,
        folder=resolved_settings.cloudinary_folder,
        attempts=resolved_settings.upload_attempts,
        retry_delay_seconds=resolved_settings.upload_retry_delay_seconds,
        max_upload_bytes=resolved_settings.max_upload_bytes,
    )
    capture = _build_capture(resolved_settings, command_queue, upload_service)

    watcher = None
    if resolved_settings.capture_watch_dir and not resolved_settings.vercel:
        watcher = CaptureFolderWatcher(
            folder=resolved_settings.capture_watch_dir,
            on_photo=upload_service.upload_to_active,
        )

    session_service = SessionService(
        state=state,
        commands=command_queue,
        capture=capture,
        qr_renderer=render_qr_data_url,
        delete_delay_seconds=resolved_settings.session_delete_delay_seconds,
        countdown_seconds=resolved_settings.countdown_seconds,
        public_base_url=resolved_settings.public_base_url,
        watcher=watcher,
    )
    gallery_service = GalleryService(
        state=state, storage=storage, folder=resolved_settings.cloudinary_folder
    )
    retry_sweep = PeriodicTask(
        name="retry-sweep",
        interval_seconds=resolved_settings.retry_sweep_interval_seconds,
        job=upload_service.process_retry_queue,
    )
    expiry_sweep = PeriodicTask(
        name="expiry-sweep",
        interval_seconds=resolved_settings.expiry_sweep_interval_seconds,
        job=session_service.purge_expired,
    )

    async def close_resources() -> None:
        await retry_sweep.stop()
        await expiry_sweep.stop()
        if watcher is not None:
            watcher.stop()
        if cloudinary is not None:
            await cloudinary.close()

    return AppContainer(
        settings=resolved_settings,
        state=state,
        command_queue=command_queue,
        retry_queue=retry_queue,
        storage=storage,
        upload_service=upload_service,
        session_service=session_service,
        gallery_service=gallery_service,
        retry_sweep=retry_sweep,
        expiry_sweep=expiry_sweep,
        close_resources=close_resources,
    )


def build_camera(settings: AgentSettings) -> CommandCamera:
    """Create the tethered camera described by the settings."""
    return CommandCamera(
        command=settings.capture_command,
        output_dir=settings.capture_output_dir,
        timeout_seconds=settings.capture_timeout_seconds,
        attempts=settings.capture_attempts,
        retry_delay_seconds=settings.capture_retry_delay_seconds,
    )


def _build_capture(
    settings: Settings, command_queue: CommandQueue, uploads: UploadService
) -> CaptureStrategy:
    mode = resolve_capture_mode(settings)
    if mode == "simulated":
        return SimulatedCapture(photo_url=settings.simulated_photo_url)
    if mode == "remote":
        return RemoteCapture(commands=command_queue)
    return LocalCapture(camera=build_camera(settings), uploads=uploads)
