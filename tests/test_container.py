"""Tests for container wiring."""

import asyncio

from photobooth.containers import build_container
from photobooth.services.capture import LocalCapture, RemoteCapture, SimulatedCapture
from photobooth.services.capture_watcher import CaptureFolderWatcher


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)
    assert container.session_service is not None
    assert container.gallery_service.storage is container.storage
    assert isinstance(container.session_service.capture, SimulatedCapture)
    assert container.session_service.watcher is None
    asyncio.run(container.close_resources())


def test_build_container_selects_capture_mode(settings, storage) -> None:
    remote = build_container(
        settings.model_copy(update={"capture_mode": "remote"}), storage=storage
    )
    local = build_container(
        settings.model_copy(update={"capture_mode": "local"}), storage=storage
    )

    assert isinstance(remote.session_service.capture, RemoteCapture)
    assert remote.session_service.capture.commands is remote.command_queue
    assert isinstance(local.session_service.capture, LocalCapture)


def test_build_container_wires_watcher_only_outside_serverless(
    settings, storage, tmp_path
) -> None:
    watched = build_container(
        settings.model_copy(update={"capture_watch_dir": tmp_path}), storage=storage
    )
    serverless = build_container(
        settings.model_copy(update={"capture_watch_dir": tmp_path, "vercel": True}),
        storage=storage,
    )

    assert isinstance(watched.session_service.watcher, CaptureFolderWatcher)
    assert serverless.session_service.watcher is None


def test_development_uses_longer_delete_delay(settings, storage) -> None:
    dev = build_container(
        settings.model_copy(update={"environment": "development"}), storage=storage
    )
    prod = build_container(settings, storage=storage)

    assert dev.session_service.delete_delay_seconds == 3600
    assert prod.session_service.delete_delay_seconds == 600
