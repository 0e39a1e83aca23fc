"""Tests for HTTP-based adapters."""

import asyncio
import hashlib
import json
from datetime import UTC, datetime

import httpx
import pytest

from photobooth.adapters.booth_client import HttpxBoothClient
from photobooth.adapters.cloudinary_storage import HttpxCloudinaryStorage, sign_params
from photobooth.domain.errors import StorageUnavailable
from photobooth.domain.sessions import SessionStatus


def _storage(handler) -> HttpxCloudinaryStorage:
    transport = httpx.MockTransport(handler)
    return HttpxCloudinaryStorage(
        cloud_name="demo",
        api_key="key",
        api_secret="secret",
        http_client=httpx.AsyncClient(transport=transport),
    )


def _booth(handler) -> HttpxBoothClient:
    transport = httpx.MockTransport(handler)
    return HttpxBoothClient(
        base_url="http://booth.local",
        http_client=httpx.AsyncClient(transport=transport),
    )


def test_sign_params_sorts_keys_and_appends_secret() -> None:
    expected = hashlib.sha1(b"public_id=a/b&timestamp=10secret").hexdigest()  # noqa: S324

    assert sign_params({"timestamp": "10", "public_id": "a/b"}, "secret") == expected


def test_cloudinary_upload_sends_signed_form() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/v1_1/demo/image/upload"
        body = request.content
        assert b'name="public_id"' in body
        assert b"photobooth/0001/abc" in body
        assert b'name="signature"' in body
        assert b'filename="shot.jpg"' in body
        return httpx.Response(
            200,
            json={
                "public_id": "photobooth/0001/abc",
                "secure_url": "https://res.cloudinary.com/demo/image/upload/abc.jpg",
                "created_at": "2024-06-01T12:00:00Z",
            },
        )

    storage = _storage(handler)

    photo = asyncio.run(
        storage.upload(b"jpeg", "photobooth/0001/abc", "shot.jpg", "image/jpeg")
    )

    assert photo.storage_id == "photobooth/0001/abc"
    assert photo.url.endswith("abc.jpg")
    assert photo.created_at == datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def test_cloudinary_errors_become_storage_unavailable() -> None:
    def failing(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": {"message": "boom"}})

    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused")

    with pytest.raises(StorageUnavailable):
        asyncio.run(_storage(failing).upload(b"x", "p", "a.jpg", "image/jpeg"))
    with pytest.raises(StorageUnavailable):
        asyncio.run(_storage(unreachable).list_by_prefix("photobooth/0001/"))


def test_cloudinary_fetch_uses_basic_auth_and_handles_missing() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["authorization"].startswith("Basic ")
        if request.url.path.endswith("/missing"):
            return httpx.Response(404, json={"error": {"message": "not found"}})
        return httpx.Response(
            200,
            json={"public_id": "photobooth/0001/abc", "url": "http://cdn/abc.jpg"},
        )

    storage = _storage(handler)

    assert asyncio.run(storage.fetch("photobooth/0001/missing")) is None
    photo = asyncio.run(storage.fetch("photobooth/0001/abc"))
    assert photo.url == "http://cdn/abc.jpg"
    assert photo.created_at is None


def test_cloudinary_list_by_prefix_sorts_oldest_first() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1_1/demo/resources/image/upload"
        assert request.url.params["prefix"] == "photobooth/0001/"
        return httpx.Response(
            200,
            json={
                "resources": [
                    {
                        "public_id": "photobooth/0001/b",
                        "secure_url": "https://cdn/b.jpg",
                        "created_at": "2024-06-01T12:05:00Z",
                    },
                    {
                        "public_id": "photobooth/0001/a",
                        "secure_url": "https://cdn/a.jpg",
                        "created_at": "2024-06-01T12:00:00Z",
                    },
                ]
            },
        )

    photos = asyncio.run(_storage(handler).list_by_prefix("photobooth/0001/"))

    assert [photo.storage_id for photo in photos] == [
        "photobooth/0001/a",
        "photobooth/0001/b",
    ]


def test_booth_client_poll_command() -> None:
    responses = [{"command": None}, {"command": "trigger", "sessionId": "0001"}]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/session/command"
        assert request.url.params["wait"] == "true"
        return httpx.Response(200, json=responses.pop(0))

    client = _booth(handler)

    assert asyncio.run(client.poll_command()) is None
    command = asyncio.run(client.poll_command())
    assert command == {"command": "trigger", "sessionId": "0001"}


def test_booth_client_reports_status_and_uploads(tmp_path) -> None:
    seen: list[tuple[str, bytes]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.url.path, request.content))
        if request.url.path == "/api/upload":
            return httpx.Response(200, json={"success": True, "photoCount": 1})
        return httpx.Response(200, json={"success": True})

    client = _booth(handler)
    photo = tmp_path / "shot.jpg"
    photo.write_bytes(b"jpeg")

    asyncio.run(client.update_status("0001", SessionStatus.CAPTURING))
    result = asyncio.run(client.upload_photo(photo, "0001"))

    status_path, status_body = seen[0]
    assert status_path == "/api/session/status"
    assert json.loads(status_body) == {"sessionId": "0001", "status": "Capturing"}
    upload_path, upload_body = seen[1]
    assert upload_path == "/api/upload"
    assert b'name="sessionId"' in upload_body
    assert b'filename="shot.jpg"' in upload_body
    assert result["photoCount"] == 1


def test_booth_client_raises_on_conflict() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            409, json={"success": False, "error": "A session is already active"}
        )

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(_booth(handler).start_session())
