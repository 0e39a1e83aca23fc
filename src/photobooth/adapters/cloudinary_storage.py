"""Cloudinary REST client for photo storage."""

import hashlib
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

import httpx

from photobooth.domain.errors import StorageUnavailable
from photobooth.domain.uploads import StoredPhoto

_EPOCH = datetime.min.replace(tzinfo=UTC)


class PhotoStorage(Protocol):
    """Interface for the remote object storage holding photos."""

    async def upload(
        self, data: bytes, public_id: str, filename: str, content_type: str
    ) -> StoredPhoto:
        """Upload image bytes under a public id."""

    async def fetch(self, public_id: str) -> StoredPhoto | None:
        """Return a stored photo by public id, if present."""

    async def list_by_prefix(self, prefix: str) -> list[StoredPhoto]:
        """Return stored photos whose public id starts with the prefix."""


@dataclass
class HttpxCloudinaryStorage(PhotoStorage):
    """Cloudinary upload and admin API client using httpx."""

    cloud_name: str
    api_key: str
    api_secret: str
    http_client: httpx.AsyncClient
    base_url: str = "https://api.cloudinary.com/v1_1"

    @classmethod
    def create(
        cls, cloud_name: str, api_key: str, api_secret: str
    ) -> "HttpxCloudinaryStorage":
        """Create a storage client with a managed httpx session."""
        return cls(
            cloud_name=cloud_name,
            api_key=api_key,
            api_secret=api_secret,
            http_client=httpx.AsyncClient(),
        )

    async def upload(
        self, data: bytes, public_id: str, filename: str, content_type: str
    ) -> StoredPhoto:
        """Upload bytes with a signed request."""
        timestamp = str(int(time.time()))
        params = {"public_id": public_id, "timestamp": timestamp}
        form = {
            **params,
            "api_key": self.api_key,
            "signature": sign_params(params, self.api_secret),
        }
        url = f"{self.base_url}/{self.cloud_name}/image/upload"
        try:
            response = await self.http_client.post(
                url,
                data=form,
                files={"file": (filename, data, content_type)},
                timeout=30,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorageUnavailable(f"Cloudinary upload failed: {exc}") from exc
        return _to_stored_photo(response.json())

    async def fetch(self, public_id: str) -> StoredPhoto | None:
        """Fetch resource details from the admin API."""
        url = f"{self.base_url}/{self.cloud_name}/resources/image/upload/{public_id}"
        try:
            response = await self.http_client.get(
                url, auth=(self.api_key, self.api_secret), timeout=15
            )
            if response.status_code == httpx.codes.NOT_FOUND:
                return None
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorageUnavailable(f"Cloudinary lookup failed: {exc}") from exc
        return _to_stored_photo(response.json())

    async def list_by_prefix(self, prefix: str) -> list[StoredPhoto]:
        """List uploaded images under a public id prefix, oldest first."""
        url = f"{self.base_url}/{self.cloud_name}/resources/image/upload"
        try:
            response = await self.http_client.get(
                url,
                params={"prefix": prefix, "max_results": 100},
                auth=(self.api_key, self.api_secret),
                timeout=15,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorageUnavailable(f"Cloudinary listing failed: {exc}") from exc
        resources = response.json().get("resources", [])
        photos = [_to_stored_photo(resource) for resource in resources]
        return sorted(photos, key=lambda photo: photo.created_at or _EPOCH)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """Build a Cloudinary request signature."""
    to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode()).hexdigest()  # noqa: S324


def _to_stored_photo(payload: dict[str, object]) -> StoredPhoto:
    created_at = payload.get("created_at")
    return StoredPhoto(
        storage_id=str(payload["public_id"]),
        url=str(payload.get("secure_url") or payload.get("url")),
        created_at=(
            datetime.fromisoformat(created_at.replace("Z", "+00:00"))
            if isinstance(created_at, str)
            else None
        ),
    )
