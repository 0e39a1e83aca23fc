"""Application configuration."""

import os
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

CaptureMode = Literal["auto", "simulated", "local", "remote"]


class AgentSettings(BaseSettings):
    """Settings needed next to the camera, shared by the server and the agent."""

    environment: str = _ENVIRONMENT
    log_level: str = "INFO"
    log_dir: Path | None = None
    booth_api_url: str = "http://localhost:8000"

    capture_command: str = "gphoto2 --capture-image-and-download --filename {filename}"
    capture_output_dir: Path = Path("/tmp")
    capture_timeout_seconds: float = 15.0
    capture_attempts: int = 3
    capture_retry_delay_seconds: float = 1.0

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        """Return true when running with the development configuration."""
        return self.environment == "development"


class Settings(AgentSettings):
    """Application settings loaded from environment variables."""

    cloudinary_cloud_name: str
    cloudinary_api_key: str
    cloudinary_api_secret: str
    cloudinary_folder: str = "photobooth"
    vercel: bool = False
    public_base_url: str | None = None
    static_dir: Path | None = None

    capture_mode: CaptureMode = "auto"
    capture_watch_dir: Path | None = None
    simulated_photo_url: str = "https://picsum.photos/seed/photobooth/1200/800"

    upload_attempts: int = 3
    upload_retry_delay_seconds: float = 1.0
    max_retry_attempts: int = 3
    max_upload_bytes: int = 10 * 1024 * 1024
    retry_sweep_interval_seconds: float = 30.0
    expiry_sweep_interval_seconds: float = 60.0

    session_ttl_seconds: float = 10 * 60
    dev_session_ttl_seconds: float = 60 * 60
    long_poll_max_wait_seconds: float = 20.0
    long_poll_interval_seconds: float = 0.2
    countdown_seconds: float = 3.0

    @property
    def session_delete_delay_seconds(self) -> float:
        """Delay between finishing a session and deleting its record."""
        if self.is_development:
            return self.dev_session_ttl_seconds
        return self.session_ttl_seconds


def resolve_capture_mode(settings: Settings) -> str:
    """Pick the concrete capture strategy for the configured mode."""
    if settings.capture_mode != "auto":
        return settings.capture_mode
    if settings.is_development:
        return "simulated"
    if settings.vercel:
        return "remote"
    return "local"
