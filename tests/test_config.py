"""Tests for settings and capture mode resolution."""

from photobooth.config import AgentSettings, Settings, resolve_capture_mode


def _settings(**overrides) -> Settings:
    return Settings(
        cloudinary_cloud_name="demo",
        cloudinary_api_key="key",
        cloudinary_api_secret="secret",
        **overrides,
    )


def test_auto_capture_mode_follows_environment() -> None:
    assert resolve_capture_mode(_settings(environment="development")) == "simulated"
    assert resolve_capture_mode(_settings(environment="production", vercel=True)) == (
        "remote"
    )
    assert resolve_capture_mode(_settings(environment="production", vercel=False)) == (
        "local"
    )


def test_explicit_capture_mode_wins() -> None:
    settings = _settings(environment="development", capture_mode="remote")

    assert resolve_capture_mode(settings) == "remote"


def test_settings_read_environment_variables(monkeypatch) -> None:
    monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "from-env")
    monkeypatch.setenv("CLOUDINARY_API_KEY", "key")
    monkeypatch.setenv("CLOUDINARY_API_SECRET", "secret")
    monkeypatch.setenv("SESSION_TTL_SECONDS", "120")

    settings = Settings()

    assert settings.cloudinary_cloud_name == "from-env"
    assert settings.session_ttl_seconds == 120
    assert settings.max_upload_bytes == 10 * 1024 * 1024


def test_agent_settings_need_no_storage_credentials(monkeypatch) -> None:
    monkeypatch.setenv("BOOTH_API_URL", "http://booth.local:9000")

    settings = AgentSettings()

    assert settings.booth_api_url == "http://booth.local:9000"
    assert "{filename}" in settings.capture_command
