try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from weather_relay.core.config import AppSettings, CORSSettings, NetatmoSettings


def test_allowed_origins_accepts_comma_separated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(
        "ALLOWED_ORIGINS", "https://weather.example.com, https://kiosk.example.com,,"
    )

    settings = CORSSettings()

    assert settings.allowed_origins == (
        "https://weather.example.com",
        "https://kiosk.example.com",
    )


def test_netatmo_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NETATMO_REFRESH_TOKEN", raising=False)
    monkeypatch.delenv("NETATMO_API_BASE", raising=False)

    settings = NetatmoSettings()

    assert settings.refresh_token is None
    assert str(settings.api_base_url).startswith("https://api.netatmo.com")
    assert settings.request_timeout == 10.0


def test_fetch_interval_is_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FETCH_INTERVAL_SECONDS", "5")

    settings = AppSettings()

    assert settings.scheduler.fetch_interval_seconds == 5.0


def test_missing_device_id_fails_validation(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("NETATMO_DEVICE_ID", raising=False)

    with pytest.raises(ValueError):
        NetatmoSettings()


@pytest.mark.parametrize(
    ("environment", "expected"),
    [("development", True), ("local", True), ("production", False)],
)
def test_is_development(environment: str, expected: bool) -> None:
    assert AppSettings(APP_ENV=environment).is_development is expected
