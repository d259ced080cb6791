from __future__ import annotations

import pytest

from community_service.core.config import AppEnv, Settings, load_settings

_VARS = ("APP_ENV", "LOG_LEVEL", "LOG_JSON", "PORT", "RATE_LIMIT", "DATABASE_URL", "REDIS_URL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"
    assert settings.log_json is False
    assert settings.port == 8000
    assert settings.rate_limit == 100.0
    assert settings.database_url is None
    assert settings.redis_url is None


def test_normalizes_case_and_whitespace(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "  PROD ")
    monkeypatch.setenv("LOG_LEVEL", "Warning")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "warning"


def test_urls_and_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://db/community")
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379/0")
    monkeypatch.setenv("PORT", "9000")
    monkeypatch.setenv("RATE_LIMIT", "2.5")
    settings = load_settings()
    assert settings.database_url == "postgresql+asyncpg://db/community"
    assert settings.redis_url == "redis://cache:6379/0"
    assert settings.port == 9000
    assert settings.rate_limit == 2.5


@pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), ("off", False)])
def test_log_json_parsing(
    monkeypatch: pytest.MonkeyPatch, raw: str, expected: bool
) -> None:
    monkeypatch.setenv("LOG_JSON", raw)
    assert load_settings().log_json is expected


@pytest.mark.parametrize(
    "name,value,message",
    [
        ("APP_ENV", "staging", "APP_ENV must be"),
        ("APP_ENV", "", "APP_ENV must be"),
        ("LOG_LEVEL", "verbose", "LOG_LEVEL must be"),
        ("LOG_JSON", "maybe", "LOG_JSON must be a boolean"),
        ("PORT", "eighty", "PORT must be an integer"),
        ("RATE_LIMIT", "fast", "RATE_LIMIT must be a number"),
        ("RATE_LIMIT", "0", "RATE_LIMIT must be positive"),
        ("RATE_LIMIT", "-5", "RATE_LIMIT must be positive"),
    ],
)
def test_rejects_invalid_values(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str, message: str
) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=message):
        load_settings()


def _make_settings(app_env: AppEnv = "dev") -> Settings:
    return Settings(  # type: ignore[arg-type]
        app_env=app_env,
        log_level="info",
        log_json=False,
        port=8000,
        database_url=None,
        redis_url=None,
    )


@pytest.mark.parametrize("env", ["dev", "test", "prod"])
def test_env_properties(env: AppEnv) -> None:
    s = _make_settings(env)
    assert (s.is_dev, s.is_test, s.is_prod) == (
        env == "dev",
        env == "test",
        env == "prod",
    )


def test_settings_is_frozen() -> None:
    s = _make_settings()
    with pytest.raises(AttributeError):
        s.rate_limit = 1.0  # type: ignore[misc]
