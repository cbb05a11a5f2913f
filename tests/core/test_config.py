from __future__ import annotations

import pytest

from progress_service.core.config import AppEnv, Settings, load_settings

# ---- valid values ----


def test_load_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("APP_ENV", "LOG_LEVEL", "LOG_JSON", "PORT", "DATABASE_URL", "REDIS_URL"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.app_env == "dev"
    assert settings.log_level == "info"
    assert settings.log_json is False
    assert settings.port == 8000
    assert settings.database_url is None
    assert settings.redis_url is None


def test_load_settings_respects_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "prod")
    monkeypatch.setenv("LOG_LEVEL", "error")
    monkeypatch.setenv("PORT", "9090")
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://db/progress")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "error"
    assert settings.port == 9090
    assert settings.database_url == "postgresql+asyncpg://db/progress"


def test_load_settings_normalizes_case(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "PROD")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    settings = load_settings()
    assert settings.app_env == "prod"
    assert settings.log_level == "debug"


def test_load_settings_strips_whitespace(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "  test  ")
    monkeypatch.setenv("LOG_LEVEL", "  warning  ")
    settings = load_settings()
    assert settings.app_env == "test"
    assert settings.log_level == "warning"


def test_blank_urls_mean_in_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "   ")
    monkeypatch.setenv("REDIS_URL", "")
    settings = load_settings()
    assert settings.database_url is None
    assert settings.redis_url is None


# ---- LOG_JSON ----


@pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
def test_log_json_truthy(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("LOG_JSON", raw)
    assert load_settings().log_json is True


@pytest.mark.parametrize("raw", ["0", "false", "No", "off"])
def test_log_json_falsy(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("LOG_JSON", raw)
    assert load_settings().log_json is False


def test_log_json_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_JSON", "sometimes")
    with pytest.raises(ValueError, match="LOG_JSON must be a boolean"):
        load_settings()


# ---- invalid APP_ENV / LOG_LEVEL / PORT ----


def test_load_settings_rejects_invalid_app_env(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "staging")
    monkeypatch.setenv("LOG_LEVEL", "info")
    with pytest.raises(ValueError, match="APP_ENV must be dev|test|prod"):
        load_settings()


def test_load_settings_rejects_invalid_log_level(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("APP_ENV", "dev")
    monkeypatch.setenv("LOG_LEVEL", "verbose")
    with pytest.raises(ValueError, match="LOG_LEVEL must be debug|info|warning|error"):
        load_settings()


def test_load_settings_rejects_non_integer_port(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("PORT", "eighty")
    with pytest.raises(ValueError, match="PORT must be an integer"):
        load_settings()


# ---- Settings properties ----


def _make_settings(app_env: AppEnv = "dev") -> Settings:
    return Settings(  # type: ignore[arg-type]
        app_env=app_env,
        log_level="info",
        log_json=False,
        port=8000,
        database_url=None,
        redis_url=None,
    )


def test_settings_env_flags() -> None:
    assert _make_settings("dev").is_dev is True
    assert _make_settings("test").is_test is True
    prod = _make_settings("prod")
    assert prod.is_prod is True
    assert prod.is_dev is False


def test_settings_is_frozen() -> None:
    s = _make_settings()
    with pytest.raises(AttributeError):
        s.app_env = "prod"  # type: ignore[misc]


# ---- cache and worker tuning ----


def test_tuning_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PROGRESS_CACHE_TTL", raising=False)
    monkeypatch.delenv("WORKER_POLL_TIMEOUT", raising=False)
    settings = load_settings()
    assert settings.progress_cache_ttl == 300
    assert settings.worker_poll_timeout == 5


def test_tuning_respects_env_vars(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROGRESS_CACHE_TTL", "60")
    monkeypatch.setenv("WORKER_POLL_TIMEOUT", "2")
    settings = load_settings()
    assert settings.progress_cache_ttl == 60
    assert settings.worker_poll_timeout == 2


def test_cache_ttl_must_be_positive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROGRESS_CACHE_TTL", "0")
    with pytest.raises(ValueError, match="PROGRESS_CACHE_TTL must be >= 1"):
        load_settings()


def test_poll_timeout_must_be_integer(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WORKER_POLL_TIMEOUT", "soon")
    with pytest.raises(ValueError, match="WORKER_POLL_TIMEOUT must be an integer"):
        load_settings()
