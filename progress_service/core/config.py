"""Environment-driven settings, read once at import into ``SETTINGS``.

  APP_ENV               dev|test|prod                       (dev)
  LOG_LEVEL             debug|info|warning|error            (info)
  LOG_JSON              boolean; JSON lines instead of text (false)
  PORT                  HTTP port                           (8000)
  DATABASE_URL          postgresql+asyncpg://...; unset = in-memory repos
  REDIS_URL             redis://...; unset = in-memory notifier/cache/queue
  PROGRESS_CACHE_TTL    seconds a cached progress read lives (300)
  WORKER_POLL_TIMEOUT   seconds the worker blocks per queue poll (5)

Invalid values fail at startup with a ValueError naming the variable.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUTHY = ("1", "true", "yes", "on")
_FALSY = ("0", "false", "no", "off")


def _getenv(name: str, default: str) -> str:
    return os.environ.get(name, default).strip()


def _getenv_int(name: str, default: str, *, minimum: int = 0) -> int:
    raw = _getenv(name, default)
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum} (got {value})")
    return value


def _getenv_bool(name: str, default: str) -> bool:
    raw = _getenv(name, default).lower()
    if raw not in _TRUTHY + _FALSY:
        raise ValueError(f"{name} must be a boolean (got {raw!r})")
    return raw in _TRUTHY


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    database_url: str | None
    redis_url: str | None
    progress_cache_ttl: int = 300
    worker_poll_timeout: int = 5

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=_getenv_bool("LOG_JSON", "false"),
        port=_getenv_int("PORT", "8000", minimum=1),
        database_url=_getenv("DATABASE_URL", "") or None,
        redis_url=_getenv("REDIS_URL", "") or None,
        progress_cache_ttl=_getenv_int("PROGRESS_CACHE_TTL", "300", minimum=1),
        worker_poll_timeout=_getenv_int("WORKER_POLL_TIMEOUT", "5", minimum=1),
    )


SETTINGS = load_settings()
