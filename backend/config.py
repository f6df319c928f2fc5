"""Centralized settings loaded from environment variables.

One Settings object for the whole service. Nothing here needs a secret at
import time: every value has a development default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.split(",") if p.strip()]


@dataclass(frozen=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_dir: Optional[str]
    port: int

    # ---- Database ----
    database_url: Optional[str]
    database_name: str

    # ---- Auth ----
    secret_key: str
    jwt_algorithm: str
    jwt_expires_minutes: int
    bcrypt_rounds: int

    # ---- HTTP ----
    cors_origins: List[str]
    rate_limit_max: int
    rate_limit_window_seconds: int

    @classmethod
    def from_env(cls) -> "Settings":
        frontend = _env("FRONTEND_URL", "http://localhost:3000")
        return cls(
            app_name=_env("APP_NAME", "Taskboard API"),
            log_level=_env("LOG_LEVEL", "INFO").upper(),
            log_dir=os.getenv("LOG_DIR") or None,
            port=_env_int("PORT", 8000),
            database_url=os.getenv("DATABASE_URL") or None,
            database_name=_env("DATABASE_NAME", "taskboard"),
            secret_key=_env("SECRET_KEY", "dev-secret-key-change-me"),
            jwt_algorithm=_env("JWT_ALGORITHM", "HS256"),
            jwt_expires_minutes=_env_int("JWT_EXPIRES_MINUTES", 60 * 24 * 7),  # 7 days
            bcrypt_rounds=_env_int("BCRYPT_ROUNDS", 10),
            cors_origins=_env_list("CORS_ORIGINS", [frontend]),
            rate_limit_max=_env_int("RATE_LIMIT_MAX", 100),
            rate_limit_window_seconds=_env_int("RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
