"""
Process settings read from the environment.

`load_settings()` is called once when the app is built; the resulting
`Settings` object is passed explicitly to whatever needs it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_JWT_SECRET = "dev-change-this-secret"
DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://127.0.0.1:5173")


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    db_pool_max_size: int = 5
    apply_schema: bool = True
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    admin_username: str = ""
    admin_password_hash: str = ""
    cors_origins: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    log_level: str = "INFO"


def load_settings() -> Settings:
    return Settings(
        database_url=_env_str("DATABASE_URL"),
        db_pool_max_size=max(1, _env_int("DB_POOL_MAX_SIZE", 5)),
        apply_schema=_env_bool("APPLY_SCHEMA", True),
        # Local default keeps development simple.
        # In production, set JWT_SECRET in environment.
        jwt_secret=_env_str("JWT_SECRET", DEFAULT_JWT_SECRET),
        jwt_algorithm=_env_str("JWT_ALG", "HS256"),
        access_token_expire_minutes=max(1, _env_int("ACCESS_TOKEN_EXPIRE_MIN", 60)),
        admin_username=_env_str("ADMIN_USERNAME"),
        admin_password_hash=_env_str("ADMIN_PASSWORD_HASH"),
        cors_origins=_env_list("CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
        log_level=_env_str("LOG_LEVEL", "INFO").upper(),
    )
