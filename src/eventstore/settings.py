from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_APP_GROUP_IDENTIFIER = "group.com.alexmorrison.moti.shared"


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to the shared sqlite file. Default './data/events.db'
    - APP_GROUP_IDENTIFIER: namespace shared by the app and its widgets
    - WIDGET_REFRESH_MARKER: optional marker file touched after every save
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name for the 'eventstore' logger (default: INFO)
    """

    persistence_backend: str
    sqlite_db_path: str
    app_group_identifier: str
    widget_refresh_marker: Optional[str]
    cors_allow_origins: List[str]
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _parse_log_level(value: str) -> str:
    level = value.strip().upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        return "INFO"
    return level


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        # Fallback to memory if unsupported
        backend = "memory"

    marker = os.getenv("WIDGET_REFRESH_MARKER", "").strip() or None

    return Settings(
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/events.db").strip(),
        app_group_identifier=_get_env("APP_GROUP_IDENTIFIER", DEFAULT_APP_GROUP_IDENTIFIER).strip(),
        widget_refresh_marker=marker,
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_parse_log_level(_get_env("LOG_LEVEL", "INFO")),
    )
