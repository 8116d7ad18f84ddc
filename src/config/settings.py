from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path


def _get_bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str
    sqlite_db_path: str
    event_config_path: str
    log_level: str
    confirm_destructive: bool


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "").strip(),
        sqlite_db_path=os.getenv("SQLITE_DB_PATH", "data/hackroster.db"),
        event_config_path=os.getenv("EVENT_CONFIG_PATH", "config/event.yaml"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        confirm_destructive=_get_bool_env("CONFIRM_DESTRUCTIVE", True),
    )


def validate_settings(settings: Settings) -> list[str]:
    errors: list[str] = []
    if not settings.database_url and not settings.sqlite_db_path.strip():
        errors.append("SQLITE_DB_PATH is required when DATABASE_URL is not set")
    if not settings.event_config_path.strip():
        errors.append("EVENT_CONFIG_PATH is required")
    if settings.log_level not in logging.getLevelNamesMapping():
        errors.append(f"LOG_LEVEL must be a logging level name, got '{settings.log_level}'")
    if settings.database_url and not settings.database_url.startswith(
        ("postgres://", "postgresql://")
    ):
        errors.append("DATABASE_URL must start with postgres:// or postgresql://")
    return errors


def ensure_runtime_dirs(settings: Settings) -> None:
    if not settings.database_url:
        Path(settings.sqlite_db_path).parent.mkdir(parents=True, exist_ok=True)
