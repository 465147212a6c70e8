"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


def _env(name: str, default: str) -> str:
    return os.environ.get(f"ROOMALLOC_{name}", default)


def _optional_env(name: str) -> Optional[str]:
    value = os.environ.get(f"ROOMALLOC_{name}", "").strip()
    return value or None


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    database_timeout_seconds: float
    owner_id: Optional[str]
    default_room_type: str
    default_building: str
    default_floor: str
    default_bed_type: str
    room_types: tuple[str, ...]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Resolve settings once per process; call ``cache_clear`` to reload."""
    return Settings(
        app_name=_env("APP_NAME", "RoomAlloc"),
        app_version=_env("APP_VERSION", "1.0.0"),
        log_level=_env("LOG_LEVEL", "INFO"),
        database_path=Path(_env("DATABASE_PATH", "data/roomalloc.db")),
        database_timeout_seconds=float(_env("DATABASE_TIMEOUT_SECONDS", "5.0")),
        owner_id=_optional_env("OWNER_ID"),
        default_room_type=_env("DEFAULT_ROOM_TYPE", "Chalet"),
        default_building=_env("DEFAULT_BUILDING", "Main Building"),
        default_floor=_env("DEFAULT_FLOOR", "1"),
        default_bed_type=_env("DEFAULT_BED_TYPE", "single"),
        room_types=("Chalet", "Personal tent", "Hotel"),
    )
