from __future__ import annotations

from dataclasses import dataclass
from typing import Any
import os

from dotenv import load_dotenv

load_dotenv()

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def _getenv_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _normalize_week_start(raw: str | None) -> str:
    value = (raw or "sunday").strip().lower()
    return value if value in WEEKDAYS else "sunday"


def _split_origins(raw: str | None) -> tuple[str, ...]:
    parts = [p.strip() for p in (raw or "*").split(",")]
    return tuple(p for p in parts if p) or ("*",)


@dataclass(frozen=True)
class Settings:
    host: str
    port: int
    max_upload_mb: int
    week_start: str
    week_marker: str
    cors_origins: tuple[str, ...]
    log_level: str


settings = Settings(
    host=os.getenv("DATAVISION_HOST", "127.0.0.1"),
    port=_getenv_int("DATAVISION_PORT", 3456),
    max_upload_mb=_getenv_int("MAX_UPLOAD_MB", 50),
    week_start=_normalize_week_start(os.getenv("WEEK_START")),
    week_marker=os.getenv("WEEK_MARKER", " 周"),
    cors_origins=_split_origins(os.getenv("CORS_ORIGINS")),
    log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
)

_RUNTIME_OVERRIDES: dict[str, Any] = {}


def get_settings() -> Settings:
    if not _RUNTIME_OVERRIDES:
        return settings
    base = settings
    return Settings(
        host=_RUNTIME_OVERRIDES.get("host", base.host),
        port=_RUNTIME_OVERRIDES.get("port", base.port),
        max_upload_mb=_RUNTIME_OVERRIDES.get("max_upload_mb", base.max_upload_mb),
        week_start=_RUNTIME_OVERRIDES.get("week_start", base.week_start),
        week_marker=_RUNTIME_OVERRIDES.get("week_marker", base.week_marker),
        cors_origins=_RUNTIME_OVERRIDES.get("cors_origins", base.cors_origins),
        log_level=_RUNTIME_OVERRIDES.get("log_level", base.log_level),
    )


def update_settings(overrides: dict[str, Any]) -> Settings:
    normalized: dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key == "week_start":
            normalized[key] = _normalize_week_start(str(value))
        elif key in {"port", "max_upload_mb"}:
            normalized[key] = int(value)
        elif key == "cors_origins":
            normalized[key] = _split_origins(value if isinstance(value, str) else ",".join(value))
        elif key == "log_level":
            normalized[key] = str(value).upper()
        else:
            normalized[key] = value
    _RUNTIME_OVERRIDES.update(normalized)
    return get_settings()


def reset_settings() -> Settings:
    """Drop every runtime override and return the environment defaults."""
    _RUNTIME_OVERRIDES.clear()
    return settings
