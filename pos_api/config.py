"""Configuration management for the POS back office API."""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigurationError

DEFAULT_TOKEN_TTL_SECONDS = 60 * 60
DEFAULT_PASSWORD_MIN_LENGTH = 6


def _env_int(name: str, value: Optional[str], default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid integer value {value!r} for {name}") from exc
    if parsed <= 0:
        raise ConfigurationError(f"{name} must be a positive integer")
    return parsed


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "pos.sqlite3").resolve(strict=False)


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, loaded once at startup."""

    database_path: Path
    token_secret: str
    token_ttl: timedelta = timedelta(seconds=DEFAULT_TOKEN_TTL_SECONDS)
    password_min_length: int = DEFAULT_PASSWORD_MIN_LENGTH


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Load settings from environment variables."""

    env = os.environ if environ is None else environ

    secret = (env.get("POS_TOKEN_SECRET") or "").strip()
    if not secret:
        raise ConfigurationError("POS_TOKEN_SECRET must be configured to issue access tokens")

    ttl_seconds = _env_int(
        "POS_TOKEN_TTL_SECONDS", env.get("POS_TOKEN_TTL_SECONDS"), DEFAULT_TOKEN_TTL_SECONDS
    )
    min_length = _env_int(
        "POS_PASSWORD_MIN_LENGTH",
        env.get("POS_PASSWORD_MIN_LENGTH"),
        DEFAULT_PASSWORD_MIN_LENGTH,
    )

    return Settings(
        database_path=resolve_database_path(env.get("POS_DB_PATH")),
        token_secret=secret,
        token_ttl=timedelta(seconds=ttl_seconds),
        password_min_length=min_length,
    )


__all__ = ["Settings", "load_settings", "resolve_database_path"]
