"""
Runtime configuration for the legacy migration.

Values come from the environment; `load_settings()` reads a `.env` file in the
working directory first so local runs only need one file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv


class MigrationError(Exception):
    """Base class for errors that abort a migration run."""


class ConfigError(MigrationError):
    pass


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


def normalize_database_url(url: str) -> str:
    """Rewrite URL schemes inherited from the old stack to SQLAlchemy dialects."""
    url = str(url or "").strip()
    if url.startswith("mysql://"):
        return url.replace("mysql://", "mysql+pymysql://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


@dataclass(frozen=True)
class Settings:
    legacy_url: str
    target_url: str
    workers: int = 4
    first_year: int = 2010
    last_year: int = 2030


def load_settings(dotenv: bool = True) -> Settings:
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))

    legacy_url = normalize_database_url(os.environ.get("OLD_DATABASE_URL", ""))
    target_url = normalize_database_url(os.environ.get("DATABASE_URL", ""))
    if not legacy_url:
        raise ConfigError("OLD_DATABASE_URL is not set (legacy database URL).")
    if not target_url:
        raise ConfigError("DATABASE_URL is not set (target database URL).")

    first_year = _env_int("SEMESTER_FIRST_YEAR", 2010, minimum=1970)
    last_year = _env_int("SEMESTER_LAST_YEAR", 2030, minimum=1970)
    if last_year < first_year:
        raise ConfigError(
            f"SEMESTER_LAST_YEAR ({last_year}) is before SEMESTER_FIRST_YEAR ({first_year})."
        )

    return Settings(
        legacy_url=legacy_url,
        target_url=target_url,
        workers=_env_int("MIGRATION_WORKERS", 4, minimum=1),
        first_year=first_year,
        last_year=last_year,
    )
