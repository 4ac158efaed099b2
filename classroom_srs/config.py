"""
Runtime configuration read from the environment.

Values come from environment variables, optionally loaded from a .env file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from classroom_srs.errors import ConfigurationError
from classroom_srs.fsrs.constants import INTERVAL_CEILING, MAXIMUM_INTERVAL, R_TARGET


DEFAULT_DATABASE_URL = "sqlite:///srs.db"
DEFAULT_MONGO_DB = "classroom"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    target_retention: float = R_TARGET
    maximum_interval: float = MAXIMUM_INTERVAL
    mongo_uri: Optional[str] = None
    mongo_db: str = DEFAULT_MONGO_DB
    log_level: str = "INFO"


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def load_settings(dotenv: bool = True) -> Settings:
    """
    Build Settings from the environment.

    Recognized variables:
        SRS_DATABASE_URL      SQLAlchemy URL for card progress
        SRS_TARGET_RETENTION  Retention the scheduler aims for, in (0, 1)
        SRS_MAXIMUM_INTERVAL  Longest interval in days
        MONGO_URI             Content database (optional)
        SRS_MONGO_DB          Content database name
        SRS_LOG_LEVEL         Logging level name

    Raises:
        ConfigurationError: if a value is malformed or out of range
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))

    target_retention = _float_env("SRS_TARGET_RETENTION", R_TARGET)
    if not 0.0 < target_retention < 1.0:
        raise ConfigurationError(
            f"SRS_TARGET_RETENTION must be between 0 and 1, got {target_retention}"
        )

    maximum_interval = _float_env("SRS_MAXIMUM_INTERVAL", MAXIMUM_INTERVAL)
    if not 0 < maximum_interval <= INTERVAL_CEILING:
        raise ConfigurationError(
            f"SRS_MAXIMUM_INTERVAL must be a positive number of days up to {INTERVAL_CEILING:g}, "
            f"got {maximum_interval}"
        )

    log_level = os.getenv("SRS_LOG_LEVEL", "INFO").upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigurationError(f"Unknown SRS_LOG_LEVEL {log_level!r}")

    return Settings(
        database_url=os.getenv("SRS_DATABASE_URL") or DEFAULT_DATABASE_URL,
        target_retention=target_retention,
        maximum_interval=maximum_interval,
        mongo_uri=os.getenv("MONGO_URI") or None,
        mongo_db=os.getenv("SRS_MONGO_DB") or DEFAULT_MONGO_DB,
        log_level=log_level,
    )


def configure_logging(level: str = "INFO") -> None:
    """Install a basic stderr handler for the application's loggers."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
