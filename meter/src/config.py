"""
Meter daemon configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files;
no hardcoded hosts, URLs, or paths beyond the container defaults.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

import logging
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings


class MeterSettings(BaseSettings):
    """Configuration for the telegram daemon, importer, and reports.

    Attributes:
        telegram_endpoint: HTTP(S) URL of the P1 gateway that returns one
            telegram per GET. Only required by the polling daemon.
        poll_interval_s: Seconds between telegram fetches.
        fetch_timeout_s: Timeout per HTTP request in seconds.
        store_backend: ``"kv"`` for the embedded key-value store or
            ``"sql"`` for the relational history table.
        store_path: SQLite file used by the ``kv`` backend, and by the
            ``sql`` backend when no database_url is set.
        database_url: SQLAlchemy async URL for the ``sql`` backend.
        local_timezone: IANA zone for CSV timestamps and report spans.
        health_path: Path of the JSON health file.
        log_level: Root logging level name.
    """

    telegram_endpoint: str = ""
    poll_interval_s: float = 1.0
    fetch_timeout_s: float = 10.0
    store_backend: Literal["kv", "sql"] = "kv"
    store_path: str = "/data/meter.db"
    database_url: str = ""
    local_timezone: str = "UTC"
    health_path: str = "/data/health.json"
    log_level: str = "INFO"

    @property
    def resolved_database_url(self) -> str:
        """database_url, or a SQLite URL pointing at store_path."""
        return self.database_url or f"sqlite+aiosqlite:///{self.store_path}"

    @property
    def tz(self) -> ZoneInfo:
        """local_timezone as a tzinfo object."""
        return ZoneInfo(self.local_timezone)

    @field_validator("telegram_endpoint")
    @classmethod
    def telegram_endpoint_must_be_http(cls, v: str) -> str:
        """Validate that the endpoint, when set, is an HTTP(S) URL."""
        if v and not v.lower().startswith(("http://", "https://")):
            raise ValueError(
                f"TELEGRAM_ENDPOINT must be an http:// or https:// URL (got: '{v[:30]}')"
            )
        return v

    @field_validator("poll_interval_s", "fetch_timeout_s")
    @classmethod
    def interval_must_be_positive(cls, v: float) -> float:
        """Validate that intervals and timeouts are strictly positive."""
        if v <= 0:
            raise ValueError("POLL_INTERVAL_S and FETCH_TIMEOUT_S must be > 0")
        return v

    @field_validator("local_timezone")
    @classmethod
    def local_timezone_must_exist(cls, v: str) -> str:
        """Validate that the zone is known to the tz database."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"LOCAL_TIMEZONE '{v}' is not a known time zone") from exc
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate and upper-case the logging level name."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL '{v}' is not a logging level")
        return level

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
