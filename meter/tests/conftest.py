"""
Shared test fixtures for meter tests.

Provides environment isolation for MeterSettings and a realistic DSMR 5
telegram. All meter env vars are cleaned before each test to ensure
isolation.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

from pathlib import Path

import pytest

# All MeterSettings environment variable names, used for cleanup.
_ALL_METER_ENV_VARS = (
    "TELEGRAM_ENDPOINT",
    "POLL_INTERVAL_S",
    "FETCH_TIMEOUT_S",
    "STORE_BACKEND",
    "STORE_PATH",
    "DATABASE_URL",
    "LOCAL_TIMEZONE",
    "HEALTH_PATH",
    "LOG_LEVEL",
)

SAMPLE_TELEGRAM = (
    "/ISK5\\2M550T-1012\r\n"
    "\r\n"
    "1-3:0.2.8(50)\r\n"
    "0-0:1.0.0(231017120000S)\r\n"
    "0-0:96.1.1(4530303434303037313331363530363138)\r\n"
    "1-0:1.8.1(001234.567*kWh)\r\n"
    "1-0:1.8.2(002345.678*kWh)\r\n"
    "1-0:2.8.1(000010.000*kWh)\r\n"
    "1-0:2.8.2(000020.000*kWh)\r\n"
    "0-0:96.14.0(0002)\r\n"
    "1-0:1.7.0(00.512*kW)\r\n"
    "1-0:2.7.0(00.000*kW)\r\n"
    "0-0:96.7.21(00010)\r\n"
    "1-0:99.97.0(2)(0-0:96.7.19)(180101000001W)(0000000240*s)"
    "(180102000001W)(0000000301*s)\r\n"
    "1-0:32.7.0(230.1*V)\r\n"
    "0-1:24.1.0(003)\r\n"
    "0-1:24.2.1(231017115500S)(01234.567*m3)\r\n"
    "!E3B2\r\n"
)
"""DSMR 5 telegram: normal net 1224.567 kWh, off-peak net 2325.678 kWh, tariff 2."""


@pytest.fixture(autouse=True)
def _clean_meter_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Remove all meter env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_METER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def sample_telegram() -> bytes:
    """Return a complete DSMR 5 telegram as raw bytes."""
    return SAMPLE_TELEGRAM.encode("ascii")


@pytest.fixture()
def malformed_telegram() -> bytes:
    """Telegram whose first energy register is valid and the second is not."""
    return (
        "/ISK5\\2M550T-1012\r\n"
        "1-0:1.8.1(001234.567*kWh)\r\n"
        "1-0:1.8.2(not_a_number*kWh)\r\n"
        "0-0:96.14.0(0001)\r\n"
        "!0000\r\n"
    ).encode("ascii")
