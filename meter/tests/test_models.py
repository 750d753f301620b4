"""
Unit tests for the pydantic domain models.

Tests verify:
- Reading rejects naive timestamps and normalises to UTC whole seconds
- Readings are immutable and hashable
- UsageReport.summary renders kWh strings keyed by tariff label

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest
from pydantic import ValidationError

from meter.src.energy import Joule, Tariff
from meter.src.models import Reading, UsageReport


class TestReading:
    """Reading validation."""

    def test_naive_timestamp_rejected(self) -> None:
        with pytest.raises(ValidationError, match="timezone-aware"):
            Reading(tariff=Tariff.NORMAL, energy=Joule(0), timestamp=datetime(2024, 1, 1))

    def test_converted_to_utc(self) -> None:
        local = datetime(2024, 1, 1, 1, 0, tzinfo=ZoneInfo("Europe/Amsterdam"))
        reading = Reading(tariff=Tariff.NORMAL, energy=Joule(0), timestamp=local)
        assert reading.timestamp == datetime(2024, 1, 1, 0, 0, tzinfo=UTC)
        assert reading.timestamp.tzinfo is UTC

    def test_microseconds_dropped(self) -> None:
        ts = datetime(2024, 1, 1, 0, 0, 5, 999_999, tzinfo=UTC)
        reading = Reading(tariff=Tariff.NORMAL, energy=Joule(0), timestamp=ts)
        assert reading.timestamp == datetime(2024, 1, 1, 0, 0, 5, tzinfo=UTC)

    def test_tariff_from_int(self) -> None:
        reading = Reading(
            tariff=2, energy=Joule(1), timestamp=datetime(2024, 1, 1, tzinfo=UTC)
        )
        assert reading.tariff is Tariff.OFF_PEAK

    def test_frozen_and_hashable(self) -> None:
        reading = Reading(
            tariff=Tariff.NORMAL, energy=Joule(1), timestamp=datetime(2024, 1, 1, tzinfo=UTC)
        )
        with pytest.raises(ValidationError):
            reading.energy = Joule(2)  # type: ignore[misc]
        assert hash(reading) == hash(reading.model_copy())


class TestUsageReport:
    """UsageReport rendering."""

    def test_summary(self) -> None:
        report = UsageReport(
            start=datetime(2024, 1, 1, tzinfo=UTC),
            end=datetime(2024, 1, 31, 23, 59, 59, tzinfo=UTC),
            usage={Tariff.NORMAL: Joule(3_600_000), Tariff.OFF_PEAK: Joule(1_800_000)},
            total=Joule(5_400_000),
        )
        assert report.summary() == {
            "start": "2024-01-01T00:00:00+00:00",
            "end": "2024-01-31T23:59:59+00:00",
            "usage_kwh": {"normal": "1", "off-peak": "0.5"},
            "total_kwh": "1.5",
        }
