"""
Pydantic models for meter readings, parsed telegrams, and usage reports.

A ``Reading`` is one tariff-scoped observation of a cumulative energy
register. The timestamp is injected by whoever produced the reading (fetch
time for live telegrams, row time for historical imports), never derived
from register data.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, field_validator

from meter.src.energy import ZERO, Joule, Tariff


class Reading(BaseModel):
    """A single tariff-scoped register observation.

    Attributes:
        tariff: Billing rate the register belongs to.
        energy: Net cumulative energy (import minus export).
        timestamp: Observation instant, normalised to UTC with whole-second
            resolution so it survives the wire encoding unchanged.
    """

    model_config = ConfigDict(frozen=True)

    tariff: Tariff
    energy: Joule
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime) -> datetime:
        """Reject naive timestamps; convert to UTC and drop sub-seconds."""
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("timestamp must be timezone-aware")
        return v.astimezone(UTC).replace(microsecond=0)


class Telegram(BaseModel):
    """Result of parsing one telegram.

    Attributes:
        header: Identification line with the leading ``/`` removed.
        active_tariff: Tariff the meter reported as currently active.
        readings: One reading per tariff whose energy registers appeared,
            in canonical tariff order.
    """

    model_config = ConfigDict(frozen=True)

    header: str
    active_tariff: Tariff
    readings: tuple[Reading, ...]


class UsageReport(BaseModel):
    """Energy used per tariff over an inclusive time span.

    Attributes:
        start: First instant of the span.
        end: Last instant of the span (inclusive).
        usage: Usage per tariff, every tariff present in canonical order.
        total: Sum of the per-tariff usages.
    """

    start: datetime
    end: datetime
    usage: dict[Tariff, Joule]
    total: Joule = ZERO

    def summary(self) -> dict[str, object]:
        """Return a JSON-friendly dict with kWh strings."""
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "usage_kwh": {
                tariff.label: str(energy.kwh()) for tariff, energy in self.usage.items()
            },
            "total_kwh": str(self.total.kwh()),
        }
