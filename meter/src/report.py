"""
Usage reporting over persisted readings.

Registers are cumulative counters, so the usage of a tariff over a span is
the difference between its latest and earliest reading inside the span
(``last - first``), not a sum of consecutive differences. Missing samples
in between do not matter as long as the first and last readings bracket the
period of interest. Counter resets are not handled.

Readings are grouped per tariff and sorted by timestamp (stable, so equal
timestamps keep store order) before taking the difference. Every tariff
appears in the report in canonical order; a tariff with fewer than two
readings in the span reports zero usage.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, time, tzinfo

from meter.src.codec import decode_record
from meter.src.energy import ZERO, Joule, Tariff
from meter.src.models import Reading, UsageReport
from meter.src.store import ReadingStore, TimeSpan

logger = logging.getLogger(__name__)

SPAN_SEPARATOR = ".."
_DATE_FORMAT = "%Y-%m-%d"


def parse_span(span: str, tz: tzinfo) -> TimeSpan:
    """Parse ``YYYY-MM-DD..YYYY-MM-DD`` into an inclusive :class:`TimeSpan`.

    The span starts at 00:00:00 on the first date and ends at 23:59:59 on
    the last date, both in *tz*.

    Raises:
        ValueError: On a malformed span or an end date before the start.
    """
    begin, sep, end = span.partition(SPAN_SEPARATOR)
    if not sep:
        raise ValueError(f"span must look like 2024-01-01..2024-01-31, got {span!r}")
    start_date = datetime.strptime(begin.strip(), _DATE_FORMAT).date()
    end_date = datetime.strptime(end.strip(), _DATE_FORMAT).date()
    return TimeSpan(
        start=datetime.combine(start_date, time(0, 0, 0), tzinfo=tz),
        end=datetime.combine(end_date, time(23, 59, 59), tzinfo=tz),
    )


def normalize(readings: Iterable[Reading]) -> list[Reading]:
    """Return *readings* sorted by timestamp, ties kept in input order."""
    return sorted(readings, key=lambda reading: reading.timestamp)


def usage(readings: Sequence[Reading]) -> Joule:
    """Energy used between the earliest and latest of *readings*.

    Zero when there are fewer than two readings.
    """
    if len(readings) < 2:
        return ZERO
    ordered = normalize(readings)
    return ordered[-1].energy - ordered[0].energy


def build_report(
    readings: Iterable[Reading],
    *,
    start: datetime,
    end: datetime,
) -> UsageReport:
    """Group *readings* by tariff and compute per-tariff and total usage."""
    groups: dict[Tariff, list[Reading]] = {tariff: [] for tariff in Tariff}
    for reading in readings:
        groups[reading.tariff].append(reading)

    per_tariff = {tariff: usage(group) for tariff, group in groups.items()}
    return UsageReport(
        start=start,
        end=end,
        usage=per_tariff,
        total=Joule.accumulate(per_tariff.values()),
    )


async def report(start: datetime, end: datetime, store: ReadingStore) -> UsageReport:
    """Build a usage report from the readings stored within ``[start, end]``.

    Raises:
        ValueError: If the bounds are naive or *end* precedes *start*.
        StoreError: If the backend fails or holds a corrupt record.
    """
    span = TimeSpan(start=start, end=end)
    values = await store.scan_range(span)
    readings = [decode_record(value) for value in values]
    logger.info(
        "Reporting on %d readings between %s and %s",
        len(readings),
        start.isoformat(),
        end.isoformat(),
    )
    return build_report(readings, start=start, end=end)


def format_report(usage_report: UsageReport) -> str:
    """Render a report as one ``<tariff>: <kWh> kWh`` line per tariff plus a total."""
    lines = [
        f"{tariff.label}: {energy.kwh()} kWh"
        for tariff, energy in usage_report.usage.items()
    ]
    lines.append("")
    lines.append(f"total: {usage_report.total.kwh()} kWh")
    return "\n".join(lines)
