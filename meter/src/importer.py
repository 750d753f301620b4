"""
Historical CSV importer.

Loads a meter-history export with one row per timestamp and four cumulative
register columns::

    time,Electricity imported T1,Electricity imported T2,Electricity exported T1,Electricity exported T2
    2023-01-01 00:00,1234.567,2345.678,10.000,20.000

Each row becomes two readings (normal from T1, off-peak from T2) with
``energy = import - export`` and is fed through the same ingestion contract
as live telegrams, so re-importing a file, or importing values the daemon
already saw, stores nothing twice. Every row is converted before anything is
written: a bad row aborts the import with nothing stored.

CHANGELOG:
- 2026-10-17: Initial creation
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from pathlib import Path

from meter.src.energy import Joule, Tariff
from meter.src.errors import CsvImportError, ParseError
from meter.src.ingestion import ingest_all
from meter.src.models import Reading
from meter.src.report import normalize
from meter.src.store import ReadingStore

logger = logging.getLogger(__name__)

TIME_COLUMN = "time"
TIME_FORMAT = "%Y-%m-%d %H:%M"

# tariff -> (import column, export column)
TARIFF_COLUMNS: dict[Tariff, tuple[str, str]] = {
    Tariff.NORMAL: ("Electricity imported T1", "Electricity exported T1"),
    Tariff.OFF_PEAK: ("Electricity imported T2", "Electricity exported T2"),
}


@dataclass(frozen=True)
class ImportSummary:
    """Outcome of one CSV import.

    Attributes:
        rows: Data rows read from the file.
        readings: Readings produced (two per row).
        inserted: Readings that were new and got stored.
    """

    rows: int
    readings: int
    inserted: int

    @property
    def duplicates(self) -> int:
        """Readings that were already stored."""
        return self.readings - self.inserted


def _parse_row(row: dict[str, str], *, row_number: int, tz: tzinfo) -> list[Reading]:
    raw_time = (row.get(TIME_COLUMN) or "").strip()
    try:
        timestamp = datetime.strptime(raw_time, TIME_FORMAT).replace(tzinfo=tz)
    except ValueError as exc:
        raise CsvImportError(f"invalid time {raw_time!r}", row=row_number) from exc

    readings = []
    for tariff, (import_column, export_column) in TARIFF_COLUMNS.items():
        try:
            imported = Joule.from_kwh((row.get(import_column) or "").strip())
            exported = Joule.from_kwh((row.get(export_column) or "").strip())
        except ParseError as exc:
            raise CsvImportError(f"{tariff.label}: {exc}", row=row_number) from exc
        readings.append(
            Reading(tariff=tariff, energy=imported - exported, timestamp=timestamp)
        )
    return readings


def read_csv(
    source: str | Path | io.TextIOBase,
    *,
    tz: tzinfo,
) -> tuple[int, list[Reading]]:
    """Convert a CSV history export into readings.

    Args:
        source: Path to the file, or an open text stream.
        tz: Time zone of the ``time`` column.

    Returns:
        ``(row_count, readings)`` with readings sorted by timestamp.

    Raises:
        CsvImportError: If a column is missing or a row cannot be converted.
        OSError: If the file cannot be read.
    """
    if isinstance(source, (str, Path)):
        with open(source, newline="", encoding="utf-8") as handle:
            return read_csv(handle, tz=tz)

    reader = csv.DictReader(source, delimiter=",")
    required = {TIME_COLUMN, *(col for pair in TARIFF_COLUMNS.values() for col in pair)}
    missing = required - set(reader.fieldnames or [])
    if missing:
        raise CsvImportError(f"missing columns: {', '.join(sorted(missing))}", row=0)

    rows = 0
    readings: list[Reading] = []
    for rows, row in enumerate(reader, start=1):
        readings.extend(_parse_row(row, row_number=rows, tz=tz))
    return rows, normalize(readings)


async def import_csv(
    source: str | Path | io.TextIOBase,
    store: ReadingStore,
    *,
    tz: tzinfo,
) -> ImportSummary:
    """Import a CSV history export into *store*.

    Raises:
        CsvImportError: If the file is malformed; nothing is stored then.
        StoreError: If the backend fails.
    """
    rows, readings = read_csv(source, tz=tz)
    inserted = await ingest_all(readings, store)

    summary = ImportSummary(rows=rows, readings=len(readings), inserted=len(inserted))
    logger.info(
        "Imported %d rows: %d readings, %d new, %d duplicates",
        summary.rows,
        summary.readings,
        summary.inserted,
        summary.duplicates,
    )
    return summary
