"""
Command-line interface for the meter tools.

Usage:
    meter run
    meter import -f history.csv
    meter report 2024-01-01..2024-01-31
    meter report 2024-01-01..2024-01-31 --json

Configuration (store backend, paths, time zone, gateway URL) comes from the
environment, see :class:`~meter.src.config.MeterSettings`.

CHANGELOG:
- 2026-10-17: Initial creation
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from meter.src.config import MeterSettings
from meter.src.errors import MeterError
from meter.src.importer import import_csv
from meter.src.main import async_main, configure_logging
from meter.src.report import format_report, parse_span, report
from meter.src.store import open_store


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser with the run/import/report subcommands."""
    parser = argparse.ArgumentParser(
        prog="meter",
        description="Smart-meter telegram ingestion and usage reports",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="poll the P1 gateway and store new readings")

    import_parser = sub.add_parser("import", help="import a historical CSV export")
    import_parser.add_argument(
        "-f", "--filename", type=Path, required=True, help="CSV file to import"
    )

    report_parser = sub.add_parser("report", help="print usage over a date span")
    report_parser.add_argument("span", help="inclusive dates, e.g. 2024-01-01..2024-01-31")
    report_parser.add_argument(
        "--json", action="store_true", help="print the report as JSON"
    )
    return parser


async def _run_import(settings: MeterSettings, filename: Path) -> None:
    async with open_store(settings) as store:
        summary = await import_csv(filename, store, tz=settings.tz)
    print(
        f">> imported {summary.rows} rows: "
        f"{summary.inserted} new readings, {summary.duplicates} duplicates"
    )


async def _run_report(settings: MeterSettings, span_text: str, as_json: bool) -> None:
    span = parse_span(span_text, settings.tz)
    async with open_store(settings) as store:
        usage_report = await report(span.start, span.end, store)
    if as_json:
        print(json.dumps(usage_report.summary(), indent=2))
    else:
        print(format_report(usage_report))


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the selected subcommand, and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = MeterSettings()
    except ValidationError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2
    configure_logging(settings.log_level)

    try:
        if args.command == "run":
            asyncio.run(async_main(settings))
        elif args.command == "import":
            asyncio.run(_run_import(settings, args.filename))
        else:
            asyncio.run(_run_report(settings, args.span, args.json))
    except (MeterError, ValueError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
