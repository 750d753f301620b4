"""
Unit tests for the meter command line.

Tests verify:
- Subcommand parsing for run, import and report
- import stores CSV readings and reports duplicates on re-import
- report prints text or JSON usage for a span
- Configuration and runtime errors map to exit codes 2 and 1

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from meter.src.cli import build_parser, main

HEADER = (
    "time,Electricity imported T1,Electricity exported T1,"
    "Electricity imported T2,Electricity exported T2\n"
)


@pytest.fixture(autouse=True)
def _no_logging_setup():
    """Keep the root logger untouched by the CLI."""
    with patch("meter.src.cli.configure_logging"):
        yield


@pytest.fixture()
def store_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    db_path = tmp_path / "meter.db"
    monkeypatch.setenv("STORE_PATH", str(db_path))
    return db_path


@pytest.fixture()
def history_csv(tmp_path: Path) -> Path:
    path = tmp_path / "history.csv"
    path.write_text(
        HEADER
        + "2024-01-01 00:00,1.000,0,0.500,0\n"
        + "2024-01-31 23:00,3.000,0,1.000,0\n",
        encoding="utf-8",
    )
    return path


class TestParser:
    """Argument parsing."""

    def test_import_requires_filename(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["import"])

    def test_import_filename(self) -> None:
        args = build_parser().parse_args(["import", "-f", "data.csv"])
        assert args.command == "import"
        assert args.filename == Path("data.csv")

    def test_report_json_flag(self) -> None:
        args = build_parser().parse_args(["report", "2024-01-01..2024-01-31", "--json"])
        assert args.span == "2024-01-01..2024-01-31"
        assert args.json is True

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestImportCommand:
    """meter import -f FILE"""

    def test_import_then_reimport(
        self, store_env: Path, history_csv: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["import", "-f", str(history_csv)]) == 0
        assert ">> imported 2 rows: 4 new readings, 0 duplicates" in capsys.readouterr().out

        assert main(["import", "-f", str(history_csv)]) == 0
        assert ">> imported 2 rows: 0 new readings, 4 duplicates" in capsys.readouterr().out

    def test_missing_file(
        self, store_env: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["import", "-f", str(tmp_path / "absent.csv")]) == 1
        assert capsys.readouterr().err.startswith("error:")

    def test_bad_csv(
        self, store_env: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "bad.csv"
        path.write_text("time,foo\n", encoding="utf-8")
        assert main(["import", "-f", str(path)]) == 1
        assert "missing columns" in capsys.readouterr().err


class TestReportCommand:
    """meter report SPAN"""

    def test_text_report(
        self, store_env: Path, history_csv: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["import", "-f", str(history_csv)])
        capsys.readouterr()

        assert main(["report", "2024-01-01..2024-01-31"]) == 0
        out = capsys.readouterr().out
        assert "normal: 2 kWh" in out
        assert "off-peak: 0.5 kWh" in out
        assert "total: 2.5 kWh" in out

    def test_json_report(
        self, store_env: Path, history_csv: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        main(["import", "-f", str(history_csv)])
        capsys.readouterr()

        assert main(["report", "2024-01-01..2024-01-31", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["usage_kwh"] == {"normal": "2", "off-peak": "0.5"}
        assert data["total_kwh"] == "2.5"

    def test_empty_store(self, store_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["report", "2024-01-01..2024-01-01"]) == 0
        assert "total: 0 kWh" in capsys.readouterr().out

    def test_bad_span(self, store_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["report", "January"]) == 1
        assert "error:" in capsys.readouterr().err


class TestErrors:
    """Exit codes."""

    def test_configuration_error(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setenv("POLL_INTERVAL_S", "0")
        assert main(["report", "2024-01-01..2024-01-01"]) == 2
        assert "configuration error" in capsys.readouterr().err

    def test_run_without_endpoint(
        self, store_env: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["run"]) == 1
        assert "TELEGRAM_ENDPOINT" in capsys.readouterr().err
