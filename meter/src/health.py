"""
Health file writer for the telegram daemon.

Writes a JSON health file at a configurable path with three fields:
- last_poll_ts: ISO timestamp of the most recent poll attempt.
- last_reading_ts: ISO timestamp of the most recent new reading.
- consecutive_failures: Number of failed ticks since the last good one.

The file is rewritten on every state change, providing a simple liveness
signal that a container HEALTHCHECK or monitoring can inspect.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path


class HealthWriter:
    """Writes daemon health status to a JSON file.

    Args:
        path: Filesystem path for the health JSON file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._last_poll_ts: str | None = None
        self._last_reading_ts: str | None = None
        self._consecutive_failures: int = 0

    def record_poll(self, *, ok: bool) -> None:
        """Record a poll attempt and write the health file.

        Args:
            ok: Whether the tick completed without error.
        """
        self._last_poll_ts = datetime.now(tz=UTC).isoformat()
        self._consecutive_failures = 0 if ok else self._consecutive_failures + 1
        self._write()

    def record_reading(self) -> None:
        """Record that a new reading was stored and write the health file."""
        self._last_reading_ts = datetime.now(tz=UTC).isoformat()
        self._write()

    def _write(self) -> None:
        data = {
            "last_poll_ts": self._last_poll_ts,
            "last_reading_ts": self._last_reading_ts,
            "consecutive_failures": self._consecutive_failures,
        }
        self.path.write_text(json.dumps(data))
