"""
Telegram daemon main loop.

Runs one asyncio loop that, once per tick, fetches a telegram from the P1
gateway, parses it into per-tariff readings, and ingests them into the
store. Each tick is independent: a fetch, parse, or store failure is logged
and the loop carries on with the next tick. Stale telegrams are never
retried, since the next poll supersedes them. Graceful shutdown on
SIGTERM/SIGINT sets a shared asyncio.Event and the loop exits after the
current tick.

Log records go to stderr as one JSON object per line. The health file
records the last poll, the last new reading and the failure streak.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import signal
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from meter.src.errors import FetchError, LexError, ParseError, StoreError
from meter.src.health import HealthWriter
from meter.src.ingestion import ingest_all
from meter.src.telegram import parse_readings

if TYPE_CHECKING:
    from meter.src.config import MeterSettings
    from meter.src.fetcher import TelegramFetcher
    from meter.src.models import Reading
    from meter.src.store import ReadingStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class _JsonFormatter(logging.Formatter):
    """Render each log record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on the root logger.

    Sets up a single JSON-formatted handler writing to stderr.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


# ---------------------------------------------------------------------------
# Startup config logging
# ---------------------------------------------------------------------------


def log_config_summary(settings: MeterSettings) -> None:
    """Log a config summary at startup.

    The database URL is left out since it may embed credentials.
    """
    logger.info(
        "Meter daemon starting with config: "
        "telegram_endpoint=%s, poll_interval_s=%s, fetch_timeout_s=%s, "
        "store_backend=%s, store_path=%s, local_timezone=%s, health_path=%s",
        settings.telegram_endpoint,
        settings.poll_interval_s,
        settings.fetch_timeout_s,
        settings.store_backend,
        settings.store_path,
        settings.local_timezone,
        settings.health_path,
    )


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


# ---------------------------------------------------------------------------
# Single-iteration function (easily testable)
# ---------------------------------------------------------------------------


async def poll_once(
    *,
    fetcher: TelegramFetcher,
    store: ReadingStore,
    health: HealthWriter | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> list[Reading]:
    """Execute a single fetch-parse-ingest cycle.

    Catches all exceptions so that the caller's loop is never broken. The
    telegram is parsed completely before anything is ingested, so a
    malformed telegram stores nothing.

    Args:
        fetcher: Source of raw telegram bytes.
        store: Backend for the insert-if-absent ingestion.
        health: HealthWriter instance, or None to skip health writes.
        clock: Returns the observation timestamp for this tick.

    Returns:
        The readings that were new in this tick (empty on any failure).
    """
    new: list[Reading] = []
    ok = False
    try:
        raw = await fetcher.fetch()
        readings = parse_readings(raw, observed_at=clock())
        new = await ingest_all(readings, store)
        ok = True
    except FetchError as exc:
        logger.warning("Fetch failed, skipping tick: %s", exc)
    except (LexError, ParseError) as exc:
        logger.warning("Discarding malformed telegram: %s: %s", type(exc).__name__, exc)
    except StoreError as exc:
        logger.warning("Store error, skipping tick: %s", exc)
    except Exception:
        logger.error("Poll cycle error", exc_info=True)

    if health is not None:
        try:
            health.record_poll(ok=ok)
            if new:
                health.record_reading()
        except OSError:
            logger.warning("Failed to write health file", exc_info=True)

    return new


# ---------------------------------------------------------------------------
# Loop runner
# ---------------------------------------------------------------------------


async def run_loop(
    *,
    fetcher: TelegramFetcher,
    store: ReadingStore,
    poll_interval_s: float,
    shutdown_event: asyncio.Event,
    health: HealthWriter | None = None,
) -> None:
    """Run the poll loop until shutdown_event is set.

    Executes poll_once, then waits for poll_interval_s, checking the
    shutdown event between iterations.
    """
    logger.info("Poll loop started (interval=%ss)", poll_interval_s)
    while not shutdown_event.is_set():
        await poll_once(fetcher=fetcher, store=store, health=health)
        # Sleep for the interval, waking early on shutdown
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(
                shutdown_event.wait(),
                timeout=poll_interval_s,
            )
    logger.info("Poll loop stopped")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main(settings: MeterSettings) -> None:
    """Async entrypoint: build components from *settings* and run the loop.

    Sets up SIGTERM/SIGINT handlers to trigger graceful shutdown.

    Raises:
        ValueError: If no telegram endpoint is configured.
    """
    from meter.src.fetcher import TelegramFetcher
    from meter.src.store import open_store

    if not settings.telegram_endpoint:
        raise ValueError("TELEGRAM_ENDPOINT is required to run the daemon")

    log_config_summary(settings)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    fetcher = TelegramFetcher(
        endpoint=settings.telegram_endpoint,
        timeout_s=settings.fetch_timeout_s,
    )
    health = HealthWriter(settings.health_path)

    async with open_store(settings) as store:
        await run_loop(
            fetcher=fetcher,
            store=store,
            poll_interval_s=settings.poll_interval_s,
            shutdown_event=shutdown_event,
            health=health,
        )
    logger.info("Shutdown complete")


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event."""
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint for the telegram daemon."""
    from meter.src.config import MeterSettings

    settings = MeterSettings()
    configure_logging(settings.log_level)
    asyncio.run(async_main(settings))


if __name__ == "__main__":
    main()
