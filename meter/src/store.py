"""
Storage contract shared by the ingestion pipeline and the reporting engine.

The core only needs two operations from a store:

- insert_if_absent(key, value): atomically insert a record unless the key
  exists; True when it was inserted.
- scan_range(predicate): every stored value for which the predicate holds,
  in insertion order.

Keys are fingerprints (ASCII hex), values are 17-byte wire records. Two
backends implement the contract: :class:`~meter.src.kvstore.KvStore`
(embedded key-value table) and :class:`~meter.src.sqlstore.SqlStore`
(relational history table). :func:`open_store` picks one from settings.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import contextlib
import math
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from meter.src.codec import record_timestamp

if TYPE_CHECKING:
    from meter.src.config import MeterSettings


class ReadingStore(Protocol):
    """Key-value operations required by ingestion and reporting."""

    async def insert_if_absent(self, key: bytes, value: bytes) -> bool:
        ...

    async def scan_range(self, predicate: Callable[[bytes], bool]) -> list[bytes]:
        ...


@dataclass(frozen=True)
class TimeSpan:
    """Inclusive time-window predicate over encoded records.

    Backends that can filter on the timestamp natively may use
    :attr:`start_s` and :attr:`end_s` instead of calling the predicate.

    Attributes:
        start: First instant of the span (timezone-aware).
        end: Last instant of the span, inclusive (timezone-aware).
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("TimeSpan bounds must be timezone-aware")
        if self.end < self.start:
            raise ValueError(f"span end {self.end} is before start {self.start}")

    @property
    def start_s(self) -> int:
        """First whole Unix second inside the span."""
        return math.ceil(self.start.timestamp())

    @property
    def end_s(self) -> int:
        """Last whole Unix second inside the span."""
        return math.floor(self.end.timestamp())

    def __call__(self, value: bytes) -> bool:
        return self.start_s <= record_timestamp(value) <= self.end_s


@contextlib.asynccontextmanager
async def open_store(settings: MeterSettings) -> AsyncIterator[ReadingStore]:
    """Open the backend selected by ``settings.store_backend``.

    Usage::

        async with open_store(settings) as store:
            await ingest(reading, store)
    """
    if settings.store_backend == "sql":
        from meter.src.sqlstore import SqlStore

        backend = SqlStore(settings.resolved_database_url)
    else:
        from meter.src.kvstore import KvStore

        backend = KvStore(settings.store_path)

    async with backend:
        yield backend
