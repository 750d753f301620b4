"""
Relational store for readings using SQLAlchemy's async engine.

Keeps one row per fingerprint in a ``history`` table with the decoded
record fields as columns. Inserts use ``ON CONFLICT (checksum) DO NOTHING``
so duplicates are rejected atomically by the unique index rather than by a
read-then-write check. Works with SQLite (``sqlite+aiosqlite://``) and
PostgreSQL (``postgresql+asyncpg://``).

A :class:`~meter.src.store.TimeSpan` predicate is translated into a
``WHERE time BETWEEN`` clause; any other predicate is applied row by row.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy import BigInteger, Integer, SmallInteger, Text, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from meter.src.codec import decode_record, encode_record
from meter.src.energy import Joule
from meter.src.errors import CorruptRecordError, StoreError
from meter.src.models import Reading
from meter.src.store import TimeSpan

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for the reading history schema."""

    pass


class HistoryRecord(Base):
    """One persisted reading, unique per content fingerprint.

    Attributes:
        id: Insertion sequence number.
        checksum: Hex SHA-256 fingerprint of tariff and energy.
        time: Unix timestamp (seconds) of the first observation.
        rate: Tariff discriminant (1 = normal, 2 = off-peak).
        energy: Net cumulative energy in joules.
    """

    __tablename__ = "history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    checksum: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    time: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    rate: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    energy: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        """Return string representation of the HistoryRecord."""
        return (
            f"HistoryRecord(checksum={self.checksum[:12]!r}, "
            f"time={self.time!r}, rate={self.rate!r}, energy={self.energy!r})"
        )


class SqlStore:
    """Insert-if-absent reading store over a relational ``history`` table.

    Args:
        database_url: SQLAlchemy async database URL.

    Usage::

        async with SqlStore("sqlite+aiosqlite:///data/meter.db") as store:
            inserted = await store.insert_if_absent(key, record)
    """

    def __init__(self, database_url: str) -> None:
        self._database_url = database_url
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def open(self) -> None:
        """Create the engine and session factory, then the schema."""
        self._engine = create_async_engine(self._database_url, echo=False)
        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise StoreError(f"cannot initialise history table: {exc}") from exc
        logger.info("Opened %s history store", self._engine.dialect.name)

    async def close(self) -> None:
        """Dispose of the engine and its connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None

    async def __aenter__(self) -> SqlStore:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def insert_if_absent(self, key: bytes, value: bytes) -> bool:
        """Insert the decoded record under *key* unless it already exists.

        Returns:
            ``True`` if a row was inserted, ``False`` on a duplicate key.
        """
        assert self._engine is not None and self._session_factory is not None, (
            "SqlStore not opened. Call open() or use async with."
        )
        reading = decode_record(value)
        insert = pg_insert if self._engine.dialect.name == "postgresql" else sqlite_insert
        stmt = (
            insert(HistoryRecord)
            .values(
                checksum=key.decode("ascii"),
                time=int(reading.timestamp.timestamp()),
                rate=int(reading.tariff),
                energy=reading.energy.joules,
            )
            .on_conflict_do_nothing(index_elements=["checksum"])
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            raise StoreError(f"insert failed: {exc}") from exc
        return result.rowcount == 1

    async def scan_range(self, predicate: Callable[[bytes], bool]) -> list[bytes]:
        """Return encoded records accepted by *predicate*, in insertion order."""
        assert self._session_factory is not None, (
            "SqlStore not opened. Call open() or use async with."
        )
        stmt = select(HistoryRecord).order_by(HistoryRecord.id.asc())
        if isinstance(predicate, TimeSpan):
            stmt = stmt.where(
                HistoryRecord.time.between(predicate.start_s, predicate.end_s)
            )
        try:
            async with self._session_factory() as session:
                rows = (await session.scalars(stmt)).all()
        except SQLAlchemyError as exc:
            raise StoreError(f"scan failed: {exc}") from exc

        values = [_encode_row(row) for row in rows]
        return [value for value in values if predicate(value)]


def _encode_row(row: HistoryRecord) -> bytes:
    """Rebuild the 17-byte wire record from a history row."""
    try:
        reading = Reading(
            tariff=row.rate,
            energy=Joule(row.energy),
            timestamp=datetime.fromtimestamp(row.time, tz=UTC),
        )
    except ValueError as exc:
        raise CorruptRecordError(f"history row {row.id} is invalid: {exc}") from exc
    return encode_record(reading)
