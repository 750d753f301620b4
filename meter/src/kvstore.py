"""
Embedded key-value store using async SQLite.

Stores each reading once under its fingerprint. Records are written with
``INSERT OR IGNORE`` so the existence check and the write are a single
atomic statement; two ticks that observe the same counter value can never
both report it as new. The database runs in WAL mode and survives process
restarts.

Operations:
- insert_if_absent(key, value): INSERT OR IGNORE a record; True if inserted.
- scan_range(predicate): SELECT all values in insertion order, filtered.
- count(): number of stored records.
- close(): release the connection.

Use it as an async context manager to open and close it.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

import aiosqlite

from meter.src.errors import StoreError

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS kv (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    key BLOB NOT NULL UNIQUE,
    value BLOB NOT NULL
);
"""

_INSERT_SQL = """\
INSERT OR IGNORE INTO kv (key, value) VALUES (?, ?);
"""

_SCAN_SQL = """\
SELECT value
FROM kv
ORDER BY seq ASC;
"""

_COUNT_SQL = "SELECT COUNT(*) FROM kv;"


class KvStore:
    """Durable insert-if-absent key-value store backed by SQLite.

    Keys and values are opaque byte strings. The caller is responsible for
    encoding readings (see :mod:`meter.src.codec`).

    Args:
        path: Filesystem path for the SQLite database file.
              Accepts ``str`` or ``pathlib.Path``.

    Usage::

        async with KvStore(path="/data/meter.db") as store:
            inserted = await store.insert_if_absent(key, record)
            values = await store.scan_range(lambda value: True)
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._db: aiosqlite.Connection | None = None

    async def open(self) -> None:
        """Open the SQLite connection and initialize the schema."""
        try:
            self._db = await aiosqlite.connect(str(self._path))
            await self._db.execute("PRAGMA journal_mode=WAL;")
            await self._db.execute(_CREATE_TABLE_SQL)
            await self._db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(f"cannot open key-value store {self._path}: {exc}") from exc
        logger.info("Opened key-value store at %s", self._path)

    async def close(self) -> None:
        """Close the underlying SQLite connection.

        After calling close, no further operations should be performed
        on this KvStore instance.
        """
        if self._db is not None:
            await self._db.close()
            self._db = None

    async def __aenter__(self) -> KvStore:
        """Enter async context manager: open the database."""
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager: close the database."""
        await self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def insert_if_absent(self, key: bytes, value: bytes) -> bool:
        """Store *value* under *key* unless the key already exists.

        Returns:
            ``True`` if the record was inserted, ``False`` if *key* was
            already present (the stored value is left untouched).
        """
        assert self._db is not None, "KvStore not opened. Call open() or use async with."
        try:
            cursor = await self._db.execute(_INSERT_SQL, (key, value))
            await self._db.commit()
        except aiosqlite.Error as exc:
            raise StoreError(f"insert failed: {exc}") from exc
        return cursor.rowcount == 1

    async def scan_range(self, predicate: Callable[[bytes], bool]) -> list[bytes]:
        """Return every stored value accepted by *predicate*.

        Values are returned in insertion order.
        """
        assert self._db is not None, "KvStore not opened. Call open() or use async with."
        try:
            cursor = await self._db.execute(_SCAN_SQL)
            rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise StoreError(f"scan failed: {exc}") from exc
        return [bytes(row[0]) for row in rows if predicate(bytes(row[0]))]

    async def count(self) -> int:
        """Return the number of stored records."""
        assert self._db is not None, "KvStore not opened. Call open() or use async with."
        try:
            cursor = await self._db.execute(_COUNT_SQL)
            row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise StoreError(f"count failed: {exc}") from exc
        return row[0]
