"""
Ingestion service for content-addressed, idempotent storage of readings.

Each reading is keyed by its fingerprint (tariff + energy, no timestamp) and
written with the store's atomic insert-if-absent. Polling an unchanged meter
therefore yields the same key on every tick and only the first observation
is stored.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from meter.src.codec import encode_record, fingerprint
from meter.src.models import Reading
from meter.src.store import ReadingStore

logger = logging.getLogger(__name__)


async def ingest(reading: Reading, store: ReadingStore) -> Reading | None:
    """Persist *reading* unless an identical counter value is already stored.

    Args:
        reading: The reading to store.
        store: Backend implementing the insert-if-absent contract.

    Returns:
        The reading when it was newly inserted, ``None`` for a duplicate.

    Raises:
        StoreError: If the backend fails.
    """
    key = fingerprint(reading)
    inserted = await store.insert_if_absent(key.encode("ascii"), encode_record(reading))
    if not inserted:
        logger.debug(
            "Duplicate %s reading %s (%s)",
            reading.tariff.label,
            reading.energy,
            key[:12],
        )
        return None

    logger.info(
        "New %s reading: %s at %s",
        reading.tariff.label,
        reading.energy,
        reading.timestamp.isoformat(),
    )
    return reading


async def ingest_all(readings: Iterable[Reading], store: ReadingStore) -> list[Reading]:
    """Ingest *readings* in order and return the ones that were new.

    Raises:
        StoreError: On the first backend failure; readings before it stay
            stored, which is harmless since ingestion is idempotent.
    """
    inserted: list[Reading] = []
    total = 0
    for reading in readings:
        total += 1
        if await ingest(reading, store) is not None:
            inserted.append(reading)
    logger.debug("Ingested %d/%d readings", len(inserted), total)
    return inserted
