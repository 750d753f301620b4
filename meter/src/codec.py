"""
Wire layout and content fingerprint of persisted readings.

Record layout (17 bytes, little-endian)::

    offset 0   1 byte   tariff discriminant (1 = normal, 2 = off-peak)
    offset 1   8 bytes  energy in joules, signed
    offset 9   8 bytes  Unix timestamp in seconds, signed

The fingerprint is the hex SHA-256 of the first 9 bytes only. Leaving the
timestamp out makes it the idempotency key: an unchanged counter polled
again later produces the same key and is stored once.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import hashlib
import struct
from datetime import UTC, datetime

from meter.src.energy import Joule, Tariff
from meter.src.errors import CorruptRecordError
from meter.src.models import Reading

_RECORD = struct.Struct("<Bqq")
_CONTENT = struct.Struct("<Bq")

RECORD_SIZE = _RECORD.size
"""Size of an encoded record in bytes (17)."""

CONTENT_SIZE = _CONTENT.size
"""Number of leading record bytes covered by the fingerprint (9)."""


def encode_record(reading: Reading) -> bytes:
    """Serialize *reading* into the 17-byte wire record.

    Raises:
        OverflowError: If energy or timestamp exceed the signed 64-bit range.
    """
    try:
        return _RECORD.pack(
            int(reading.tariff),
            reading.energy.joules,
            int(reading.timestamp.timestamp()),
        )
    except struct.error as exc:
        raise OverflowError(f"reading does not fit the wire layout: {exc}") from exc


def decode_record(data: bytes) -> Reading:
    """Deserialize a 17-byte wire record.

    Raises:
        CorruptRecordError: On a wrong length or an unknown tariff byte.
    """
    if len(data) != RECORD_SIZE:
        raise CorruptRecordError(
            f"record must be {RECORD_SIZE} bytes, got {len(data)}"
        )
    discriminant, joules, seconds = _RECORD.unpack(data)
    try:
        tariff = Tariff(discriminant)
    except ValueError:
        raise CorruptRecordError(f"unknown tariff byte {discriminant}") from None
    return Reading(
        tariff=tariff,
        energy=Joule(joules),
        timestamp=datetime.fromtimestamp(seconds, tz=UTC),
    )


def record_timestamp(data: bytes) -> int:
    """Return the Unix seconds of an encoded record without a full decode."""
    if len(data) != RECORD_SIZE:
        raise CorruptRecordError(
            f"record must be {RECORD_SIZE} bytes, got {len(data)}"
        )
    return _RECORD.unpack(data)[2]


def fingerprint_bytes(data: bytes) -> str:
    """Fingerprint an already encoded record."""
    return hashlib.sha256(data[:CONTENT_SIZE]).hexdigest()


def fingerprint(reading: Reading) -> str:
    """Return the hex SHA-256 over tariff byte and little-endian joules."""
    return fingerprint_bytes(encode_record(reading))
