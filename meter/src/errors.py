"""
Exception hierarchy for the telegram pipeline.

Lexer and parser errors abort the current telegram only; the daemon logs
them and moves on to the next tick. Store and fetch errors wrap failures of
the external collaborators so callers never have to catch driver-specific
exception types.

CHANGELOG:
- 2026-10-17: Initial creation
"""

from __future__ import annotations


class MeterError(Exception):
    """Base class for every error raised by the meter package."""


# ---------------------------------------------------------------------------
# Lexical errors
# ---------------------------------------------------------------------------


class LexError(MeterError):
    """Malformed protocol text."""


class EofError(LexError):
    """The token stream ended while another token was still expected."""

    def __init__(self, expected: str) -> None:
        super().__init__(f"unexpected end of telegram, expected {expected}")
        self.expected = expected


class UnexpectedTokenError(LexError):
    """Input that matches no token pattern, or a token of the wrong kind.

    Attributes:
        offset: Character offset into the telegram where the problem starts.
    """

    def __init__(self, message: str, *, offset: int) -> None:
        super().__init__(f"{message} (at offset {offset})")
        self.offset = offset


# ---------------------------------------------------------------------------
# Semantic errors
# ---------------------------------------------------------------------------


class ParseError(MeterError):
    """Well-formed tokens with inconsistent content."""


class MissingTariffIndicatorError(ParseError):
    """The telegram carried no tariff indicator register."""


class UnknownTariffError(ParseError):
    """The tariff indicator holds a value other than 1 or 2."""


class InvalidValueError(ParseError):
    """A register value could not be parsed."""


class PrecisionError(ParseError):
    """A kWh quantity is not an exact whole number of joules."""


# ---------------------------------------------------------------------------
# Collaborator errors
# ---------------------------------------------------------------------------


class StoreError(MeterError):
    """The backing store failed (I/O, driver error, corruption)."""


class CorruptRecordError(StoreError):
    """A persisted record does not match the 17-byte wire layout."""


class FetchError(MeterError):
    """The raw feed source could not deliver a telegram."""


class CsvImportError(MeterError):
    """A historical CSV row could not be converted into readings.

    Attributes:
        row: 1-based data row number (the header is not counted).
    """

    def __init__(self, message: str, *, row: int) -> None:
        super().__init__(f"row {row}: {message}")
        self.row = row
