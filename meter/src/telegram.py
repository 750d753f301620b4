"""
Pure parser that converts a raw telegram into per-tariff readings.

Consumes the token stream of :class:`~meter.src.lexer.TelegramLexer` using
the grammar ``Comment (Code Value+)*``. Known registers are resolved through
the register map; energy registers are summed per tariff (import minus
export), the tariff indicator selects the active tariff, and every other
register is skipped together with all of its values.

This is a pure function: no I/O, no clock, no shared state. The observation
timestamp is passed in by the caller, since the registers used here carry no
timestamp of their own. A telegram either parses completely or raises; no
partial result is ever returned.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from datetime import datetime

from meter.src.energy import Joule, Tariff
from meter.src.errors import (
    EofError,
    InvalidValueError,
    MissingTariffIndicatorError,
    UnexpectedTokenError,
)
from meter.src.lexer import TelegramLexer, Token, TokenKind
from meter.src.models import Reading, Telegram
from meter.src.registers import TARIFF_INDICATOR, RegisterDef, RegisterKind, resolve

logger = logging.getLogger(__name__)

_DECIMAL_RE = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+)?")


# ---------------------------------------------------------------------------
# Token stream with one token of lookahead
# ---------------------------------------------------------------------------


class _TokenStream:
    """Peekable wrapper around a token iterator."""

    def __init__(self, tokens: Iterator[Token]) -> None:
        self._tokens = tokens
        self._peeked: Token | None = None

    def peek(self) -> Token | None:
        if self._peeked is None:
            self._peeked = next(self._tokens, None)
        return self._peeked

    def next(self) -> Token | None:
        token = self.peek()
        self._peeked = None
        return token

    def expect(self, kind: TokenKind) -> Token:
        token = self.next()
        if token is None:
            raise EofError(kind.value)
        if token.kind is not kind:
            raise UnexpectedTokenError(
                f"expected {kind.value}, got {token.kind.value} {token.text!r}",
                offset=token.offset,
            )
        return token

    def skip_values(self) -> int:
        skipped = 0
        while (token := self.peek()) is not None and token.kind is TokenKind.VALUE:
            self.next()
            skipped += 1
        return skipped


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def _parse_energy(reg_def: RegisterDef, value: str) -> Joule:
    """Parse a ``<decimal>*kWh`` register value into joules."""
    suffix = f"*{reg_def.unit}"
    if not value.endswith(suffix):
        raise InvalidValueError(
            f"register {reg_def.code}: expected a {suffix} value, got {value!r}"
        )
    number = value[: -len(suffix)]
    if _DECIMAL_RE.fullmatch(number) is None:
        raise InvalidValueError(
            f"register {reg_def.code}: {number!r} is not a decimal number"
        )
    return Joule.from_kwh(number)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_telegram(raw: bytes | str, *, observed_at: datetime) -> Telegram:
    """Parse one telegram into a :class:`Telegram`.

    Args:
        raw: Telegram text as ASCII bytes or str.
        observed_at: Timestamp stamped on every reading (timezone-aware).

    Returns:
        The telegram header, the active tariff, and one reading per tariff
        whose energy registers appeared.

    Raises:
        LexError: On malformed protocol text or a premature end.
        ParseError: On missing or unknown tariff indicator, or on an energy
            value that is not a valid, exact kWh quantity.
    """
    stream = _TokenStream(iter(TelegramLexer(raw)))
    header = stream.expect(TokenKind.COMMENT).text

    active_tariff: Tariff | None = None
    net: dict[Tariff, Joule] = {}

    while stream.peek() is not None:
        code = stream.expect(TokenKind.CODE)
        value = stream.expect(TokenKind.VALUE)
        reg_def = resolve(code.text)

        if reg_def.is_energy:
            energy = _parse_energy(reg_def, value.text)
            if reg_def.sign < 0:
                energy = -energy
            net[reg_def.tariff] = net.get(reg_def.tariff, Joule(0)) + energy
        elif reg_def.kind is RegisterKind.TARIFF_INDICATOR:
            active_tariff = Tariff.from_indicator(value.text)
        else:
            extra = stream.skip_values()
            logger.debug("Skipping register %s (%d values)", code.text, extra + 1)

    if active_tariff is None:
        raise MissingTariffIndicatorError(
            f"telegram {header!r} has no {TARIFF_INDICATOR.code} register"
        )

    readings = tuple(
        Reading(tariff=tariff, energy=net[tariff], timestamp=observed_at)
        for tariff in Tariff
        if tariff in net
    )
    return Telegram(header=header, active_tariff=active_tariff, readings=readings)


def parse_readings(raw: bytes | str, *, observed_at: datetime) -> list[Reading]:
    """Parse one telegram and return only its readings."""
    return list(parse_telegram(raw, observed_at=observed_at).readings)
