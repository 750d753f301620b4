"""
Energy quantities and tariffs.

``Joule`` is the fixed-point representation of a cumulative meter register:
an exact integer number of joules, so that sums and differences of counter
values never drift the way binary floats do. Meters report kWh with three
decimals; one thousandth of a kWh is 3600 J, so every reported value maps to
a whole number of joules.

Conversion from kWh is exact-or-fail: a quantity that does not scale to an
integral joule count raises ``PrecisionError`` instead of being rounded.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext
from enum import IntEnum

from meter.src.errors import InvalidValueError, PrecisionError, UnknownTariffError

JOULES_PER_KWH = 3_600_000
"""Scale factor between kilowatt-hours and joules."""


@dataclass(frozen=True, order=True)
class Joule:
    """An exact, signed amount of energy in joules.

    Attributes:
        joules: Integer joule count. Negative values occur for net
            exporters and for differences between readings.
    """

    joules: int

    @classmethod
    def from_kwh(cls, kwh: Decimal | int | str) -> Joule:
        """Convert a decimal kWh quantity into joules.

        Args:
            kwh: Quantity in kilowatt-hours as ``Decimal``, ``int`` or a
                decimal string. Floats are refused since they cannot carry
                an exact decimal value.

        Raises:
            TypeError: If *kwh* is a float.
            InvalidValueError: If *kwh* is not a finite decimal number.
            PrecisionError: If the scaled value is not a whole joule count.
        """
        if isinstance(kwh, float):
            raise TypeError("kWh must be a Decimal, int or str, not float")
        try:
            value = Decimal(kwh)
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise InvalidValueError(f"not a decimal kWh quantity: {kwh!r}") from exc
        if not value.is_finite():
            raise InvalidValueError(f"not a finite kWh quantity: {kwh!r}")

        # Enough precision that the multiplication itself never rounds.
        with localcontext() as ctx:
            ctx.prec = max(28, len(value.as_tuple().digits) + 8)
            scaled = value * JOULES_PER_KWH
            if scaled != scaled.to_integral_value():
                raise PrecisionError(
                    f"{kwh} kWh is not a whole number of joules ({scaled} J)"
                )
        return cls(int(scaled))

    def kwh(self) -> Decimal:
        """Return the quantity in kilowatt-hours.

        Exact for every multiple of 3.6 J (one millionth of a kWh).
        """
        return Decimal(self.joules) / JOULES_PER_KWH

    @classmethod
    def accumulate(cls, values: Iterable[Joule]) -> Joule:
        """Sum *values*, starting from zero."""
        total = 0
        for value in values:
            total += value.joules
        return cls(total)

    def __add__(self, other: Joule) -> Joule:
        if not isinstance(other, Joule):
            return NotImplemented
        return Joule(self.joules + other.joules)

    def __sub__(self, other: Joule) -> Joule:
        if not isinstance(other, Joule):
            return NotImplemented
        return Joule(self.joules - other.joules)

    def __neg__(self) -> Joule:
        return Joule(-self.joules)

    def __str__(self) -> str:
        return f"{self.kwh()} kWh"


ZERO = Joule(0)


class Tariff(IntEnum):
    """Billing rate bucket of a register.

    The integer value is the discriminant byte used in the persisted record
    and matches the meter's tariff indicator.
    """

    NORMAL = 1
    OFF_PEAK = 2

    @property
    def label(self) -> str:
        """Human-readable name used in reports."""
        return _LABELS[self]

    @classmethod
    def from_indicator(cls, text: str) -> Tariff:
        """Map a tariff indicator literal such as ``"0001"`` to a tariff.

        Raises:
            UnknownTariffError: If *text* is anything other than an unsigned
                integer literal equal to 1 or 2.
        """
        literal = text.strip()
        if not (literal.isascii() and literal.isdigit()):
            raise UnknownTariffError(f"unknown tariff indicator: {text!r}")
        number = int(literal)
        try:
            return cls(number)
        except ValueError:
            raise UnknownTariffError(f"unknown tariff indicator: {number}") from None


_LABELS: dict[Tariff, str] = {
    Tariff.NORMAL: "normal",
    Tariff.OFF_PEAK: "off-peak",
}
