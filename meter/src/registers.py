"""
DSMR / OBIS register map -- single source of truth.

Lists the register codes the parser interprets. Every code is resolved once
into a closed ``RegisterKind`` through :data:`ALL_REGISTERS`; codes that are
not listed resolve to :data:`UNKNOWN_REGISTER` and their values are skipped.

Import registers (``1-0:1.8.x``) count energy delivered to the client,
export registers (``1-0:2.8.x``) energy delivered back to the grid. The net
energy of a tariff is import minus export.

References:
    - DSMR 5.0.2 P1 Companion Standard, section 6.12

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from meter.src.energy import Tariff

# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------


class RegisterKind(Enum):
    """Closed set of register roles the parser distinguishes."""

    IMPORT_1 = "import_1"
    EXPORT_1 = "export_1"
    IMPORT_2 = "import_2"
    EXPORT_2 = "export_2"
    TARIFF_INDICATOR = "tariff_indicator"
    UNKNOWN = "unknown"


@dataclass(frozen=True, slots=True)
class RegisterDef:
    """Definition of a single OBIS register.

    Attributes:
        code: OBIS identifier as it appears in the telegram.
        kind: Role of the register.
        unit: Unit suffix expected in the value (``"kWh"``), or ``""`` for
            plain literals.
        tariff: Tariff an energy register contributes to, ``None`` for
            non-energy registers.
        sign: ``+1`` for import, ``-1`` for export, ``0`` otherwise.
        description: Free-text description of the register.
    """

    code: str
    kind: RegisterKind
    unit: str = ""
    tariff: Tariff | None = None
    sign: int = 0
    description: str = ""

    @property
    def is_energy(self) -> bool:
        """True for the four cumulative kWh registers."""
        return self.tariff is not None


_ENERGY_REGISTERS: list[RegisterDef] = [
    RegisterDef(
        code="1-0:1.8.1",
        kind=RegisterKind.IMPORT_1,
        unit="kWh",
        tariff=Tariff.NORMAL,
        sign=1,
        description="Energy delivered to client, tariff 1",
    ),
    RegisterDef(
        code="1-0:2.8.1",
        kind=RegisterKind.EXPORT_1,
        unit="kWh",
        tariff=Tariff.NORMAL,
        sign=-1,
        description="Energy delivered by client, tariff 1",
    ),
    RegisterDef(
        code="1-0:1.8.2",
        kind=RegisterKind.IMPORT_2,
        unit="kWh",
        tariff=Tariff.OFF_PEAK,
        sign=1,
        description="Energy delivered to client, tariff 2",
    ),
    RegisterDef(
        code="1-0:2.8.2",
        kind=RegisterKind.EXPORT_2,
        unit="kWh",
        tariff=Tariff.OFF_PEAK,
        sign=-1,
        description="Energy delivered by client, tariff 2",
    ),
]

TARIFF_INDICATOR = RegisterDef(
    code="0-0:96.14.0",
    kind=RegisterKind.TARIFF_INDICATOR,
    description="Currently active tariff (1 or 2)",
)

UNKNOWN_REGISTER = RegisterDef(code="", kind=RegisterKind.UNKNOWN)
"""Placeholder returned by :func:`resolve` for codes that are not listed."""

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

ALL_REGISTERS: dict[str, RegisterDef] = {
    reg.code: reg for reg in [*_ENERGY_REGISTERS, TARIFF_INDICATOR]
}
"""Flat lookup of every known register by OBIS code."""


def resolve(code: str) -> RegisterDef:
    """Return the definition for *code*, or :data:`UNKNOWN_REGISTER`."""
    return ALL_REGISTERS.get(code, UNKNOWN_REGISTER)
