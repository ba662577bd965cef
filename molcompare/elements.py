"""
Chemical constants shared by graphs and patterns.

Bond orders and the element groups that patterns use for constraints such
as "any halogen".
"""

from __future__ import annotations

from enum import IntEnum
from typing import Final, FrozenSet


class BondOrder(IntEnum):
    """Bond order enumeration."""

    SINGLE = 1
    DOUBLE = 2
    TRIPLE = 3
    AROMATIC = 4

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def coerce(cls, value: "BondOrder | int | str") -> "BondOrder":
        """Convert an int, a name ("double") or a SMILES bond symbol to a BondOrder.

        Raises:
            ValueError: If the value does not name a bond order.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip()
            if key in _BOND_SYMBOLS:
                return _BOND_SYMBOLS[key]
            try:
                return cls[key.upper()]
            except KeyError:
                raise ValueError(f"Unknown bond order: {value!r}") from None
        return cls(int(value))


_BOND_SYMBOLS: Final[dict[str, BondOrder]] = {
    "-": BondOrder.SINGLE,
    "=": BondOrder.DOUBLE,
    "#": BondOrder.TRIPLE,
    ":": BondOrder.AROMATIC,
}


HALOGENS: Final[FrozenSet[str]] = frozenset({"F", "Cl", "Br", "I", "At"})

CHALCOGENS: Final[FrozenSet[str]] = frozenset({"O", "S", "Se", "Te"})

PNICTOGENS: Final[FrozenSet[str]] = frozenset({"N", "P", "As", "Sb"})

# Elements with a lowercase aromatic form in SMILES
AROMATIC_SUBSET: Final[FrozenSet[str]] = frozenset({
    "B", "C", "N", "O", "P", "S", "Se", "As",
})


def normalize_symbol(symbol: str) -> str:
    """Return the canonical capitalization of an element symbol ("cl" -> "Cl")."""
    symbol = symbol.strip()
    if not symbol:
        raise ValueError("Empty element symbol")
    if symbol == "*":
        return symbol
    return symbol[0].upper() + symbol[1:].lower()
