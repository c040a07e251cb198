"""
Major ion table for natural-water analysis.

The eight species used by both diagrams, with the valence and formula
weight needed to turn mg/L into mEq/L. The table is built once at import
and never modified.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .exceptions import UnknownIonError

# Standard atomic weights (g/mol)
H_WEIGHT = 1.008
C_WEIGHT = 12.011
O_WEIGHT = 15.999
S_WEIGHT = 32.066


@dataclass(frozen=True)
class Ion:
    """A dissolved ion: symbol, display name, charge and molar mass."""
    symbol: str            # e.g. HCO3
    name: str              # e.g. Bicarbonate
    valence: int           # signed charge, never zero
    formula_weight: float  # g/mol, always positive

    def __post_init__(self):
        if self.valence == 0:
            raise ValueError(f"Ion {self.symbol} must carry a charge")
        if self.formula_weight <= 0:
            raise ValueError(f"Ion {self.symbol} must have a positive formula weight")

    @property
    def is_cation(self) -> bool:
        return self.valence > 0

    @property
    def is_anion(self) -> bool:
        return self.valence < 0

    @property
    def equivalent_weight(self) -> float:
        """Mass per equivalent (mg/meq)."""
        return self.formula_weight / abs(self.valence)


ION_TABLE: Tuple[Ion, ...] = (
    Ion('Ca', 'Calcium', 2, 40.078),
    Ion('Mg', 'Magnesium', 2, 24.305),
    Ion('Na', 'Sodium', 1, 22.98976928),
    Ion('K', 'Potassium', 1, 39.0983),
    Ion('Cl', 'Chloride', -1, 35.45),
    Ion('SO4', 'Sulfate', -2, S_WEIGHT + O_WEIGHT * 4),
    Ion('CO3', 'Carbonate', -2, C_WEIGHT + O_WEIGHT * 3),
    Ion('HCO3', 'Bicarbonate', -1, H_WEIGHT + C_WEIGHT + O_WEIGHT * 3),
)

_IONS_BY_SYMBOL: Dict[str, Ion] = {ion.symbol: ion for ion in ION_TABLE}

ION_SYMBOLS: Tuple[str, ...] = tuple(ion.symbol for ion in ION_TABLE)
CATION_SYMBOLS: Tuple[str, ...] = tuple(ion.symbol for ion in ION_TABLE if ion.is_cation)
ANION_SYMBOLS: Tuple[str, ...] = tuple(ion.symbol for ion in ION_TABLE if ion.is_anion)


def lookup_ion(symbol: str) -> Optional[Ion]:
    """Return the ion with this symbol, or None when it is not in the table."""
    return _IONS_BY_SYMBOL.get(symbol)


def get_ion(symbol: str) -> Ion:
    """
    Return the ion with this symbol.

    Raises:
        UnknownIonError: If the symbol is not in the table
    """
    ion = lookup_ion(symbol)
    if ion is None:
        raise UnknownIonError(symbol, known_symbols=ION_SYMBOLS)
    return ion
