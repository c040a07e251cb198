"""
Unit Conversion Module for the diagram engines

Converts mass concentrations (mg/L) into equivalent concentrations (mEq/L)
and validates concentration records before any geometry is computed.
"""

from typing import Dict, Iterable, Mapping, Optional, Sequence, Union
import math
import numbers
import logging

from .exceptions import InvalidConcentrationError
from .ions import Ion, get_ion

logger = logging.getLogger(__name__)

IonLike = Union[Ion, str]


def _as_ion(ion: IonLike) -> Ion:
    return ion if isinstance(ion, Ion) else get_ion(ion)


def _check_concentration(symbol: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidConcentrationError(symbol, value, "concentration must be a number")
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        raise InvalidConcentrationError(symbol, value, "concentration must be finite")
    if value < 0:
        raise InvalidConcentrationError(symbol, value, "concentration must not be negative")
    return value


def to_equivalents(ion: IonLike, mg_l: float) -> float:
    """
    Convert mg/L to mEq/L for a specific ion.

    Args:
        ion: Ion or ion symbol (e.g. 'Ca', 'HCO3')
        mg_l: Concentration in mg/L

    Returns:
        Concentration in mEq/L

    Raises:
        UnknownIonError: If the symbol is not recognized
        InvalidConcentrationError: If mg_l is negative or not a finite number
    """
    ion = _as_ion(ion)
    mg_l = _check_concentration(ion.symbol, mg_l)
    return mg_l * abs(ion.valence) / ion.formula_weight


def meq_to_mg(ion: IonLike, meq_l: float) -> float:
    """
    Convert mEq/L to mg/L for a specific ion.

    Args:
        ion: Ion or ion symbol
        meq_l: Concentration in mEq/L

    Returns:
        Concentration in mg/L
    """
    ion = _as_ion(ion)
    meq_l = _check_concentration(ion.symbol, meq_l)
    return meq_l * ion.formula_weight / abs(ion.valence)


def validate_record(
    record: Mapping[str, float],
    required: Iterable[str] = ()
) -> Dict[str, float]:
    """
    Validate a concentration record (ion symbol -> mg/L).

    Every key must be a known ion, every value a non-negative number, and
    every symbol in ``required`` must be present.

    Returns:
        Plain dict of float concentrations

    Raises:
        UnknownIonError: If a key is not a known ion symbol
        InvalidConcentrationError: If a value is invalid or a required ion is missing
    """
    cleaned = {}
    for symbol, value in record.items():
        get_ion(symbol)
        cleaned[symbol] = _check_concentration(symbol, value)

    for symbol in required:
        if symbol not in cleaned:
            get_ion(symbol)
            raise InvalidConcentrationError(
                symbol,
                reason="no concentration supplied",
                hint="Supply every major ion; use 0 for species that were not detected"
            )

    return cleaned


def record_to_equivalents(
    record: Mapping[str, float],
    symbols: Optional[Sequence[str]] = None
) -> Dict[str, float]:
    """
    Convert a concentration record to mEq/L.

    Args:
        record: Ion symbol -> mg/L
        symbols: Ions to convert (default: every key of the record); all must be present

    Returns:
        Ion symbol -> mEq/L
    """
    if symbols is None:
        symbols = list(record.keys())
    cleaned = validate_record(record, required=symbols)
    return {symbol: to_equivalents(symbol, cleaned[symbol]) for symbol in symbols}


def sum_equivalents(equivalents: Mapping[str, float], symbols: Iterable[str]) -> float:
    """Sum the mEq/L of the given ions."""
    return sum(equivalents[symbol] for symbol in symbols)


def calculate_charge_balance(cations_meq_l: float, anions_meq_l: float) -> float:
    """
    Calculate charge balance error percentage.

    Args:
        cations_meq_l: Total cation charge in mEq/L
        anions_meq_l: Total anion charge in mEq/L

    Returns:
        Charge balance error as percentage
    """
    if cations_meq_l + anions_meq_l == 0:
        return 0.0

    return abs(cations_meq_l - anions_meq_l) / (cations_meq_l + anions_meq_l) * 100
