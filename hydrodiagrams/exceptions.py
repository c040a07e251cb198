"""
Custom exception hierarchy for the hydrochemistry diagram engines.

All exceptions inherit from DiagramError so callers can catch any
diagram-build failure with a single handler. Every check runs before a
single drawing primitive is produced: a build either succeeds completely
or raises one of these.
"""
from typing import Any, Dict, List, Optional, Sequence


class DiagramError(Exception):
    """Base exception for all diagram errors.

    Attributes:
        message: Human-readable error description
        details: Optional dictionary with additional context
        hint: Optional suggestion for resolution
    """

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        hint: Optional[str] = None
    ):
        self.message = message
        self.details = details or {}
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message."""
        parts = [self.message]
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"[{details_str}]")
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a JSON-ready dictionary."""
        result = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.hint:
            result["hint"] = self.hint
        return result


# =============================================================================
# Ion / Concentration Exceptions
# =============================================================================

class UnknownIonError(DiagramError):
    """Ion symbol is not present in the ion table."""

    def __init__(self, symbol: str, known_symbols: Optional[Sequence[str]] = None):
        details: Dict[str, Any] = {"symbol": symbol}
        if known_symbols:
            details["known_symbols"] = list(known_symbols)
        super().__init__(
            message=f"Unknown ion: {symbol}",
            details=details,
            hint="Use one of the built-in major ion symbols (e.g. Ca, Mg, Na, K, Cl, SO4, CO3, HCO3)"
        )
        self.symbol = symbol


class InvalidConcentrationError(DiagramError):
    """Concentration is negative, not a number, or missing for a required ion."""

    def __init__(
        self,
        symbol: str,
        value: Any = None,
        reason: str = "concentration must be a non-negative number",
        hint: Optional[str] = "Concentrations are mass concentrations in mg/L; use 0 for absent species"
    ):
        details: Dict[str, Any] = {"symbol": symbol}
        if value is not None:
            details["value"] = value
        super().__init__(
            message=f"Invalid concentration for {symbol}: {reason}",
            details=details,
            hint=hint
        )
        self.symbol = symbol
        self.value = value


class DegenerateTotalError(DiagramError):
    """Equivalent total used as a divisor is zero.

    Raised instead of letting NaN or infinite coordinates reach the output.
    """

    def __init__(self, side: str, total: float = 0.0, hint: Optional[str] = None):
        super().__init__(
            message=f"Cannot plot: zero total on side {side}",
            details={"side": side, "total_meq_l": total},
            hint=hint or f"At least one {side} concentration must be greater than zero"
        )
        self.side = side
        self.total = total


class InconsistentGroupError(DiagramError):
    """Stiff ion group is empty or mixes cation and anion valence signs."""

    def __init__(self, symbols: List[str], reason: str = "group mixes cations and anions"):
        super().__init__(
            message=f"Invalid ion group {' + '.join(symbols) or '(empty)'}: {reason}",
            details={"symbols": list(symbols)},
            hint="Declare cations and anions in separate groups"
        )
        self.symbols = list(symbols)


class ChargeBalanceError(DiagramError):
    """Sample fails the charge balance check in strict mode.

    A well-analysed natural water is close to electroneutral; a large
    imbalance usually points at a missing or mistyped analyte.
    """

    def __init__(
        self,
        cation_meq: float,
        anion_meq: float,
        tolerance_percent: float = 5.0,
        sample: Optional[str] = None,
        hint: str = "Check ion concentrations or disable strict_charge_balance"
    ):
        total = cation_meq + anion_meq
        imbalance_percent = abs(cation_meq - anion_meq) / total * 100 if total > 0 else 0.0
        details: Dict[str, Any] = {
            "cation_meq_l": round(cation_meq, 3),
            "anion_meq_l": round(anion_meq, 3),
            "imbalance_percent": round(imbalance_percent, 1),
            "tolerance_percent": tolerance_percent,
        }
        if sample:
            details["sample"] = sample
        super().__init__(
            message=f"Charge imbalance of {imbalance_percent:.1f}% exceeds {tolerance_percent}% tolerance",
            details=details,
            hint=hint
        )
        self.imbalance_percent = imbalance_percent
