from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

DEFAULT_MIN_NOTIONAL = Decimal("5.0")
DEFAULT_QUANTITY_PRECISION = 1


@dataclass(frozen=True, slots=True)
class SymbolFilter:
    """
    Quantity constraints for one symbol:
      • min_notional        > 0 (MIN_NOTIONAL.notional, 5.0 when exchange says 0)
      • quantity_precision  >= 1 decimals (from LOT_SIZE.stepSize)
    """

    symbol: str
    min_notional: Decimal
    quantity_precision: int
