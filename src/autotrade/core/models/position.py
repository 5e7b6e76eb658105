from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .enums import Side

# positionSide reported by Binance in one-way mode
ONE_WAY = "BOTH"


@dataclass(frozen=True, slots=True)
class PositionRisk:
    """One row of GET /fapi/v2/positionRisk. Never mutated locally."""

    symbol: str
    position_amt: Decimal
    entry_price: Decimal
    mark_price: Decimal
    position_side: str = ONE_WAY

    @property
    def is_open(self) -> bool:
        return abs(self.position_amt) > 0

    @property
    def side(self) -> Side:
        if self.position_side == Side.LONG.value:
            return Side.LONG
        if self.position_side == Side.SHORT.value:
            return Side.SHORT
        return Side.LONG if self.position_amt > 0 else Side.SHORT

    @property
    def is_hedge_leg(self) -> bool:
        return self.position_side != ONE_WAY


@dataclass(frozen=True, slots=True)
class ProfitEvaluation:
    should_take_profit: bool
    side: Side
    entry_price: Decimal
    mark_price: Decimal
    target_price: Decimal
