# src/autotrade/core/models/order.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from src.autotrade.core.models.enums import OrderSide, OrderType, Side


@dataclass(frozen=True, slots=True)
class OrderRequest:
    """
    Market order as sent to POST /fapi/v1/order.

    quantity is already a plain decimal string with exactly the symbol's
    quantity precision; positionSide is set only in hedge mode.
    """

    symbol: str
    side: OrderSide
    quantity: str
    order_type: OrderType = OrderType.MARKET
    position_side: Optional[Side] = None

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {
            "symbol": self.symbol,
            "side": self.side.value,
            "type": self.order_type.value,
            "quantity": self.quantity,
        }
        if self.position_side is not None:
            params["positionSide"] = self.position_side.value
        return params

    def __repr__(self) -> str:
        ps = self.position_side.value if self.position_side else "-"
        return (
            f"OrderRequest("
            f"{self.symbol} {self.side.value} "
            f"qty={self.quantity} "
            f"type={self.order_type.value} "
            f"positionSide={ps}"
            f")"
        )
