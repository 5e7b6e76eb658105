from __future__ import annotations
from enum import Enum

class Side(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"

    @property
    def exit_order_side(self) -> "OrderSide":
        return OrderSide.SELL if self is Side.LONG else OrderSide.BUY

class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def opening_position_side(self) -> Side:
        return Side.LONG if self is OrderSide.BUY else Side.SHORT

class OrderType(str, Enum):
    MARKET = "MARKET"

class MarginType(str, Enum):
    CROSSED = "CROSSED"
    ISOLATED = "ISOLATED"
