# src/autotrade/core/models/__init__.py
from .candle import Candle
from .enums import MarginType, OrderSide, OrderType, Side
from .order import OrderRequest
from .position import PositionRisk, ProfitEvaluation
from .symbol_filter import SymbolFilter

__all__ = [
    "Candle",
    "MarginType",
    "OrderSide",
    "OrderType",
    "Side",
    "OrderRequest",
    "PositionRisk",
    "ProfitEvaluation",
    "SymbolFilter",
]
