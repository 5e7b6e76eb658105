"""
Shared fixtures: a scripted Binance REST double and a recording notifier.

Run tests with: pytest -v
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional
from unittest.mock import MagicMock

import pytest

from src.autotrade.core.models.candle import Candle
from src.autotrade.core.models.order import OrderRequest
from src.autotrade.core.models.position import PositionRisk
from src.autotrade.core.models.symbol_filter import SymbolFilter
from src.autotrade.exchanges.binance.symbol_cache import SymbolFilterCache


class FakeRest:
    """
    Stands in for BinanceFuturesREST at the typed-method level.
    Every call is recorded in `calls` as (method_name, args).
    """

    def __init__(self):
        self.positions: list[PositionRisk] = []
        self.marks: dict[str, Decimal] = {}
        self.hedge_mode = False
        self.candles: list[Candle] = []
        self.exchange_info: dict = {"symbols": []}
        self.orders: list[OrderRequest] = []
        self.calls: list[tuple[str, tuple]] = []

    def _rec(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def fetch_exchange_info(self) -> dict:
        self._rec("fetch_exchange_info")
        return self.exchange_info

    def position_risk(self, symbol: Optional[str] = None) -> list[PositionRisk]:
        self._rec("position_risk", symbol)
        return [p for p in self.positions if symbol is None or p.symbol == symbol]

    def mark_price(self, symbol: str) -> Decimal:
        self._rec("mark_price", symbol)
        return self.marks[symbol]

    def fetch_position_mode(self) -> bool:
        self._rec("fetch_position_mode")
        return self.hedge_mode

    def klines(self, symbol: str, interval: str, limit: int) -> list[Candle]:
        self._rec("klines", symbol, interval, limit)
        return list(self.candles)

    def change_leverage(self, symbol: str, leverage: int) -> dict:
        self._rec("change_leverage", symbol, leverage)
        return {"symbol": symbol, "leverage": leverage}

    def change_margin_type(self, symbol: str, margin_type: str) -> dict:
        self._rec("change_margin_type", symbol, margin_type)
        return {}

    def new_order(self, order: OrderRequest) -> dict:
        self._rec("new_order", order)
        self.orders.append(order)
        return {"orderId": len(self.orders), "status": "NEW"}

    def cancel_all_open_orders(self, symbol: str) -> dict:
        self._rec("cancel_all_open_orders", symbol)
        return {"code": 200, "msg": "The operation of cancel all open order is done."}


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.messages: list[str] = []
        self.fail = fail

    def send_message(self, text: str) -> bool:
        self.messages.append(text)
        if self.fail:
            raise RuntimeError("telegram down")
        return True


def make_candle(close: float, low: float | None = None, i: int = 0) -> Candle:
    c = Decimal(str(close))
    lo = Decimal(str(low)) if low is not None else c
    return Candle(
        open_time=i * 900_000,
        open=c,
        high=max(c, lo),
        low=lo,
        close=c,
        volume=Decimal("1"),
        close_time=(i + 1) * 900_000 - 1,
    )


def make_position(
    symbol: str,
    amt: str,
    entry: str,
    mark: str,
    position_side: str = "BOTH",
) -> PositionRisk:
    return PositionRisk(
        symbol=symbol,
        position_amt=Decimal(amt),
        entry_price=Decimal(entry),
        mark_price=Decimal(mark),
        position_side=position_side,
    )


@pytest.fixture
def fake_rest():
    return FakeRest()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def symbol_filters():
    return SymbolFilterCache({
        "BTCUSDT": SymbolFilter("BTCUSDT", Decimal("100"), 3),
        "ETHUSDT": SymbolFilter("ETHUSDT", Decimal("20"), 3),
        "XRPUSDT": SymbolFilter("XRPUSDT", Decimal("5"), 1),
    })


@pytest.fixture
def mock_session():
    sess = MagicMock()
    sess.headers = {}
    return sess


@pytest.fixture
def candle():
    return make_candle


@pytest.fixture
def position():
    return make_position


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)
