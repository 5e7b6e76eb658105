# src/autotrade/core/oms/executor.py
from __future__ import annotations

import logging
from decimal import ROUND_UP, Decimal, InvalidOperation, localcontext
from typing import List, Optional

from src.autotrade.core.models.enums import MarginType, OrderSide
from src.autotrade.core.models.order import OrderRequest
from src.autotrade.core.models.symbol_filter import SymbolFilter
from src.autotrade.exchanges.binance.rest import BinanceFuturesREST
from src.autotrade.exchanges.binance.symbol_cache import SymbolFilterCache
from src.autotrade.notifications.telegram import Notifier, notify

log = logging.getLogger("src.autotrade.core.oms.executor")

# head-room over MIN_NOTIONAL so mark price drift does not reject the order
NOTIONAL_BUFFER = Decimal("1.05")


def quantity_step(precision: int) -> Decimal:
    return Decimal(1).scaleb(-int(precision))


def compute_order_quantity(filt: SymbolFilter, mark_price: Decimal) -> str:
    """
    Smallest quantity with filt.quantity_precision decimals whose notional
    is >= min_notional * 1.05. Always rounded UP.
    """
    mark_price = Decimal(mark_price)
    if mark_price <= 0:
        raise ValueError(f"mark price must be > 0 (got {mark_price})")

    target_notional = filt.min_notional * NOTIONAL_BUFFER
    with localcontext() as ctx:
        ctx.rounding = ROUND_UP
        raw_qty = target_notional / mark_price
    qty = raw_qty.quantize(quantity_step(filt.quantity_precision), rounding=ROUND_UP)
    return format(qty, "f")


def normalize_quantity(quantity: str, filt: Optional[SymbolFilter]) -> str:
    """
    Operator-supplied quantity -> plain decimal string.
    When filters are known the value is padded to the symbol precision,
    finer values are rejected.
    """
    try:
        q = Decimal(str(quantity).strip())
    except InvalidOperation:
        raise ValueError(f"quantity is not a number: {quantity!r}") from None
    if q <= 0:
        raise ValueError(f"quantity must be > 0 (got {quantity})")

    if filt is None:
        return format(q, "f")

    step = quantity_step(filt.quantity_precision)
    if q != q.quantize(step):
        raise ValueError(
            f"quantity {quantity} exceeds {filt.quantity_precision} decimals for {filt.symbol}"
        )
    return format(q.quantize(step), "f")


class OrderExecutor:
    """
    Market order execution for one account.

    Not idempotent against Binance order ids: the caller must invoke each
    operation at most once per tick per symbol.
    """

    def __init__(
        self,
        *,
        rest: BinanceFuturesREST,
        symbol_filters: SymbolFilterCache,
        margin_type: MarginType,
        leverage: int,
        notifier: Optional[Notifier] = None,
    ):
        self.rest = rest
        self.symbol_filters = symbol_filters
        self.margin_type = MarginType(margin_type)
        self.leverage = int(leverage)
        self.notifier = notifier

    # ------------------------------------------------------------------
    # open
    # ------------------------------------------------------------------

    def open_market_position(
        self,
        symbol: str,
        side: OrderSide,
        quantity: Optional[str] = None,
    ) -> OrderRequest:
        side = OrderSide(side)

        # 1) account setup (idempotent on Binance side)
        self.rest.change_margin_type(symbol, self.margin_type.value)
        self.rest.change_leverage(symbol, self.leverage)

        # 2) quantity
        if quantity is None or not str(quantity).strip():
            mark = self.rest.mark_price(symbol)
            filt = self.symbol_filters.get(symbol)
            qty = compute_order_quantity(filt, mark)
            log.info(
                "[QTY] %s mark=%s min_notional=%s precision=%d -> qty=%s",
                symbol, mark, filt.min_notional, filt.quantity_precision, qty,
            )
        else:
            filt = self.symbol_filters.get(symbol) if symbol in self.symbol_filters else None
            qty = normalize_quantity(quantity, filt)

        # 3) hedge mode: positionSide follows the opening side
        hedge = self.rest.fetch_position_mode()
        order = OrderRequest(
            symbol=symbol,
            side=side,
            quantity=qty,
            position_side=side.opening_position_side if hedge else None,
        )

        # 4) submit
        self._submit(order)

        # 5) notify (best-effort)
        notify(
            self.notifier,
            f"🚀 Market order sent:\n"
            f"Symbol: {symbol}\n"
            f"Side: {side.value}\n"
            f"Quantity: {qty}\n"
            f"Leverage: {self.leverage}x",
        )
        return order

    # ------------------------------------------------------------------
    # close
    # ------------------------------------------------------------------

    def close_position_market(
        self,
        symbol: str,
        side: Optional[OrderSide] = None,
    ) -> List[OrderRequest]:
        """
        Close open positions of `symbol` with market orders.

        `side` is the closing ORDER side (SELL closes LONG, BUY closes SHORT);
        None closes everything. In hedge mode positionSide is the side of the
        position being closed, not the order direction.
        """
        want = OrderSide(side) if side is not None else None
        sent: List[OrderRequest] = []

        for pos in self.rest.position_risk(symbol):
            if pos.symbol != symbol or not pos.is_open:
                continue

            exit_side = pos.side.exit_order_side
            if want is not None and exit_side is not want:
                continue

            order = OrderRequest(
                symbol=symbol,
                side=exit_side,
                quantity=format(abs(pos.position_amt), "f"),
                position_side=pos.side if pos.is_hedge_leg else None,
            )
            self._submit(order)
            sent.append(order)
            log.info("[CLOSE] %s %s qty=%s", symbol, pos.side.value, order.quantity)

        if not sent:
            log.info("[CLOSE] %s nothing to close (side=%s)", symbol, want.value if want else "ANY")
        return sent

    # ------------------------------------------------------------------
    # cancel
    # ------------------------------------------------------------------

    def cancel_all_open_orders(self, symbol: str) -> dict:
        log.info("[CANCEL ALL] %s", symbol)
        return self.rest.cancel_all_open_orders(symbol)

    # ------------------------------------------------------------------

    def _submit(self, order: OrderRequest) -> dict:
        log.info(
            "[ORDER SUBMIT] %s %s qty=%s positionSide=%s",
            order.symbol, order.side.value, order.quantity,
            order.position_side.value if order.position_side else None,
        )
        resp = self.rest.new_order(order)
        log.info("[ORDER ACK] %s orderId=%s status=%s", order.symbol, resp.get("orderId"), resp.get("status"))
        return resp
