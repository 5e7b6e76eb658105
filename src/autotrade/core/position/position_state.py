# src/autotrade/core/position/position_state.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Optional

from src.autotrade.core.models.enums import Side
from src.autotrade.core.models.position import PositionRisk, ProfitEvaluation
from src.autotrade.exchanges.binance.rest import BinanceFuturesREST
from src.autotrade.notifications.telegram import Notifier, notify

log = logging.getLogger("src.autotrade.core.position.position_state")


def profit_target_price(
    *,
    side: Side,
    entry_price: Decimal,
    commission_rate: Decimal,
    target_profit_percent: Decimal,
) -> Decimal:
    """
    Target net of round-trip commission:
      buffer = entry * commission * 2
      LONG   entry * (1 + target) + buffer
      SHORT  entry * (1 - target) - buffer
    """
    slippage_buffer = entry_price * commission_rate * 2
    if side is Side.LONG:
        return entry_price * (1 + target_profit_percent) + slippage_buffer
    return entry_price * (1 - target_profit_percent) - slippage_buffer


def evaluate_position(
    pos: PositionRisk,
    *,
    commission_rate: Decimal,
    target_profit_percent: Decimal,
) -> ProfitEvaluation:
    side = pos.side
    target = profit_target_price(
        side=side,
        entry_price=pos.entry_price,
        commission_rate=commission_rate,
        target_profit_percent=target_profit_percent,
    )
    if side is Side.LONG:
        hit = pos.mark_price >= target
    else:
        hit = pos.mark_price <= target

    return ProfitEvaluation(
        should_take_profit=hit,
        side=side,
        entry_price=pos.entry_price,
        mark_price=pos.mark_price,
        target_price=target,
    )


class PositionStateEvaluator:
    """
    Reads live positionRisk on every call (no caching) and answers:
      • is a position open for the symbol
      • has the open position reached its profit target
    """

    def __init__(
        self,
        rest: BinanceFuturesREST,
        *,
        commission_rate: Decimal,
        target_profit_percent: Decimal,
        notifier: Optional[Notifier] = None,
    ):
        self.rest = rest
        self.commission_rate = Decimal(commission_rate)
        self.target_profit_percent = Decimal(target_profit_percent)
        self.notifier = notifier

    def open_positions(self, symbol: str | None = None) -> List[PositionRisk]:
        return [
            p for p in self.rest.position_risk(symbol)
            if p.is_open and (symbol is None or p.symbol == symbol)
        ]

    def has_open_position(self, symbol: str) -> bool:
        return bool(self.open_positions(symbol))

    def open_position_symbols(self) -> List[str]:
        seen: list[str] = []
        for p in self.open_positions():
            if p.symbol not in seen:
                seen.append(p.symbol)
        return seen

    def evaluate_profit_targets(self, symbol: str) -> List[ProfitEvaluation]:
        """
        One evaluation per open leg (hedge mode may have LONG and SHORT
        open together). Notifies once per leg that reached its target.
        """
        out: List[ProfitEvaluation] = []
        for pos in self.open_positions(symbol):
            ev = evaluate_position(
                pos,
                commission_rate=self.commission_rate,
                target_profit_percent=self.target_profit_percent,
            )
            log.info(
                "[TP] %s %s entry=%s mark=%s target=%s hit=%s",
                symbol, ev.side.value, ev.entry_price, ev.mark_price,
                f"{ev.target_price:.8f}", ev.should_take_profit,
            )

            if ev.should_take_profit:
                notify(
                    self.notifier,
                    f"💰 Take-profit reached: {symbol}\n"
                    f"Side: {ev.side.value}\n"
                    f"Entry: {ev.entry_price:.2f}\n"
                    f"Mark: {ev.mark_price:.2f}\n"
                    f"Target: {ev.target_price:.2f}",
                )
            out.append(ev)
        return out

    def evaluate_profit_target(self, symbol: str) -> Optional[ProfitEvaluation]:
        """First leg that reached its target, else the first open leg."""
        evs = self.evaluate_profit_targets(symbol)
        if not evs:
            return None
        return next((ev for ev in evs if ev.should_take_profit), evs[0])
