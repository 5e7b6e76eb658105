# src/autotrade/core/engine/auto_trade.py
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from src.autotrade.core.models.enums import OrderSide
from src.autotrade.core.models.order import OrderRequest
from src.autotrade.core.oms.executor import OrderExecutor
from src.autotrade.core.position.position_state import PositionStateEvaluator
from src.autotrade.core.strategy.rsi_entry import RsiEntryEvaluator


class AutoTrader:
    """
    Per-symbol entry / exit decisions. The only entry points for the driver:

      evaluate_entry(symbol)  no position + RSI signal  -> BUY market (auto qty)
      evaluate_exit(symbol)   profit target reached      -> cancel all + close hit legs

    Exchange errors propagate to the driver; nothing is rolled back.
    """

    def __init__(
        self,
        *,
        positions: PositionStateEvaluator,
        entry: RsiEntryEvaluator,
        executor: OrderExecutor,
    ):
        self.logger = logging.getLogger("src.autotrade.core.engine.auto_trade")
        self.positions = positions
        self.entry = entry
        self.executor = executor

    def evaluate_entry(self, symbol: str) -> Optional[OrderRequest]:
        if self.positions.has_open_position(symbol):
            self.logger.debug("[ENTRY] %s position open -> skip", symbol)
            return None

        if not self.entry.evaluate(symbol):
            return None

        self.logger.info("[ENTRY] %s RSI signal -> open BUY", symbol)
        return self.executor.open_market_position(symbol, OrderSide.BUY)

    def evaluate_exit(self, symbol: str) -> List[OrderRequest]:
        hits = [ev for ev in self.positions.evaluate_profit_targets(symbol) if ev.should_take_profit]
        if not hits:
            return []

        self.logger.info(
            "[EXIT] %s %s target hit -> cancel + close",
            symbol, ",".join(ev.side.value for ev in hits),
        )
        self.executor.cancel_all_open_orders(symbol)

        sent: List[OrderRequest] = []
        for ev in hits:
            sent.extend(self.executor.close_position_market(symbol, ev.side.exit_order_side))
        return sent

    def exit_symbols(self, configured: Iterable[str]) -> List[str]:
        """Configured symbols plus any symbol with an open position."""
        out = list(dict.fromkeys(configured))
        for s in self.positions.open_position_symbols():
            if s not in out:
                out.append(s)
        return out
