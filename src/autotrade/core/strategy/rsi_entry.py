# src/autotrade/core/strategy/rsi_entry.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from src.autotrade.core.indicators.rsi import RSI_PERIOD, calculate_rsi
from src.autotrade.core.models.candle import Candle
from src.autotrade.exchanges.binance.rest import BinanceFuturesREST

log = logging.getLogger("src.autotrade.core.strategy.rsi_entry")

INTERVAL = "15m"
LOOKBACK = 16  # 15 closed + 1 in progress
OVERSOLD = 30.0


@dataclass(frozen=True, slots=True)
class RsiSignal:
    rsi: float
    prev_low: float
    latest_low: float

    @property
    def higher_low(self) -> bool:
        return self.latest_low > self.prev_low

    @property
    def should_enter(self) -> bool:
        return self.rsi < OVERSOLD and self.higher_low


def rsi_signal(candles: Sequence[Candle], period: int = RSI_PERIOD) -> RsiSignal | None:
    """
    Last candle is treated as in progress and dropped.
    Returns None when there are not enough closed candles.
    """
    closed = list(candles)[:-1]
    if len(closed) < period + 1:
        return None

    rsi = calculate_rsi([float(c.close) for c in closed], period)
    return RsiSignal(
        rsi=rsi,
        prev_low=float(closed[-2].low),
        latest_low=float(closed[-1].low),
    )


class RsiEntryEvaluator:
    """
    Entry condition on 15m candles:
      • RSI(14) < 30
      • latest closed low > previous closed low
    """

    def __init__(self, rest: BinanceFuturesREST, *, interval: str = INTERVAL, lookback: int = LOOKBACK):
        self.rest = rest
        self.interval = interval
        self.lookback = int(lookback)

    def evaluate(self, symbol: str) -> bool:
        candles = self.rest.klines(symbol, self.interval, self.lookback)
        sig = rsi_signal(candles)
        if sig is None:
            log.warning("[RSI] %s not enough candles (%d)", symbol, len(candles))
            return False

        log.info(
            "[RSI] %s rsi=%.2f low %.8g -> %.8g enter=%s",
            symbol, sig.rsi, sig.prev_low, sig.latest_low, sig.should_enter,
        )
        return sig.should_enter
