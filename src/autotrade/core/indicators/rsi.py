from __future__ import annotations

from typing import Sequence

from src.autotrade.exchanges.binance.errors import MathematicalDegeneracyError

RSI_PERIOD = 14

# avg loss == 0 -> RS undefined; reported as maximum strength
RSI_ZERO_LOSS = 100.0


def average_gain_loss(closes: Sequence[float], period: int = RSI_PERIOD) -> tuple[float, float]:
    """
    Simple average gain / loss over diffs 1..period (one-shot, no smoothing).
    """
    if period <= 0:
        raise ValueError("period must be > 0")
    if len(closes) < period + 1:
        raise ValueError(f"need at least {period + 1} closes, got {len(closes)}")

    gain = 0.0
    loss = 0.0
    for i in range(1, period + 1):
        diff = float(closes[i]) - float(closes[i - 1])
        if diff >= 0:
            gain += diff
        else:
            loss -= diff

    return gain / period, loss / period


def relative_strength(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        raise MathematicalDegeneracyError(
            f"relative strength undefined: avg_loss=0 (avg_gain={avg_gain})"
        )
    return avg_gain / avg_loss


def calculate_rsi(closes: Sequence[float], period: int = RSI_PERIOD) -> float:
    """
    RSI over the first `period` diffs of `closes`.
    Zero average loss (including a flat window) yields RSI_ZERO_LOSS.
    """
    avg_gain, avg_loss = average_gain_loss(closes, period)
    try:
        rs = relative_strength(avg_gain, avg_loss)
    except MathematicalDegeneracyError:
        return RSI_ZERO_LOSS
    return 100.0 - (100.0 / (1.0 + rs))
