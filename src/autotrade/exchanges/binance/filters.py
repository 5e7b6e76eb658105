from __future__ import annotations

from decimal import Decimal, InvalidOperation

from src.autotrade.core.models.symbol_filter import (
    DEFAULT_MIN_NOTIONAL,
    DEFAULT_QUANTITY_PRECISION,
    SymbolFilter,
)


def step_to_precision(step_size: str) -> int:
    """
    "0.00100000" -> 3, "1" -> 0, "10" -> -1
    (scale of the step with trailing zeros stripped)
    """
    exp = Decimal(step_size).normalize().as_tuple().exponent
    return -int(exp)


def parse_symbol_filter(sym: dict) -> SymbolFilter:
    """
    Parse Binance Futures exchangeInfo symbol entry.
    Missing / zero values fall back to the defaults.
    """
    min_notional = Decimal(0)
    precision = 0

    for f in sym.get("filters") or []:
        t = f.get("filterType")

        if t == "MIN_NOTIONAL":
            # futures: "notional"; spot-style payloads: "minNotional"
            try:
                min_notional = Decimal(str(f.get("notional", f.get("minNotional", 0))))
            except InvalidOperation:
                min_notional = Decimal(0)

        elif t == "LOT_SIZE":
            try:
                precision = step_to_precision(str(f.get("stepSize", "0")))
            except InvalidOperation:
                precision = 0

    if min_notional <= 0:
        min_notional = DEFAULT_MIN_NOTIONAL
    if precision <= 0:
        precision = DEFAULT_QUANTITY_PRECISION

    return SymbolFilter(
        symbol=str(sym.get("symbol") or "").upper(),
        min_notional=min_notional,
        quantity_precision=precision,
    )
