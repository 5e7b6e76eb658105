# src/autotrade/cli/manual.py
"""
Manual operator overrides.

    python -m src.autotrade.cli.manual has-open BTCUSDT
    python -m src.autotrade.cli.manual open BTCUSDT BUY --quantity 0.002
    python -m src.autotrade.cli.manual close BTCUSDT
"""
from __future__ import annotations

import argparse
import logging
import sys

from src.autotrade.config import load_config
from src.autotrade.core.engine.auto_trade import AutoTrader
from src.autotrade.core.models.enums import OrderSide
from src.autotrade.exchanges.binance.errors import AutoTradeError
from src.autotrade.run_auto_trade import build_trader, setup_logging


def _run(trader: AutoTrader, args: argparse.Namespace) -> str:
    sym = args.symbol.upper()

    if args.command == "has-open":
        return "position open" if trader.positions.has_open_position(sym) else "no position"

    if args.command == "cancel-all":
        trader.executor.cancel_all_open_orders(sym)
        return "cancel-all sent"

    if args.command == "evaluate-profit":
        ev = trader.positions.evaluate_profit_target(sym)
        if ev is None:
            return "no position"
        state = "target reached" if ev.should_take_profit else "target not reached"
        return f"{state}: {ev.side.value} entry={ev.entry_price} mark={ev.mark_price} target={ev.target_price:.8f}"

    if args.command == "close":
        side = OrderSide(args.side.upper()) if args.side else None
        orders = trader.executor.close_position_market(sym, side)
        return f"close orders sent: {len(orders)}"

    if args.command == "rsi":
        return "entry signal" if trader.entry.evaluate(sym) else "no entry signal"

    if args.command == "open":
        order = trader.executor.open_market_position(sym, OrderSide(args.side.upper()), args.quantity)
        return f"order sent: {order!r}"

    raise ValueError(f"unknown command {args.command}")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Manual Binance futures overrides")
    ap.add_argument("--config", default=None)
    sub = ap.add_subparsers(dest="command", required=True)

    for name in ("has-open", "cancel-all", "evaluate-profit", "rsi"):
        sub.add_parser(name).add_argument("symbol")

    p_close = sub.add_parser("close")
    p_close.add_argument("symbol")
    p_close.add_argument("side", nargs="?", choices=["BUY", "SELL", "buy", "sell"])

    p_open = sub.add_parser("open")
    p_open.add_argument("symbol")
    p_open.add_argument("side", choices=["BUY", "SELL", "buy", "sell"])
    p_open.add_argument("--quantity", default=None)

    args = ap.parse_args(argv)
    setup_logging(logging.WARNING)

    try:
        trader = build_trader(load_config(args.config))
        print(_run(trader, args))
        return 0
    except (AutoTradeError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
