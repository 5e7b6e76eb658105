# src/autotrade/run_auto_trade.py
from __future__ import annotations

import argparse
import logging
import signal
import threading

from src.autotrade.config import TradingConfig, load_config
from src.autotrade.core.engine.auto_trade import AutoTrader
from src.autotrade.core.engine.runner import run_auto_trader
from src.autotrade.core.oms.executor import OrderExecutor
from src.autotrade.core.position.position_state import PositionStateEvaluator
from src.autotrade.core.strategy.rsi_entry import RsiEntryEvaluator
from src.autotrade.exchanges.binance.rest import BinanceFuturesREST
from src.autotrade.exchanges.binance.symbol_cache import SymbolFilterCache
from src.autotrade.notifications.telegram import TelegramNotifier, TelegramTarget


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def build_trader(cfg: TradingConfig) -> AutoTrader:
    """
    Wire the core once: time offset and symbol filters are resolved here,
    before any tick runs.
    """
    rest = BinanceFuturesREST(
        cfg.api_key,
        cfg.api_secret,
        base_url=cfg.base_url,
        timeout=cfg.timeout,
        recv_window=cfg.recv_window,
    )
    rest.sync_time()

    target = None
    if cfg.telegram_bot_token and cfg.telegram_chat_id:
        target = TelegramTarget(bot_token=cfg.telegram_bot_token, chat_id=cfg.telegram_chat_id)
    notifier = TelegramNotifier(target)

    symbol_filters = SymbolFilterCache.load(rest)

    return AutoTrader(
        positions=PositionStateEvaluator(
            rest,
            commission_rate=cfg.commission_rate,
            target_profit_percent=cfg.target_profit_percent,
            notifier=notifier,
        ),
        entry=RsiEntryEvaluator(rest),
        executor=OrderExecutor(
            rest=rest,
            symbol_filters=symbol_filters,
            margin_type=cfg.margin_type,
            leverage=cfg.default_leverage,
            notifier=notifier,
        ),
    )


def main() -> None:
    ap = argparse.ArgumentParser(description="RSI auto-trader for Binance USDⓈ-M futures")
    ap.add_argument("--config", default=None, help="YAML config (default: config/autotrade.yaml)")
    args = ap.parse_args()

    setup_logging()
    logger = logging.getLogger("src.autotrade.run_auto_trade")
    logger.info("=== AUTO TRADE START ===")

    cfg = load_config(args.config)
    logger.info(
        "symbols=%s leverage=%dx margin=%s target=%s commission=%s",
        ",".join(cfg.symbols), cfg.default_leverage, cfg.margin_type.value,
        cfg.target_profit_percent, cfg.commission_rate,
    )

    trader = build_trader(cfg)

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    run_auto_trader(
        trader,
        symbols=list(cfg.symbols),
        entry_interval_sec=cfg.entry_interval_sec,
        exit_interval_sec=cfg.exit_interval_sec,
        stop=stop,
    )
    logger.info("=== AUTO TRADE STOP ===")


if __name__ == "__main__":
    main()
