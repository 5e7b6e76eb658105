# src/autotrade/core/engine/runner.py
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterable

from src.autotrade.core.engine.auto_trade import AutoTrader

log = logging.getLogger("src.autotrade.core.engine.runner")


def run_tick(name: str, fn: Callable[[str], object], symbols: Iterable[str]) -> int:
    """
    One pass over symbols, sequential. A failing symbol is logged and
    skipped for this tick. Returns the number of failures.
    """
    failed = 0
    for symbol in symbols:
        try:
            fn(symbol)
        except Exception:
            failed += 1
            log.exception("[%s] %s failed", name, symbol)
    return failed


def _loop(name: str, interval_sec: float, body: Callable[[], object], stop: threading.Event) -> None:
    log.info("[%s] loop started interval=%ss", name, interval_sec)
    while not stop.is_set():
        started = time.monotonic()
        try:
            body()
        except Exception:
            log.exception("[%s] tick failed", name)
        stop.wait(max(0.0, interval_sec - (time.monotonic() - started)))


def run_auto_trader(
    trader: AutoTrader,
    *,
    symbols: list[str],
    entry_interval_sec: float,
    exit_interval_sec: float,
    stop: threading.Event | None = None,
) -> None:
    stop = stop or threading.Event()

    def entry_tick() -> None:
        run_tick("ENTRY", trader.evaluate_entry, symbols)

    def exit_tick() -> None:
        run_tick("EXIT", trader.evaluate_exit, trader.exit_symbols(symbols))

    threads = [
        threading.Thread(
            target=_loop,
            args=("ENTRY", float(entry_interval_sec), entry_tick, stop),
            daemon=True,
            name="AutoTrade-entry",
        ),
        threading.Thread(
            target=_loop,
            args=("EXIT", float(exit_interval_sec), exit_tick, stop),
            daemon=True,
            name="AutoTrade-exit",
        ),
    ]
    for t in threads:
        t.start()

    # main thread waits until stop
    for t in threads:
        t.join()
