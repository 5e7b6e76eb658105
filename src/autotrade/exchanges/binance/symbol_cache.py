# src/autotrade/exchanges/binance/symbol_cache.py
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping

from src.autotrade.core.models.symbol_filter import SymbolFilter
from src.autotrade.exchanges.binance.errors import MissingMetadataError
from src.autotrade.exchanges.binance.filters import parse_symbol_filter
from src.autotrade.exchanges.binance.rest import BinanceFuturesREST

log = logging.getLogger("src.autotrade.exchanges.binance.symbol_cache")


class SymbolFilterCache:
    """
    In-memory symbol -> SymbolFilter map.

    Loaded once from exchangeInfo at startup and never refreshed;
    restart the process to pick up changed filters.
    """

    def __init__(self, filters: Mapping[str, SymbolFilter]):
        self._filters: Mapping[str, SymbolFilter] = MappingProxyType(dict(filters))

    @classmethod
    def load(cls, rest: BinanceFuturesREST) -> "SymbolFilterCache":
        info = rest.fetch_exchange_info()

        parsed: dict[str, SymbolFilter] = {}
        for s in info.get("symbols") or []:
            name = str(s.get("symbol") or "").upper()
            if not name:
                continue
            parsed[name] = parse_symbol_filter(s)

        log.info("[SymbolFilters] cached %d symbols", len(parsed))
        return cls(parsed)

    def get(self, symbol: str) -> SymbolFilter:
        try:
            return self._filters[symbol]
        except KeyError:
            raise MissingMetadataError(symbol) from None

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._filters

    def __len__(self) -> int:
        return len(self._filters)
