# src/autotrade/exchanges/binance/errors.py
from __future__ import annotations

from typing import Any


class AutoTradeError(Exception):
    """Base class for every failure raised by the trading core."""


class ConfigError(AutoTradeError):
    pass


class TransportError(AutoTradeError):
    """Network / IO failure while reaching the exchange."""

    def __init__(self, method: str, path: str, cause: BaseException | None = None):
        self.method = method
        self.path = path
        self.cause = cause
        super().__init__(f"Binance transport error {method} {path}: {cause!r}")


class ExchangeApiError(AutoTradeError):
    """
    Non-2xx response from Binance.

    Binance usually answers with {"code": ..., "msg": ...}; both are kept
    when present, raw body is always kept.
    """

    def __init__(
        self,
        *,
        method: str,
        path: str,
        status_code: int,
        body: str,
        code: int | None = None,
        msg: str | None = None,
    ):
        self.method = method
        self.path = path
        self.status_code = int(status_code)
        self.body = body
        self.code = code
        self.msg = msg

        if code is not None or msg is not None:
            detail = f"code={code} msg={msg}"
        else:
            detail = (body or "")[:500]
        super().__init__(f"Binance HTTP {status_code} {method} {path}: {detail}")


class ResponseSchemaError(AutoTradeError):
    """Response is missing a field or has an unexpected shape."""

    def __init__(self, what: str, payload: Any = None):
        self.what = what
        self.payload = payload
        super().__init__(f"Unexpected Binance response: {what}")


class MissingMetadataError(AutoTradeError):
    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Symbol filters not cached for symbol={symbol}")


class MathematicalDegeneracyError(AutoTradeError):
    pass


class NotificationError(AutoTradeError):
    pass
