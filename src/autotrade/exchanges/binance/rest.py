# src/autotrade/exchanges/binance/rest.py
from __future__ import annotations

import hashlib
import hmac
import logging
import threading
import time
from typing import Any, Callable
from urllib.parse import urlencode

import requests

from src.autotrade.core.models.candle import Candle
from src.autotrade.core.models.order import OrderRequest
from src.autotrade.core.models.position import PositionRisk
from src.autotrade.exchanges.binance.errors import (
    ExchangeApiError,
    ResponseSchemaError,
    TransportError,
)
from src.autotrade.exchanges.binance.normalize import (
    norm_klines,
    norm_mark_price,
    norm_position_mode,
    norm_position_risk,
    norm_server_time,
)

BASE_URL = "https://fapi.binance.com"

# "No need to change margin type."
ERR_MARGIN_TYPE_UNCHANGED = -4046

log = logging.getLogger("src.autotrade.exchanges.binance.rest")


def _ts_ms() -> int:
    return int(time.time() * 1000)


def sign_query(secret: bytes, query: str) -> str:
    """HMAC_SHA256(secret, query) as lowercase hex."""
    return hmac.new(secret, query.encode("utf-8"), hashlib.sha256).hexdigest()


class BinanceFuturesREST:
    """
    Binance USDⓈ-M Futures REST client.

    Signed calls:
      • timestamp = local clock + server offset (offset fetched once)
      • query string keeps parameter insertion order, then timestamp, recvWindow
      • signature is appended as the LAST query parameter

    No retries here: a failed call raises and the caller decides.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        base_url: str = BASE_URL,
        timeout: float = 10.0,
        recv_window: int = 5000,
        session: requests.Session | None = None,
        clock: Callable[[], int] = _ts_ms,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or ""
        self.api_secret = (api_secret or "").encode("utf-8")

        self.timeout = float(timeout)
        self.recv_window = int(recv_window)
        self._clock = clock

        self.sess = session or requests.Session()
        if self.api_key:
            self.sess.headers.update({"X-MBX-APIKEY": self.api_key})

        # serverTime - localTime, ms. Written once.
        self._time_offset: int | None = None
        self._time_lock = threading.Lock()

    # ---------------------------------------------------------------------
    # TIME SYNC
    # ---------------------------------------------------------------------

    def server_time(self) -> int:
        return norm_server_time(self._request("GET", "/fapi/v1/time", signed=False))

    def sync_time(self) -> int:
        """
        Compute the server offset if it is not known yet and return it.
        Safe to call from several threads: only the first caller hits /time.
        """
        offset = self._time_offset
        if offset is not None:
            return offset

        with self._time_lock:
            if self._time_offset is None:
                server_ms = self.server_time()
                self._time_offset = int(server_ms) - int(self._clock())
                log.info("[TIME SYNC] Binance offset=%dms", self._time_offset)
            return self._time_offset

    def timestamp(self) -> int:
        offset = self.sync_time()
        return int(self._clock()) + offset

    # ---------------------------------------------------------------------
    # SIGN
    # ---------------------------------------------------------------------

    def build_query(self, params: dict[str, Any] | None) -> str:
        """
        Ordered query string: caller params (None / blank dropped) in insertion
        order, then timestamp and recvWindow. No sorting.
        """
        if not self.api_secret:
            raise RuntimeError("Binance signed request requires api_secret")

        items: list[tuple[str, str]] = []
        for k, v in (params or {}).items():
            if v is None:
                continue
            s = str(v)
            if not s.strip():
                continue
            items.append((k, s))

        items.append(("timestamp", str(self.timestamp())))
        items.append(("recvWindow", str(self.recv_window)))
        return urlencode(items)

    # ---------------------------------------------------------------------
    # CORE REQUEST
    # ---------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        signed: bool = True,
    ) -> Any:
        url = f"{self.base_url}{path}"

        if signed:
            qs = self.build_query(params)
            url = f"{url}?{qs}&signature={sign_query(self.api_secret, qs)}"
        elif params:
            url = f"{url}?{urlencode(list(params.items()))}"

        try:
            r = self.sess.request(method=method, url=url, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(method, path, e) from e

        if not 200 <= r.status_code < 300:
            code = msg = None
            try:
                payload = r.json()
                if isinstance(payload, dict):
                    code = payload.get("code")
                    msg = payload.get("msg")
            except ValueError:
                pass
            raise ExchangeApiError(
                method=method,
                path=path,
                status_code=r.status_code,
                body=r.text,
                code=code,
                msg=msg,
            )

        if not r.text:
            return {}
        try:
            return r.json()
        except ValueError as e:
            raise ResponseSchemaError(f"non-JSON body for {method} {path}", r.text[:500]) from e

    # ---------------------------------------------------------------------
    # HTTP WRAPPERS
    # ---------------------------------------------------------------------

    def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._request("GET", path, params=params)

    def post(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._request("POST", path, params=params)

    def delete(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return self._request("DELETE", path, params=params)

    # ---------------------------------------------------------------------
    # API METHODS
    # ---------------------------------------------------------------------

    def fetch_exchange_info(self) -> dict:
        data = self.get("/fapi/v1/exchangeInfo")
        if not isinstance(data, dict):
            raise ResponseSchemaError("exchangeInfo is not an object", data)
        return data

    def position_risk(self, symbol: str | None = None) -> list[PositionRisk]:
        params = {"symbol": symbol} if symbol else None
        return norm_position_risk(self.get("/fapi/v2/positionRisk", params))

    def mark_price(self, symbol: str):
        return norm_mark_price(self.get("/fapi/v1/premiumIndex", {"symbol": symbol}))

    def fetch_position_mode(self) -> bool:
        # {"dualSidePosition": true/false}
        return norm_position_mode(self.get("/fapi/v1/positionSide/dual"))

    def klines(self, symbol: str, interval: str, limit: int) -> list[Candle]:
        params = {"symbol": symbol, "interval": interval, "limit": int(limit)}
        return norm_klines(self.get("/fapi/v1/klines", params))

    def change_leverage(self, symbol: str, leverage: int) -> dict:
        return self.post("/fapi/v1/leverage", {"symbol": symbol, "leverage": int(leverage)})

    def change_margin_type(self, symbol: str, margin_type: str) -> dict:
        try:
            return self.post("/fapi/v1/marginType", {"symbol": symbol, "marginType": margin_type})
        except ExchangeApiError as e:
            if e.code == ERR_MARGIN_TYPE_UNCHANGED:
                log.info("[MARGIN] %s already %s", symbol, margin_type)
                return {}
            raise

    def new_order(self, order: OrderRequest) -> dict:
        return self.post("/fapi/v1/order", order.to_params())

    def cancel_all_open_orders(self, symbol: str) -> dict:
        return self.delete("/fapi/v1/allOpenOrders", {"symbol": symbol})
