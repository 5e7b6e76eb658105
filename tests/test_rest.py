"""Signed request layer: time offset, query ordering, signature, error mapping."""
from __future__ import annotations

import hashlib
import hmac
import json
import threading
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import requests

from src.autotrade.core.models.enums import OrderSide, Side
from src.autotrade.core.models.order import OrderRequest
from src.autotrade.exchanges.binance.errors import (
    ExchangeApiError,
    ResponseSchemaError,
    TransportError,
)
from src.autotrade.exchanges.binance.rest import BinanceFuturesREST, sign_query

BASE = "https://fapi.test"
LOCAL_MS = 1_700_000_000_000
SERVER_MS = LOCAL_MS + 750


def _resp(status: int = 200, body=None, text: str | None = None):
    r = MagicMock()
    r.status_code = status
    r.text = text if text is not None else json.dumps(body)
    r.json.side_effect = lambda: json.loads(r.text)
    return r


def _router(routes: dict[str, object]):
    """path fragment -> response (or exception instance)."""

    def route(method, url, timeout):
        for frag, resp in routes.items():
            if frag in url:
                if isinstance(resp, Exception):
                    raise resp
                return resp
        raise AssertionError(f"unexpected call {method} {url}")

    return route


@pytest.fixture
def client(mock_session):
    return BinanceFuturesREST(
        "key",
        "secret",
        base_url=BASE,
        recv_window=5000,
        session=mock_session,
        clock=lambda: LOCAL_MS,
    )


def _urls(mock_session) -> list[str]:
    return [c.kwargs["url"] for c in mock_session.request.call_args_list]


def test_api_key_header_is_set(client, mock_session):
    assert mock_session.headers["X-MBX-APIKEY"] == "key"


def test_query_keeps_insertion_order_and_appends_time_fields(client, mock_session):
    mock_session.request.side_effect = _router({"/fapi/v1/time": _resp(body={"serverTime": SERVER_MS})})

    qs = client.build_query({
        "symbol": "BTCUSDT",
        "side": "BUY",
        "type": "MARKET",
        "quantity": "0.002",
        "skipped": None,
        "blank": " ",
    })

    assert qs == (
        "symbol=BTCUSDT&side=BUY&type=MARKET&quantity=0.002"
        f"&timestamp={SERVER_MS}&recvWindow=5000"
    )


def test_signature_is_last_param_and_matches_query(client, mock_session):
    mock_session.request.side_effect = _router({
        "/fapi/v1/time": _resp(body={"serverTime": SERVER_MS}),
        "/fapi/v1/allOpenOrders": _resp(body={"code": 200, "msg": "done"}),
    })

    client.delete("/fapi/v1/allOpenOrders", {"symbol": "ETHUSDT"})

    url = _urls(mock_session)[-1]
    path, qs = url.split("?", 1)
    assert path == f"{BASE}/fapi/v1/allOpenOrders"

    body, sig = qs.rsplit("&signature=", 1)
    assert body == f"symbol=ETHUSDT&timestamp={SERVER_MS}&recvWindow=5000"
    expected = hmac.new(b"secret", body.encode(), hashlib.sha256).hexdigest()
    assert sig == expected
    assert sig == sig.lower()
    assert mock_session.request.call_args.kwargs["method"] == "DELETE"


def test_sign_query_known_vector():
    # Binance API docs example
    secret = b"NhqPtmdSJYdKjVHjA7PZj4Mge3R5YNiP1e3UZjInClVN65XAbvqqM6A7H5fATj0j"
    query = (
        "symbol=LTCBTC&side=BUY&type=LIMIT&timeInForce=GTC&quantity=1&price=0.1"
        "&recvWindow=5000&timestamp=1499827319559"
    )
    assert sign_query(secret, query) == "c8db56825ae71d6d79447849e617115f4a920fa2acdcab2b053c4b2838bd6b71"


def test_server_offset_is_fetched_once(mock_session):
    ticks = iter([LOCAL_MS, LOCAL_MS + 10, LOCAL_MS + 20, LOCAL_MS + 30])
    client = BinanceFuturesREST("key", "secret", base_url=BASE, session=mock_session, clock=lambda: next(ticks))
    mock_session.request.side_effect = _router({
        "/fapi/v1/time": _resp(body={"serverTime": SERVER_MS}),
        "/fapi/v1/positionSide/dual": _resp(body={"dualSidePosition": False}),
    })

    client.fetch_position_mode()
    client.fetch_position_mode()

    urls = _urls(mock_session)
    assert sum("/fapi/v1/time" in u for u in urls) == 1
    # offset = 750 computed against the first clock reading
    assert f"timestamp={LOCAL_MS + 10 + 750}&" in urls[1]
    assert f"timestamp={LOCAL_MS + 20 + 750}&" in urls[2]


def test_time_endpoint_is_unsigned(client, mock_session):
    mock_session.request.side_effect = _router({"/fapi/v1/time": _resp(body={"serverTime": SERVER_MS})})

    assert client.sync_time() == 750
    assert _urls(mock_session) == [f"{BASE}/fapi/v1/time"]


def test_concurrent_sync_hits_time_endpoint_once(client, mock_session):
    mock_session.request.side_effect = _router({"/fapi/v1/time": _resp(body={"serverTime": SERVER_MS})})

    results: list[int] = []
    threads = [threading.Thread(target=lambda: results.append(client.sync_time())) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == [750] * 8
    assert mock_session.request.call_count == 1


def test_exchange_error_carries_code_and_msg(client, mock_session):
    mock_session.request.side_effect = _router({
        "/fapi/v1/time": _resp(body={"serverTime": SERVER_MS}),
        "/fapi/v1/order": _resp(400, body={"code": -2019, "msg": "Margin is insufficient."}),
    })

    with pytest.raises(ExchangeApiError) as ei:
        client.new_order(OrderRequest("BTCUSDT", OrderSide.BUY, "0.002"))

    err = ei.value
    assert err.method == "POST"
    assert err.path == "/fapi/v1/order"
    assert err.status_code == 400
    assert err.code == -2019
    assert "Margin is insufficient" in str(err)


def test_exchange_error_with_non_json_body(client, mock_session):
    mock_session.request.side_effect = _router({
        "/fapi/v1/time": _resp(body={"serverTime": SERVER_MS}),
        "/fapi/v1/positionSide/dual": _resp(502, text="Bad Gateway"),
    })

    with pytest.raises(ExchangeApiError) as ei:
        client.fetch_position_mode()

    assert ei.value.status_code == 502
    assert ei.value.code is None
    assert ei.value.body == "Bad Gateway"


def test_transport_failure_is_wrapped(client, mock_session):
    mock_session.request.side_effect = _router({"/fapi/v1/time": requests.ConnectionError("boom")})

    with pytest.raises(TransportError) as ei:
        client.sync_time()
    assert isinstance(ei.value.__cause__, requests.ConnectionError)


def test_no_retry_on_server_error(client, mock_session):
    mock_session.request.side_effect = _router({
        "/fapi/v1/time": _resp(body={"serverTime": SERVER_MS}),
        "/fapi/v1/leverage": _resp(503, body={"code": -1001, "msg": "Internal error"}),
    })

    with pytest.raises(ExchangeApiError):
        client.change_leverage("BTCUSDT", 10)
    assert sum("/fapi/v1/leverage" in u for u in _urls(mock_session)) == 1


def test_margin_type_unchanged_is_not_an_error(client, mock_session):
    mock_session.request.side_effect = _router({
        "/fapi/v1/time": _resp(body={"serverTime": SERVER_MS}),
        "/fapi/v1/marginType": _resp(400, body={"code": -4046, "msg": "No need to change margin type."}),
    })

    assert client.change_margin_type("BTCUSDT", "CROSSED") == {}


def test_margin_type_other_errors_propagate(client, mock_session):
    mock_session.request.side_effect = _router({
        "/fapi/v1/time": _resp(body={"serverTime": SERVER_MS}),
        "/fapi/v1/marginType": _resp(400, body={"code": -4047, "msg": "Margin type cannot be changed"}),
    })

    with pytest.raises(ExchangeApiError):
        client.change_margin_type("BTCUSDT", "ISOLATED")


def test_order_params_include_position_side_only_when_set(client, mock_session):
    mock_session.request.side_effect = _router({
        "/fapi/v1/time": _resp(body={"serverTime": SERVER_MS}),
        "/fapi/v1/order": _resp(body={"orderId": 1, "status": "NEW"}),
    })

    client.new_order(OrderRequest("BTCUSDT", OrderSide.SELL, "0.010", position_side=Side.LONG))
    client.new_order(OrderRequest("BTCUSDT", OrderSide.SELL, "0.010"))

    hedge_url, oneway_url = _urls(mock_session)[-2:]
    assert "symbol=BTCUSDT&side=SELL&type=MARKET&quantity=0.010&positionSide=LONG&timestamp=" in hedge_url
    assert "positionSide" not in oneway_url


def test_position_risk_is_parsed_into_typed_rows(client, mock_session):
    mock_session.request.side_effect = _router({
        "/fapi/v1/time": _resp(body={"serverTime": SERVER_MS}),
        "/fapi/v2/positionRisk": _resp(body=[
            {"symbol": "ETHUSDT", "positionAmt": "0.050", "entryPrice": "2000.0",
             "markPrice": "2010.5", "positionSide": "LONG"},
            {"symbol": "ETHUSDT", "positionAmt": "0.000", "entryPrice": "0.0",
             "markPrice": "2010.5", "positionSide": "SHORT"},
        ]),
    })

    rows = client.position_risk("ETHUSDT")

    assert [r.position_side for r in rows] == ["LONG", "SHORT"]
    assert rows[0].position_amt == Decimal("0.050")
    assert rows[0].mark_price == Decimal("2010.5")
    assert rows[0].is_open and not rows[1].is_open


def test_missing_field_fails_at_client_boundary(client, mock_session):
    mock_session.request.side_effect = _router({
        "/fapi/v1/time": _resp(body={"serverTime": SERVER_MS}),
        "/fapi/v1/premiumIndex": _resp(body={"symbol": "BTCUSDT", "indexPrice": "65000"}),
    })

    with pytest.raises(ResponseSchemaError, match="markPrice"):
        client.mark_price("BTCUSDT")


def test_klines_are_parsed(client, mock_session):
    row = [1700000000000, "1.0", "1.5", "0.9", "1.2", "100", 1700000899999, "120", 10, "50", "60", "0"]
    mock_session.request.side_effect = _router({
        "/fapi/v1/time": _resp(body={"serverTime": SERVER_MS}),
        "/fapi/v1/klines": _resp(body=[row]),
    })

    (c,) = client.klines("BTCUSDT", "15m", 16)

    assert c.low == Decimal("0.9")
    assert c.close == Decimal("1.2")
    assert "symbol=BTCUSDT&interval=15m&limit=16&" in _urls(mock_session)[-1]
