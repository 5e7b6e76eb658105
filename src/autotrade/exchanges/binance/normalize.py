from __future__ import annotations
from decimal import Decimal, InvalidOperation
from typing import Any
from src.autotrade.core.models.candle import Candle
from src.autotrade.core.models.position import ONE_WAY, PositionRisk
from src.autotrade.exchanges.binance.errors import ResponseSchemaError

def _dec(raw: dict, key: str, what: str) -> Decimal:
    if key not in raw or raw[key] is None:
        raise ResponseSchemaError(f"{what}: missing field '{key}'", raw)
    try:
        return Decimal(str(raw[key]))
    except InvalidOperation:
        raise ResponseSchemaError(f"{what}: '{key}' is not a number ({raw[key]!r})", raw)

def _obj(raw: Any, what: str) -> dict:
    if not isinstance(raw, dict):
        raise ResponseSchemaError(f"{what}: expected object, got {type(raw).__name__}", raw)
    return raw

def norm_server_time(raw: Any) -> int:
    raw = _obj(raw, "time")
    try:
        return int(raw["serverTime"])
    except (KeyError, TypeError, ValueError):
        raise ResponseSchemaError("time: missing/invalid 'serverTime'", raw)

def norm_position_risk(raw: Any) -> list[PositionRisk]:
    # empty body -> {} from the client
    if raw in ({}, None):
        return []
    if not isinstance(raw, list):
        raise ResponseSchemaError("positionRisk: expected list", raw)
    out: list[PositionRisk] = []
    for r in raw:
        r = _obj(r, "positionRisk row")
        sym = str(r.get("symbol") or "").upper()
        if not sym:
            raise ResponseSchemaError("positionRisk: missing 'symbol'", r)
        out.append(PositionRisk(
            symbol=sym,
            position_amt=_dec(r, "positionAmt", "positionRisk"),
            entry_price=_dec(r, "entryPrice", "positionRisk"),
            mark_price=_dec(r, "markPrice", "positionRisk"),
            position_side=str(r.get("positionSide") or ONE_WAY).upper(),
        ))
    return out

def norm_mark_price(raw: Any) -> Decimal:
    mark = _dec(_obj(raw, "premiumIndex"), "markPrice", "premiumIndex")
    if mark <= 0:
        raise ResponseSchemaError(f"premiumIndex: markPrice must be > 0 (got {mark})", raw)
    return mark

def norm_position_mode(raw: Any) -> bool:
    raw = _obj(raw, "positionSide/dual")
    v = raw.get("dualSidePosition")
    if not isinstance(v, bool):
        raise ResponseSchemaError("positionSide/dual: 'dualSidePosition' must be bool", raw)
    return v

def norm_klines(raw: Any) -> list[Candle]:
    # Binance kline row:
    # [openTime, open, high, low, close, volume, closeTime, quoteVolume, trades, ...]
    if raw in ({}, None):
        return []
    if not isinstance(raw, list):
        raise ResponseSchemaError("klines: expected list", raw)
    out: list[Candle] = []
    for k in raw:
        if not isinstance(k, (list, tuple)) or len(k) < 7:
            raise ResponseSchemaError("klines: malformed row", k)
        try:
            out.append(Candle(
                open_time=int(k[0]),
                open=Decimal(str(k[1])),
                high=Decimal(str(k[2])),
                low=Decimal(str(k[3])),
                close=Decimal(str(k[4])),
                volume=Decimal(str(k[5])),
                close_time=int(k[6]),
            ))
        except (InvalidOperation, TypeError, ValueError):
            raise ResponseSchemaError("klines: non-numeric value", k)
    return out
