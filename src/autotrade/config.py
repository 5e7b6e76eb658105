# src/autotrade/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from src.autotrade.core.models.enums import MarginType
from src.autotrade.exchanges.binance.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("config") / "autotrade.yaml"

DEFAULT_SYMBOLS = ("BTCUSDT", "ETHUSDT", "XRPUSDT", "SOLUSDT", "SUIUSDT")


@dataclass(frozen=True)
class TradingConfig:
    """
    Loaded once at process start, immutable afterwards.
    """

    api_key: str
    api_secret: str
    base_url: str = "https://fapi.binance.com"

    margin_type: MarginType = MarginType.CROSSED
    default_leverage: int = 10
    commission_rate: Decimal = Decimal("0.001")        # 0.1%
    target_profit_percent: Decimal = Decimal("0.004")  # 0.4%
    recv_window: int = 5000
    timeout: float = 10.0

    symbols: tuple[str, ...] = DEFAULT_SYMBOLS
    entry_interval_sec: int = 900
    exit_interval_sec: int = 60

    telegram_bot_token: str = field(default="", repr=False)
    telegram_chat_id: str = ""

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_secret:
            raise ConfigError("BINANCE_API_KEY / BINANCE_API_SECRET are required")
        if self.default_leverage < 1:
            raise ConfigError(f"default_leverage must be >= 1 (got {self.default_leverage})")
        if self.commission_rate <= 0:
            raise ConfigError(f"commission_rate must be > 0 (got {self.commission_rate})")
        if self.target_profit_percent <= 0:
            raise ConfigError(f"target_profit_percent must be > 0 (got {self.target_profit_percent})")
        if self.recv_window <= 0:
            raise ConfigError(f"recv_window must be > 0 (got {self.recv_window})")
        if not self.symbols:
            raise ConfigError("symbols must not be empty")


# -----------------------------------------------------------------------------
# helpers
# -----------------------------------------------------------------------------
def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a mapping: {path}")
    return data


def _decimal(value: Any, name: str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ConfigError(f"{name} is not a number: {value!r}") from None


def _pick(env_name: str, cfg: dict[str, Any], key: str, default: Any = None) -> Any:
    v = os.getenv(env_name)
    if v is not None and v.strip() != "":
        return v.strip()
    return cfg.get(key, default)


def load_config(path: str | Path | None = None) -> TradingConfig:
    """
    YAML for settings, environment (.env via python-dotenv) for secrets.
    Environment wins over YAML.
    """
    load_dotenv()

    cfg_path = Path(path) if path is not None else Path(os.getenv("AUTOTRADE_CONFIG", DEFAULT_CONFIG_PATH))
    root = _load_yaml(cfg_path)
    b = root.get("binance") or {}
    t = root.get("trading") or {}
    tg = root.get("telegram") or {}

    margin_raw = str(_pick("BINANCE_MARGIN_TYPE", b, "margin_type", MarginType.CROSSED.value)).upper()
    try:
        margin_type = MarginType(margin_raw)
    except ValueError:
        raise ConfigError(f"Unknown margin_type: {margin_raw}") from None

    symbols = t.get("symbols") or list(DEFAULT_SYMBOLS)

    try:
        return TradingConfig(
            api_key=str(_pick("BINANCE_API_KEY", b, "api_key", "") or ""),
            api_secret=str(_pick("BINANCE_API_SECRET", b, "api_secret", "") or ""),
            base_url=str(_pick("BINANCE_BASE_URL", b, "base_url", "https://fapi.binance.com")),
            margin_type=margin_type,
            default_leverage=int(_pick("BINANCE_DEFAULT_LEVERAGE", b, "default_leverage", 10)),
            commission_rate=_decimal(_pick("BINANCE_COMMISSION_RATE", b, "commission_rate", "0.001"), "commission_rate"),
            target_profit_percent=_decimal(
                _pick("BINANCE_TARGET_PROFIT_PERCENT", b, "target_profit_percent", "0.004"),
                "target_profit_percent",
            ),
            recv_window=int(_pick("BINANCE_RECV_WINDOW", b, "recv_window", 5000)),
            timeout=float(b.get("timeout", 10.0)),
            symbols=tuple(str(s).upper() for s in symbols),
            entry_interval_sec=int(t.get("entry_interval_sec", 900)),
            exit_interval_sec=int(t.get("exit_interval_sec", 60)),
            telegram_bot_token=str(_pick("TELEGRAM_BOT_TOKEN", tg, "bot_token", "") or ""),
            telegram_chat_id=str(_pick("TELEGRAM_CHAT_ID", tg, "chat_id", "") or ""),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid config '{cfg_path}': {e}") from e
