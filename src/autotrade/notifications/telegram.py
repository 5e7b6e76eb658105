from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, List, Protocol

import requests

from src.autotrade.exchanges.binance.errors import NotificationError

log = logging.getLogger("src.autotrade.notifications.telegram")

TELEGRAM_MAX_LEN = 3900  # safe limit (< 4096)


class Notifier(Protocol):
    def send_message(self, text: str) -> bool:
        ...


# -------------------------
# models
# -------------------------
@dataclass(frozen=True)
class TelegramTarget:
    bot_token: str
    chat_id: str


# -------------------------
# message split
# -------------------------
def split_long_message(text: str, max_len: int = TELEGRAM_MAX_LEN) -> List[str]:
    """
    Split text under the Telegram limit, preferring line boundaries.
    """
    s = (text or "").strip()
    if not s:
        return []
    if len(s) <= max_len:
        return [s]

    parts: List[str] = []
    buf = ""
    for line in s.splitlines():
        while len(line) > max_len:
            if buf:
                parts.append(buf)
                buf = ""
            parts.append(line[:max_len])
            line = line[max_len:]

        cand = f"{buf}\n{line}" if buf else line
        if len(cand) <= max_len:
            buf = cand
        else:
            parts.append(buf)
            buf = line

    if buf:
        parts.append(buf)
    return [p for p in parts if p.strip()]


# -------------------------
# send
# -------------------------
class TelegramNotifier:
    """
    Best-effort Telegram sink. send_message never raises.
    """

    def __init__(
        self,
        target: Optional[TelegramTarget],
        *,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
    ):
        self.target = target
        self.sess = session or requests.Session()
        self.timeout = float(timeout)

    def _post(self, target: TelegramTarget, text: str) -> None:
        url = f"https://api.telegram.org/bot{target.bot_token}/sendMessage"
        payload = {
            "chat_id": target.chat_id,
            "text": text,
            "disable_web_page_preview": True,
        }
        try:
            r = self.sess.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise NotificationError(f"Telegram transport error: {e!r}") from e
        if r.status_code != 200:
            raise NotificationError(f"Telegram send failed: {r.status_code} {r.text[:300]}")

    def send_message(self, text: str) -> bool:
        if self.target is None:
            log.warning("Telegram target not configured (missing token/chat_id)")
            return False

        parts = split_long_message(text)
        if not parts:
            return False

        try:
            for p in parts:
                self._post(self.target, p)
            return True
        except NotificationError:
            log.exception("Telegram send failed")
            return False


def notify(notifier: Optional[Notifier], text: str) -> bool:
    """
    Fire-and-forget wrapper used by trading code: whatever the sink does,
    the caller's decision is unaffected.
    """
    if notifier is None:
        return False
    try:
        return bool(notifier.send_message(text))
    except Exception:
        log.exception("Notification failed")
        return False
