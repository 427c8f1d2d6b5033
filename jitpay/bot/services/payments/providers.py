from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from .errors import ProviderFailure

log = logging.getLogger(__name__)


class DisabledWallet:
    """Кошелёк не подключён, сразу уходим в ручную оплату."""

    enabled = False

    async def send_payment(self, bolt11: str) -> None:
        raise ProviderFailure("wallet provider is not enabled")


class LnbitsWallet:
    """
    LNbits wallet API:
      - POST {base}/api/v1/payments  {"out": true, "bolt11": ...}

    Авторизация: заголовок X-Api-Key (admin key кошелька).
    Для hold-инвойса ответ может не прийти, пока получатель не settle'нет платёж.
    """

    def __init__(self, base_url: str, admin_key: str, timeout: int | None = None) -> None:
        self._base = base_url.strip().rstrip("/")
        self._key = admin_key.strip()
        # без total-таймаута: платёж по hold-инвойсу висит до settle
        self._timeout = aiohttp.ClientTimeout(total=timeout, sock_connect=15)

        if not self.enabled:
            log.warning("WALLET_URL/WALLET_ADMIN_KEY is empty, LnbitsWallet is disabled")

    @property
    def enabled(self) -> bool:
        return bool(self._base and self._key)

    async def send_payment(self, bolt11: str) -> None:
        if not self.enabled:
            raise ProviderFailure("wallet provider is not enabled")

        data = await self._post("/api/v1/payments", {"out": True, "bolt11": bolt11})
        if not isinstance(data, dict) or not (data.get("payment_hash") or data.get("checking_id")):
            raise ProviderFailure(f"LNbits payment response without payment_hash: {data}")

        log.info("LNbits payment sent, payment_hash=%s", data.get("payment_hash"))

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        url = f"{self._base}{path}"
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Api-Key": self._key,
        }

        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(url, json=payload, headers=headers) as r:
                    text = await r.text()
                    if r.status >= 400:
                        raise ProviderFailure(f"LNbits HTTP {r.status}: {text}")

                    try:
                        return await r.json()
                    except Exception as e:
                        raise ProviderFailure(f"LNbits invalid JSON: {text}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderFailure(f"LNbits request failed: {e}") from e
