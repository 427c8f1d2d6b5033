from __future__ import annotations

import asyncio
from typing import Any

import aiohttp

from .base import Invoice, InvoiceState
from .errors import CreateInvoiceError, TransportFailure


CREATE_INVOICE = """
mutation createInvoice($amount: Int!, $expireSecs: Int) {
  createInvoice(amount: $amount, hodlInvoice: true, expireSecs: $expireSecs) {
    id
    bolt11
    hash
    hmac
    expiresAt
  }
}
"""

CANCEL_INVOICE = """
mutation cancelInvoice($hash: String!, $hmac: String!) {
  cancelInvoice(hash: $hash, hmac: $hmac) {
    id
  }
}
"""

INVOICE = """
query invoice($id: ID!) {
  invoice(id: $id) {
    id
    isHeld
    satsReceived
    cancelled
  }
}
"""


class GraphQLInvoiceTransport:
    """
    Инвойсы через GraphQL API:
      - createInvoice(amount, hodlInvoice: true, expireSecs) -> id, bolt11, hash, hmac, expiresAt
      - cancelInvoice(hash, hmac)                            -> id
      - invoice(id)                                          -> isHeld, satsReceived, cancelled

    Статус всегда запрашивается без кеша.
    """

    def __init__(self, api_url: str, expire_secs: int = 180, timeout: int = 20) -> None:
        self._url = api_url
        self._expire_secs = expire_secs
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def create_invoice(self, amount: int) -> Invoice:
        try:
            data = await self._post(CREATE_INVOICE, {"amount": amount, "expireSecs": self._expire_secs})
        except TransportFailure as e:
            raise CreateInvoiceError(f"createInvoice failed: {e}") from e

        inv = data.get("createInvoice") or {}
        missing = [k for k in ("id", "bolt11", "hash", "hmac") if not inv.get(k)]
        if missing:
            raise CreateInvoiceError(f"createInvoice missing {', '.join(missing)}: {data}")

        return Invoice(
            id=str(inv["id"]),
            bolt11=str(inv["bolt11"]),
            hash=str(inv["hash"]),
            hmac=str(inv["hmac"]),
            expires_at=str(inv.get("expiresAt") or ""),
            amount=amount,
        )

    async def cancel_invoice(self, hash: str, hmac: str) -> str:
        data = await self._post(CANCEL_INVOICE, {"hash": hash, "hmac": hmac})
        inv = data.get("cancelInvoice") or {}
        return str(inv.get("id") or "")

    async def check_invoice(self, invoice_id: str) -> InvoiceState:
        data = await self._post(INVOICE, {"id": invoice_id}, headers={"Cache-Control": "no-cache"})
        inv = data.get("invoice")
        if not inv:
            raise TransportFailure(f"invoice {invoice_id} not found: {data}")

        return InvoiceState(
            is_held=bool(inv.get("isHeld")),
            sats_received=int(inv.get("satsReceived") or 0),
            cancelled=bool(inv.get("cancelled")),
        )

    async def _post(
        self,
        query: str,
        variables: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        hdrs = {"Accept": "application/json", "Content-Type": "application/json"}
        if headers:
            hdrs.update(headers)

        try:
            async with aiohttp.ClientSession(timeout=self._timeout) as session:
                async with session.post(
                    self._url, json={"query": query, "variables": variables}, headers=hdrs
                ) as r:
                    text = await r.text()
                    if r.status >= 400:
                        raise TransportFailure(f"GraphQL HTTP {r.status}: {text}")

                    try:
                        data = await r.json()
                    except Exception as e:
                        raise TransportFailure(f"GraphQL invalid JSON: {text}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportFailure(f"GraphQL request failed: {e}") from e

        if not isinstance(data, dict):
            raise TransportFailure(f"GraphQL unexpected response: {data!r}")

        if data.get("errors"):
            messages = "; ".join(str(err.get("message", err)) for err in data["errors"])
            raise TransportFailure(f"GraphQL error: {messages}")

        payload = data.get("data") or {}
        if not isinstance(payload, dict):
            raise TransportFailure(f"GraphQL unexpected data: {payload!r}")
        return payload
