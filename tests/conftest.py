"""
Pytest fixtures and in-memory fakes for the invoice API, wallet and presenter.
"""
from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any, Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from jitpay.bot.services.payments.base import Invoice, InvoiceState
from jitpay.bot.services.payments.errors import CreateInvoiceError

INTERVAL = 0.01

PENDING = InvoiceState(is_held=False, sats_received=0, cancelled=False)
HELD = InvoiceState(is_held=True, sats_received=1000, cancelled=False)
CANCELLED = InvoiceState(is_held=False, sats_received=0, cancelled=True)


def make_invoice(amount: int = 1000) -> Invoice:
    return Invoice(
        id="42",
        bolt11="lnbc10u1pjtest",
        hash="f" * 64,
        hmac="a" * 64,
        expires_at="2026-10-18T12:03:00.000Z",
        amount=amount,
    )


class FakeTransport:
    """Invoice API fake: check_invoice() walks through `states`, then repeats the last one."""

    def __init__(
        self,
        states: Optional[list] = None,
        create_error: Optional[BaseException] = None,
        cancel_error: Optional[BaseException] = None,
        cancel_delay: float = 0,
    ) -> None:
        self.states = list(states or [PENDING])
        self.create_error = create_error
        self.cancel_error = cancel_error
        self.cancel_delay = cancel_delay
        self.create_calls: list[int] = []
        self.cancel_calls: list[tuple[str, str]] = []
        self.queries = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.query_delay = 0.0

    @property
    def network_calls(self) -> int:
        return len(self.create_calls) + len(self.cancel_calls) + self.queries

    async def create_invoice(self, amount: int) -> Invoice:
        self.create_calls.append(amount)
        if self.create_error is not None:
            raise self.create_error
        return make_invoice(amount)

    async def cancel_invoice(self, hash: str, hmac: str) -> str:
        self.cancel_calls.append((hash, hmac))
        if self.cancel_delay:
            await asyncio.sleep(self.cancel_delay)
        if self.cancel_error is not None:
            raise self.cancel_error
        return "42"

    async def check_invoice(self, invoice_id: str) -> InvoiceState:
        self.queries += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.query_delay:
                await asyncio.sleep(self.query_delay)
            state = self.states.pop(0) if len(self.states) > 1 else self.states[0]
            if isinstance(state, BaseException):
                raise state
            return state
        finally:
            self.in_flight -= 1


class FakeWallet:
    """
    Wallet fake. `delay=None` means send_payment() never returns (hold invoice),
    otherwise it finishes after `delay` seconds, raising `error` if set.
    """

    def __init__(self, enabled: bool = True, delay: Optional[float] = None, error: Optional[BaseException] = None) -> None:
        self.enabled = enabled
        self.delay = delay
        self.error = error
        self.sent: list[str] = []
        self.cancelled = False

    async def send_payment(self, bolt11: str) -> None:
        self.sent.append(bolt11)
        try:
            if self.delay is None:
                await asyncio.Event().wait()
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error


class FakeHandle:
    def __init__(self) -> None:
        self.close_calls = 0

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    def close(self) -> None:
        self.close_calls += 1


class FakePresenter:
    """Records show() and exposes the callbacks; `on_show` lets a test react right after show()."""

    def __init__(self, on_show: Optional[Callable[["FakePresenter"], None]] = None) -> None:
        self.on_show = on_show
        self.shown: list[Invoice] = []
        self.handle = FakeHandle()
        self.on_settle: Optional[Callable[[], None]] = None
        self.on_user_cancel: Optional[Callable[[Callable[[], None]], None]] = None

    def show(self, invoice, on_settle, on_user_cancel) -> FakeHandle:
        self.shown.append(invoice)
        self.on_settle = on_settle
        self.on_user_cancel = on_user_cancel
        if self.on_show is not None:
            self.on_show(self)
        return self.handle

    def settle(self) -> None:
        assert self.on_settle is not None
        self.on_settle()

    def abandon(self) -> None:
        assert self.on_user_cancel is not None
        self.on_user_cancel(self.handle.close)


class FakeResponse:
    def __init__(self, status: int = 200, payload: Any = None, text: Optional[str] = None) -> None:
        self.status = status
        self._payload = payload
        self._text = text if text is not None else str(payload)

    async def text(self) -> str:
        return self._text

    async def json(self) -> Any:
        if self._payload is None:
            raise ValueError("not json")
        return self._payload

    async def __aenter__(self) -> "FakeResponse":
        return self

    async def __aexit__(self, *exc) -> None:
        return None


class FakeSession:
    """Stands in for aiohttp.ClientSession; records every POST."""

    def __init__(self, response=None, error: Optional[BaseException] = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def __call__(self, *args, **kwargs) -> "FakeSession":
        return self

    async def __aenter__(self) -> "FakeSession":
        return self

    async def __aexit__(self, *exc) -> None:
        return None

    def post(self, url: str, json: dict, headers: dict) -> FakeResponse:
        self.calls.append({"url": url, "json": json, "headers": headers})
        if self.error is not None:
            raise self.error
        return self.response


def later(callback: Callable[[], None], delay: float = INTERVAL) -> None:
    asyncio.get_running_loop().call_later(delay, callback)


@pytest.fixture
def invoice() -> Invoice:
    return make_invoice()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def bot() -> MagicMock:
    bot = MagicMock()
    bot.send_message = AsyncMock(return_value=SimpleNamespace(message_id=777, chat=SimpleNamespace(id=1)))
    bot.delete_message = AsyncMock(return_value=True)
    return bot


@pytest.fixture
def create_failure() -> CreateInvoiceError:
    return CreateInvoiceError("createInvoice failed: GraphQL HTTP 500")
