"""
Tests for the Telegram presenter: invoice screen, status watcher and the cancel button.
"""
import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from jitpay.bot.services.payments.errors import InvoiceCanceledError, TransportFailure
from jitpay.bot.services.payments.manual import ManualChannel
from jitpay.bot.services.payments.poller import poller_factory
from jitpay.bot.services.presenter import PresentationRegistry, TelegramPresenter

from conftest import CANCELLED, HELD, INTERVAL, PENDING, FakeTransport


class Signals:
    def __init__(self) -> None:
        self.settled = 0
        self.cancel_requests = 0

    def on_settle(self) -> None:
        self.settled += 1

    def on_user_cancel(self, close) -> None:
        self.cancel_requests += 1
        close()


def make_presenter(bot, transport, registry=None):
    return TelegramPresenter(bot, 1, registry or PresentationRegistry(), poller_factory(transport, INTERVAL))


class TestTelegramPresenter:
    """Test suite for the invoice screen in Telegram."""

    @pytest.mark.asyncio
    async def test_show_sends_invoice_screen(self, bot, invoice):
        transport = FakeTransport([PENDING])
        signals = Signals()

        handle = make_presenter(bot, transport).show(invoice, signals.on_settle, signals.on_user_cancel)
        await asyncio.sleep(INTERVAL / 2)

        bot.send_message.assert_awaited_once()
        kwargs = bot.send_message.call_args.kwargs
        assert kwargs["chat_id"] == 1
        assert invoice.bolt11 in kwargs["text"]
        assert "1000 sats" in kwargs["text"]
        assert kwargs["reply_markup"].inline_keyboard[0][0].callback_data == "inv:cancel:42"

        handle.close()

    @pytest.mark.asyncio
    async def test_paid_invoice_fires_settle(self, bot, invoice):
        transport = FakeTransport([PENDING, HELD])
        signals = Signals()

        handle = make_presenter(bot, transport).show(invoice, signals.on_settle, signals.on_user_cancel)
        await asyncio.sleep(INTERVAL * 4)

        assert signals.settled == 1
        assert signals.cancel_requests == 0

        handle.close()
        await asyncio.sleep(INTERVAL)
        bot.delete_message.assert_awaited_once_with(chat_id=1, message_id=777)

    @pytest.mark.asyncio
    async def test_expired_invoice_is_treated_as_abandoned(self, bot, invoice):
        transport = FakeTransport([CANCELLED])
        signals = Signals()
        registry = PresentationRegistry()

        handle = make_presenter(bot, transport, registry).show(invoice, signals.on_settle, signals.on_user_cancel)
        await asyncio.sleep(INTERVAL * 3)

        assert signals.cancel_requests == 1
        assert signals.settled == 0
        assert handle.closed
        assert invoice.id not in registry

    @pytest.mark.asyncio
    async def test_cancel_button_routes_to_presentation(self, bot, invoice):
        transport = FakeTransport([PENDING])
        signals = Signals()
        registry = PresentationRegistry()

        handle = make_presenter(bot, transport, registry).show(invoice, signals.on_settle, signals.on_user_cancel)
        await asyncio.sleep(INTERVAL / 2)

        assert registry.abandon(invoice.id) is True
        assert signals.cancel_requests == 1
        assert handle.closed
        assert registry.abandon(invoice.id) is False

        seen = transport.queries
        await asyncio.sleep(INTERVAL * 3)
        assert transport.queries == seen

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, bot, invoice):
        transport = FakeTransport([PENDING])
        signals = Signals()

        handle = make_presenter(bot, transport).show(invoice, signals.on_settle, signals.on_user_cancel)
        await asyncio.sleep(INTERVAL / 2)

        handle.close()
        handle.close()
        await asyncio.sleep(INTERVAL)

        assert bot.delete_message.await_count == 1

    @pytest.mark.asyncio
    async def test_watch_error_keeps_presentation_open(self, bot, invoice, monkeypatch):
        monkeypatch.setattr("jitpay.bot.services.presenter.WATCH_RETRY_SECONDS", INTERVAL)
        transport = FakeTransport([TransportFailure("GraphQL HTTP 502: bad gateway"), HELD])
        signals = Signals()

        handle = make_presenter(bot, transport).show(invoice, signals.on_settle, signals.on_user_cancel)
        await asyncio.sleep(INTERVAL * 6)

        assert signals.settled == 1
        assert transport.queries == 2
        handle.close()

    @pytest.mark.asyncio
    async def test_failed_send_abandons_presentation(self, bot, invoice):
        bot.send_message = AsyncMock(side_effect=RuntimeError("Telegram 429: Too Many Requests"))
        transport = FakeTransport([PENDING])
        registry = PresentationRegistry()

        with pytest.raises(InvoiceCanceledError):
            await asyncio.wait_for(
                ManualChannel(make_presenter(bot, transport, registry), transport).present_and_wait(invoice), 1
            )

        assert transport.cancel_calls == [(invoice.hash, invoice.hmac)]
        assert invoice.id not in registry
        bot.delete_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_close_during_send_deletes_screen_once_sent(self, bot, invoice):
        async def slow_send(**kwargs):
            await asyncio.sleep(INTERVAL)
            return SimpleNamespace(message_id=777, chat=SimpleNamespace(id=1))

        bot.send_message = AsyncMock(side_effect=slow_send)
        transport = FakeTransport([PENDING])
        signals = Signals()

        handle = make_presenter(bot, transport).show(invoice, signals.on_settle, signals.on_user_cancel)
        await asyncio.sleep(INTERVAL / 2)
        handle.close()
        await asyncio.sleep(INTERVAL * 3)

        bot.send_message.assert_awaited_once()
        bot.delete_message.assert_awaited_once_with(chat_id=1, message_id=777)
        assert transport.queries == 0
