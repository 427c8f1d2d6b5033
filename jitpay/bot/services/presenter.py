from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from aiogram import Bot

from ..keyboards.invoice import invoice_kb
from .payments.base import Invoice
from .payments.errors import InvoiceCanceledError, TransportFailure
from .payments.poller import PollerFactory

log = logging.getLogger(__name__)

WATCH_RETRY_SECONDS = 5


class PresentationRegistry:
    """Открытые экраны оплаты по invoice_id, чтобы кнопка "Отмена" нашла свой экран."""

    def __init__(self) -> None:
        self._active: dict[str, TelegramPresentation] = {}

    def __contains__(self, invoice_id: str) -> bool:
        return invoice_id in self._active

    def register(self, presentation: "TelegramPresentation") -> None:
        self._active[presentation.invoice.id] = presentation

    def unregister(self, invoice_id: str) -> None:
        self._active.pop(invoice_id, None)

    def abandon(self, invoice_id: str) -> bool:
        p = self._active.get(invoice_id)
        if p is None:
            return False
        p.abandon()
        return True


class TelegramPresentation:
    """
    Экран с bolt11 и кнопкой отмены + фоновый наблюдатель за статусом инвойса.
    Оплата замечена -> on_settle(); инвойс отменён/истёк или нажата "Отмена" -> on_user_cancel(close).
    """

    def __init__(
        self,
        bot: Bot,
        chat_id: int,
        invoice: Invoice,
        on_settle: Callable[[], None],
        on_user_cancel: Callable[[Callable[[], None]], None],
        registry: PresentationRegistry,
        poller_factory: PollerFactory,
    ) -> None:
        self.invoice = invoice
        self._bot = bot
        self._chat_id = chat_id
        self._on_settle = on_settle
        self._on_user_cancel = on_user_cancel
        self._registry = registry
        self._poller_factory = poller_factory
        self._task: Optional[asyncio.Task[None]] = None
        self._message_id: Optional[int] = None
        self._closed = False
        self._cleanup: set[asyncio.Task[None]] = set()

    @property
    def closed(self) -> bool:
        return self._closed

    def open(self) -> None:
        self._registry.register(self)
        self._task = asyncio.create_task(self._run(), name=f"present-invoice-{self.invoice.id}")

    def abandon(self) -> None:
        if not self._closed:
            self._on_user_cancel(self.close)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._registry.unregister(self.invoice.id)

        # пока экран не отправлен, задачу не отменяем: _watch сам удалит сообщение после отправки
        if self._message_id is None:
            return

        if self._task is not None and not self._task.done():
            self._task.cancel()

        t = asyncio.create_task(self._delete_message(self._message_id))
        self._cleanup.add(t)
        t.add_done_callback(self._cleanup.discard)

    async def _run(self) -> None:
        try:
            await self._watch()
        except Exception:
            log.exception("Invoice %s presentation failed, abandoning", self.invoice.id)
            if not self._closed:
                self._on_user_cancel(self.close)

    async def _watch(self) -> None:
        if self._closed:
            return

        sent = await self._bot.send_message(
            chat_id=self._chat_id,
            text=_invoice_text(self.invoice),
            reply_markup=invoice_kb(self.invoice.id),
        )
        self._message_id = sent.message_id

        if self._closed:
            await self._delete_message(sent.message_id)
            return

        while not self._closed:
            poller = self._poller_factory(self.invoice.id)
            try:
                async with poller:
                    await poller.wait()
            except InvoiceCanceledError:
                log.info("Invoice %s is canceled/expired, closing presentation", self.invoice.id)
                self._on_user_cancel(self.close)
                return
            except TransportFailure:
                log.exception("Invoice %s watch error, retry in %ss", self.invoice.id, WATCH_RETRY_SECONDS)
                await asyncio.sleep(WATCH_RETRY_SECONDS)
                continue

            self._on_settle()
            return

    async def _delete_message(self, message_id: int) -> None:
        try:
            await self._bot.delete_message(chat_id=self._chat_id, message_id=message_id)
        except Exception:
            log.exception("Failed to delete invoice screen %s in chat %s", message_id, self._chat_id)


class TelegramPresenter:
    def __init__(
        self,
        bot: Bot,
        chat_id: int,
        registry: PresentationRegistry,
        poller_factory: PollerFactory,
    ) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._registry = registry
        self._poller_factory = poller_factory

    def show(
        self,
        invoice: Invoice,
        on_settle: Callable[[], None],
        on_user_cancel: Callable[[Callable[[], None]], None],
    ) -> TelegramPresentation:
        presentation = TelegramPresentation(
            self._bot,
            self._chat_id,
            invoice,
            on_settle,
            on_user_cancel,
            self._registry,
            self._poller_factory,
        )
        presentation.open()
        return presentation


def _invoice_text(invoice: Invoice) -> str:
    expires_line = f"🕜 *Необходимо оплатить до:* {invoice.expires_at}\n" if invoice.expires_at else ""
    return (
        "⚡️ *Счёт на оплату*\n\n"
        f"💰 *Сумма:* {invoice.amount} sats\n"
        f"🧾 *Инвойс:* {invoice.id}\n"
        f"{expires_line}\n"
        f"`{invoice.bolt11}`\n\n"
        "👇 Оплатите с любого Lightning-кошелька или отмените оплату."
    )
