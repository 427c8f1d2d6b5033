from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from .base import Invoice, InvoiceTransport, Presenter
from .errors import InvoiceCanceledError
from .settlement import SettlementCell

log = logging.getLogger(__name__)


class ManualChannel:
    """
    Ручная оплата: показываем инвойс человеку (QR/bolt11) и ждём одно из двух:
      - сигнал об оплате от презентера -> успех
      - пользователь закрыл экран без оплаты -> отменяем инвойс (hash + hmac) и InvoiceCanceledError

    Оплата всегда побеждает отмену: если settle уже записан, отмена не отправляется,
    а поздний провал cancel-запроса не всплывает наружу.
    """

    def __init__(self, presenter: Presenter, transport: InvoiceTransport) -> None:
        self._presenter = presenter
        self._transport = transport

    async def present_and_wait(self, invoice: Invoice) -> Invoice:
        loop = asyncio.get_running_loop()
        result: asyncio.Future[Invoice] = loop.create_future()
        settled: SettlementCell[Invoice] = SettlementCell()
        cancel_task: Optional[asyncio.Task[None]] = None

        def on_settle() -> None:
            if not settled.settle(invoice):
                return
            if not result.done():
                log.info("Invoice %s paid via manual channel", invoice.id)
                result.set_result(settled.value)
            elif cancel_task is not None:
                log.warning("Invoice %s settled after cancellation was reported", invoice.id)

        def on_user_cancel(close: Callable[[], None]) -> None:
            nonlocal cancel_task
            # проверка синхронная: между ней и решением об отмене нет await
            if settled.is_settled or cancel_task is not None or result.done():
                return
            cancel_task = asyncio.create_task(
                self._cancel_and_reject(invoice, settled, result, close),
                name=f"cancel-invoice-{invoice.id}",
            )

        handle = self._presenter.show(invoice, on_settle, on_user_cancel)
        try:
            return await result
        finally:
            handle.close()
            if cancel_task is not None and not cancel_task.done():
                cancel_task.cancel()

    async def _cancel_and_reject(
        self,
        invoice: Invoice,
        settled: SettlementCell[Invoice],
        result: asyncio.Future[Invoice],
        close: Callable[[], None],
    ) -> None:
        if settled.is_settled:
            return

        failure: Optional[Exception] = None
        try:
            await self._transport.cancel_invoice(invoice.hash, invoice.hmac)
            log.info("Invoice %s canceled by user", invoice.id)
        except Exception as e:
            failure = e

        if settled.is_settled:
            # пока летел cancel, пришла оплата, она главнее
            if failure is not None:
                log.warning("Cancel of already paid invoice %s failed (ignored): %s", invoice.id, failure)
            return

        if result.done():
            return

        close()
        err = InvoiceCanceledError()
        if failure is not None:
            log.warning("Cancel request for invoice %s failed: %s", invoice.id, failure)
            err.__cause__ = failure
        result.set_exception(err)
