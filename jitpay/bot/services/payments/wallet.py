from __future__ import annotations

import asyncio
import logging

from .base import Deferred, Invoice, Paid, SettlementOutcome, WalletProvider
from .errors import InvoiceCanceledError, is_cancellation
from .poller import PollerFactory

log = logging.getLogger(__name__)


class WalletChannel:
    """
    Автоматическая оплата через кошелёк пользователя.

    send_payment() для JIT (hold) инвойса может не вернуться никогда, деньги "висят",
    пока инвойс не settle'нут на нашей стороне. Поэтому параллельно опрашиваем статус
    инвойса и берём то, что случится раньше.
    """

    def __init__(self, provider: WalletProvider, poller_factory: PollerFactory) -> None:
        self._provider = provider
        self._poller_factory = poller_factory

    @property
    def enabled(self) -> bool:
        return bool(getattr(self._provider, "enabled", False))

    async def attempt_auto_payment(self, invoice: Invoice) -> SettlementOutcome:
        if not self.enabled:
            return Deferred()

        async with self._poller_factory(invoice.id) as poller:
            poll_task = poller.start()
            send_task = asyncio.create_task(
                self._provider.send_payment(invoice.bolt11),
                name=f"wallet-send-{invoice.id}",
            )
            try:
                await asyncio.wait({send_task, poll_task}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                if not send_task.done():
                    send_task.cancel()
                poller.stop()
                await asyncio.gather(send_task, return_exceptions=True)

            return self._resolve(invoice, send_task, poll_task)

    def _resolve(self, invoice: Invoice, send_task: asyncio.Task, poll_task: asyncio.Task) -> SettlementOutcome:
        send_err = _task_error(send_task)
        poll_err = _task_error(poll_task)
        send_ok = send_task.done() and not send_task.cancelled() and send_err is None
        poll_ok = poll_task.done() and not poll_task.cancelled() and poll_err is None

        # оплата "липкая": если хоть одна ветка увидела оплату, мы оплачены
        if send_ok or poll_ok:
            log.info("Invoice %s paid via wallet (%s)", invoice.id, "provider" if send_ok else "poller")
            return Paid(invoice)

        if poll_err is not None and is_cancellation(poll_err):
            raise poll_err

        if send_err is not None and is_cancellation(send_err):
            raise InvoiceCanceledError() from send_err

        cause = send_err or poll_err
        log.warning("Wallet payment failed for invoice %s, falling back to manual: %r", invoice.id, cause)
        return Deferred(cause)


def _task_error(task: asyncio.Task) -> BaseException | None:
    if not task.done() or task.cancelled():
        return None
    return task.exception()
