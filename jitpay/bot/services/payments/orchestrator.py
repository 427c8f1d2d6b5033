from __future__ import annotations

import logging

from .base import (
    NO_INVOICE_REQUIRED,
    Deferred,
    FeeContext,
    Invoice,
    InvoiceTransport,
    Paid,
    PaymentResult,
    Presenter,
    WalletProvider,
)
from .errors import PaymentError
from .manual import ManualChannel
from .poller import PollerFactory
from .wallet import WalletChannel

log = logging.getLogger(__name__)


class PaymentOrchestrator:
    """
    Оплата платного действия:
      1) бесплатно или хватает баланса -> инвойс не нужен, в сеть не ходим
      2) создаём hold-инвойс на полную сумму
      3) пробуем кошелёк (если подключён), при неудаче (но не отмене) -> ручная оплата
      4) возвращаем оплаченный инвойс (hash/hmac нужны вызывающему дальше)

    Ретраев нет: ошибки пробрасываются как есть.
    """

    def __init__(
        self,
        transport: InvoiceTransport,
        poller_factory: PollerFactory,
        provider: WalletProvider,
        presenter: Presenter,
    ) -> None:
        self._transport = transport
        self._wallet = WalletChannel(provider, poller_factory)
        self._manual = ManualChannel(presenter, transport)

    async def payment(self, fee: FeeContext, user_balance: int) -> PaymentResult:
        if fee.is_free or user_balance >= fee.total_amount:
            return NO_INVOICE_REQUIRED

        invoice = await self._transport.create_invoice(fee.total_amount)
        log.info("Invoice %s created for %s sats", invoice.id, invoice.amount)

        await self.wait_for_payment(invoice)
        return invoice

    __call__ = payment

    async def wait_for_payment(self, invoice: Invoice) -> Invoice:
        outcome = await self._wallet.attempt_auto_payment(invoice)
        if isinstance(outcome, Paid):
            return outcome.invoice

        # отмену WalletChannel уже пробросил сам: оплатить по QR отменённый инвойс тоже нельзя
        if not isinstance(outcome, Deferred):
            raise RuntimeError(f"Unexpected wallet outcome: {outcome!r}")

        try:
            return await self._manual.present_and_wait(invoice)
        except PaymentError as err:
            if outcome.cause is not None:
                # не теряем причину, по которой не сработал кошелёк
                _append_cause(err, outcome.cause)
            raise


def _append_cause(err: BaseException, cause: BaseException) -> None:
    tail = err
    while tail.__cause__ is not None:
        if tail.__cause__ is cause:
            return
        tail = tail.__cause__
    if tail is not cause:
        tail.__cause__ = cause
