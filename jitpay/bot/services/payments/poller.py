from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from .base import InvoiceState, InvoiceStatus, InvoiceTransport
from .errors import InvoiceCanceledError

log = logging.getLogger(__name__)


class InvoiceStatusPoller:
    """
    Периодически опрашивает статус инвойса, пока не увидит оплату/отмену
    или пока его не остановят снаружи.

      - оплачен (isHeld && satsReceived > 0) -> poll() возвращает InvoiceState
      - отменён                              -> InvoiceCanceledError
      - ошибка транспорта                    -> пробрасывается как есть, без ретраев

    Запросы строго последовательные: следующий тик начинается только после ответа на предыдущий.
    """

    def __init__(self, transport: InvoiceTransport, invoice_id: str, interval: float) -> None:
        self._transport = transport
        self._invoice_id = invoice_id
        self._interval = interval
        self._task: Optional[asyncio.Task[InvoiceState]] = None
        self._stopped = False

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def task(self) -> Optional[asyncio.Task[InvoiceState]]:
        return self._task

    async def poll(self) -> InvoiceState:
        while not self._stopped:
            await asyncio.sleep(self._interval)
            if self._stopped:
                break

            state = await self._transport.check_invoice(self._invoice_id)
            status = state.status

            if status is InvoiceStatus.SETTLED:
                log.info("Invoice %s paid (sats_received=%s)", self._invoice_id, state.sats_received)
                self._stopped = True
                return state

            if status is InvoiceStatus.CANCELED:
                log.info("Invoice %s canceled", self._invoice_id)
                self._stopped = True
                raise InvoiceCanceledError()

        raise asyncio.CancelledError()

    def start(self) -> asyncio.Task[InvoiceState]:
        if self._task is None:
            self._task = asyncio.create_task(self.poll(), name=f"poll-invoice-{self._invoice_id}")
        return self._task

    def stop(self) -> None:
        self._stopped = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> InvoiceState:
        return await self.start()

    async def __aenter__(self) -> "InvoiceStatusPoller":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop()
        if self._task is not None:
            # дожидаемся реальной остановки, чтобы после выхода не было запросов в полёте
            await asyncio.gather(self._task, return_exceptions=True)


PollerFactory = Callable[[str], InvoiceStatusPoller]


def poller_factory(transport: InvoiceTransport, interval: float) -> PollerFactory:
    def make(invoice_id: str) -> InvoiceStatusPoller:
        return InvoiceStatusPoller(transport, invoice_id, interval)

    return make
