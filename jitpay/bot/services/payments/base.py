from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol, Union


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    SETTLED = "settled"
    CANCELED = "canceled"


@dataclass(frozen=True)
class Invoice:
    id: str
    bolt11: str
    hash: str
    hmac: str          # нужен для отмены, доказывает, что инвойс создали мы
    expires_at: str
    amount: int        # в сатоши, фиксируется при создании


@dataclass(frozen=True)
class InvoiceState:
    is_held: bool
    sats_received: int
    cancelled: bool

    @property
    def status(self) -> InvoiceStatus:
        # JIT-инвойсы всегда hold, поэтому "оплачен" == held + пришли саты
        if self.is_held and self.sats_received > 0:
            return InvoiceStatus.SETTLED
        if self.cancelled:
            return InvoiceStatus.CANCELED
        return InvoiceStatus.PENDING


@dataclass(frozen=True)
class FeeContext:
    total_amount: int
    is_free: bool = False


@dataclass(frozen=True)
class NoInvoice:
    """Оплата не нужна (бесплатно или хватает баланса)."""

    hash: Optional[str] = None
    hmac: Optional[str] = None


NO_INVOICE_REQUIRED = NoInvoice()

PaymentResult = Union[Invoice, NoInvoice]


@dataclass(frozen=True)
class Paid:
    invoice: Invoice


@dataclass(frozen=True)
class Deferred:
    """Автооплата не удалась, переходим к ручной. cause может быть None (кошелёк выключен)."""

    cause: Optional[BaseException] = None


SettlementOutcome = Union[Paid, Deferred]


class InvoiceTransport(Protocol):
    async def create_invoice(self, amount: int) -> Invoice:
        ...

    async def cancel_invoice(self, hash: str, hmac: str) -> str:
        ...

    async def check_invoice(self, invoice_id: str) -> InvoiceState:
        """Всегда свежее состояние с сервера, без кеша."""
        ...


class WalletProvider(Protocol):
    enabled: bool

    async def send_payment(self, bolt11: str) -> None:
        """Для hold-инвойсов может не завершиться никогда."""
        ...


class PresentationHandle(Protocol):
    def close(self) -> None:
        ...


class Presenter(Protocol):
    def show(
        self,
        invoice: Invoice,
        on_settle: Callable[[], None],
        on_user_cancel: Callable[[Callable[[], None]], None],
    ) -> PresentationHandle:
        ...
