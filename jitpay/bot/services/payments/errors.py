from __future__ import annotations

from enum import Enum


class PaymentErrorKind(str, Enum):
    CANCELED = "canceled"
    PROVIDER_FAILURE = "provider_failure"
    TRANSPORT_FAILURE = "transport_failure"
    CREATE_INVOICE_FAILURE = "create_invoice_failure"


class PaymentError(RuntimeError):
    """
    Базовая ошибка оплаты. Вызывающий код может ветвиться по `kind`,
    не проверяя тип исключения.
    """

    kind: PaymentErrorKind


class InvoiceCanceledError(PaymentError):
    """Инвойс отменён (или истёк): оплатить его уже нельзя никаким способом."""

    kind = PaymentErrorKind.CANCELED

    def __init__(self, message: str = "invoice canceled") -> None:
        super().__init__(message)


class CreateInvoiceError(PaymentError):
    kind = PaymentErrorKind.CREATE_INVOICE_FAILURE


class ProviderFailure(PaymentError):
    kind = PaymentErrorKind.PROVIDER_FAILURE


class TransportFailure(PaymentError):
    kind = PaymentErrorKind.TRANSPORT_FAILURE


def is_cancellation(err: BaseException) -> bool:
    return getattr(err, "kind", None) is PaymentErrorKind.CANCELED
