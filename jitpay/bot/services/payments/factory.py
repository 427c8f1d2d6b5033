from __future__ import annotations

from ...config import Settings
from .base import Presenter, WalletProvider
from .orchestrator import PaymentOrchestrator
from .poller import poller_factory
from .providers import DisabledWallet, LnbitsWallet
from .transport import GraphQLInvoiceTransport


def get_transport(settings: Settings) -> GraphQLInvoiceTransport:
    return GraphQLInvoiceTransport(
        settings.API_URL,
        expire_secs=settings.INVOICE_EXPIRE_SECS,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


def get_wallet(settings: Settings) -> WalletProvider:
    if settings.WALLET_URL.strip() and settings.WALLET_ADMIN_KEY.strip():
        return LnbitsWallet(settings.WALLET_URL, settings.WALLET_ADMIN_KEY)
    return DisabledWallet()


def build_orchestrator(
    settings: Settings,
    presenter: Presenter,
    provider: WalletProvider | None = None,
    transport: GraphQLInvoiceTransport | None = None,
) -> PaymentOrchestrator:
    transport = transport or get_transport(settings)
    return PaymentOrchestrator(
        transport=transport,
        poller_factory=poller_factory(transport, settings.poll_interval),
        provider=provider if provider is not None else get_wallet(settings),
        presenter=presenter,
    )
