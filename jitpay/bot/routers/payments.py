from __future__ import annotations

import logging

from aiogram import Router, F
from aiogram.types import CallbackQuery

from ..callbacks import ActionCb, InvoiceCb
from ..config import Settings
from ..data_actions import ACTIONS
from ..db import repo
from ..keyboards.invoice import back_home_kb
from ..services.payments.base import FeeContext, NoInvoice
from ..services.payments.errors import PaymentError, PaymentErrorKind
from ..services.payments.factory import build_orchestrator
from ..services.payments.poller import poller_factory
from ..services.payments.transport import GraphQLInvoiceTransport
from ..services.presenter import PresentationRegistry, TelegramPresenter

log = logging.getLogger(__name__)

router = Router()

FAILURE_TEXT: dict[PaymentErrorKind, str] = {
    PaymentErrorKind.CANCELED: "🧯 *Оплата отменена.*\n\nСчёт больше не действителен.",
    PaymentErrorKind.CREATE_INVOICE_FAILURE: "⚠️ *Не удалось выставить счёт.*\n\nПопробуйте позже.",
    PaymentErrorKind.PROVIDER_FAILURE: "⚠️ *Кошелёк не смог оплатить счёт.*",
    PaymentErrorKind.TRANSPORT_FAILURE: "⚠️ *Сервер платежей недоступен.*\n\nПопробуйте позже.",
}


@router.callback_query(ActionCb.filter())
async def pay_for_action(
    call: CallbackQuery,
    callback_data: ActionCb,
    settings: Settings,
    presentations: PresentationRegistry,
    transport: GraphQLInvoiceTransport,
) -> None:
    await call.answer()

    action = ACTIONS.get(callback_data.code)
    if action is None:
        return

    user_id = call.from_user.id
    await repo.ensure_user(settings.db_path_abs, user_id)
    balance = await repo.get_balance(settings.db_path_abs, user_id)

    presenter = TelegramPresenter(
        call.bot,
        call.message.chat.id,
        presentations,
        poller_factory(transport, settings.poll_interval),
    )
    payment = build_orchestrator(settings, presenter, transport=transport)

    try:
        result = await payment(FeeContext(total_amount=action.price_sats, is_free=action.free), balance)
    except PaymentError as err:
        log.warning("Payment for %s by user %s failed: %s (%s)", action.code, user_id, err, err.kind.value)
        await call.message.answer(FAILURE_TEXT[err.kind], reply_markup=back_home_kb())
        return

    if isinstance(result, NoInvoice):
        text = f"✅ *{action.title}* — готово, оплата не потребовалась."
    else:
        text = (
            "✅ *Оплата прошла успешно!*\n\n"
            f"🏷️ *Действие:* {action.title}\n"
            f"💰 *Сумма:* {result.amount} sats\n"
            f"🧾 *Hash:* `{result.hash}`"
        )

    await call.message.answer(text, reply_markup=back_home_kb())


@router.callback_query(InvoiceCb.filter(F.action == "cancel"))
async def cancel_invoice(call: CallbackQuery, callback_data: InvoiceCb, presentations: PresentationRegistry) -> None:
    await call.answer()

    if not presentations.abandon(callback_data.invoice_id):
        await call.message.answer("ℹ️ Этот счёт уже неактивен.", reply_markup=back_home_kb())
