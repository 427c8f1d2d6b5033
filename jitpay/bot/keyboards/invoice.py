from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from ..callbacks import InvoiceCb, MenuCb


def invoice_kb(invoice_id: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="🧯 Отмена оплаты",
                    callback_data=InvoiceCb(action="cancel", invoice_id=invoice_id).pack(),
                )
            ],
        ]
    )


def back_home_kb() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="🏠 В меню", callback_data=MenuCb(action="home").pack())],
        ]
    )
