from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from ..callbacks import ActionCb
from ..data_actions import ACTIONS


def main_menu_kb() -> InlineKeyboardMarkup:
    rows = []
    for a in ACTIONS.values():
        price = "бесплатно" if a.free else f"{a.price_sats} sats"
        rows.append(
            [
                InlineKeyboardButton(
                    text=f"{a.title} — {price}",
                    callback_data=ActionCb(code=a.code).pack(),
                )
            ]
        )
    return InlineKeyboardMarkup(inline_keyboard=rows)
