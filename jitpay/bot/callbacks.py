from aiogram.filters.callback_data import CallbackData


class MenuCb(CallbackData, prefix="menu"):
    action: str


class ActionCb(CallbackData, prefix="act"):
    code: str


class InvoiceCb(CallbackData, prefix="inv"):
    action: str  # cancel
    invoice_id: str
