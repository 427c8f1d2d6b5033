from aiogram import Router, F
from aiogram.filters import Command, CommandObject, CommandStart
from aiogram.types import CallbackQuery, Message

from ..config import Settings
from ..callbacks import MenuCb
from ..db import repo
from ..keyboards.main_menu import main_menu_kb


router = Router()

MENU_TEXT = (
    "⚡️ *Добро пожаловать!*\n\n"
    "💰 *Ваш баланс:* {balance} sats\n"
    "Если баланса не хватит — выставим счёт.\n\n"
    "👇 Выберите действие:"
)


@router.message(CommandStart())
async def cmd_start(message: Message, settings: Settings) -> None:
    user_id = message.from_user.id if message.from_user else message.chat.id
    await repo.ensure_user(settings.db_path_abs, user_id)
    balance = await repo.get_balance(settings.db_path_abs, user_id)

    await message.answer(MENU_TEXT.format(balance=balance), reply_markup=main_menu_kb())


@router.callback_query(MenuCb.filter(F.action == "home"))
async def back_home(call: CallbackQuery, settings: Settings) -> None:
    await call.answer()
    balance = await repo.get_balance(settings.db_path_abs, call.from_user.id)

    await call.message.answer(MENU_TEXT.format(balance=balance), reply_markup=main_menu_kb())


@router.message(Command("setbalance"))
async def cmd_set_balance(message: Message, command: CommandObject, settings: Settings) -> None:
    """/setbalance <user_id> <sats>: только для админов."""
    if not message.from_user or message.from_user.id not in settings.admin_ids:
        return

    parts = (command.args or "").split()
    if len(parts) != 2 or not all(p.lstrip("-").isdigit() for p in parts):
        await message.answer("Использование: `/setbalance <user_id> <sats>`")
        return

    user_id, sats = int(parts[0]), int(parts[1])
    await repo.set_balance(settings.db_path_abs, user_id, sats)
    await message.answer(f"✅ Баланс {user_id}: {sats} sats")
