import asyncio

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.fsm.storage.memory import MemoryStorage

from .bot.config import Settings
from .bot.logging_setup import setup_logging
from .bot.routers import start, payments
from .bot.db.init_db import init_db
from .bot.services.payments.factory import get_transport
from .bot.services.presenter import PresentationRegistry


async def main() -> None:
    settings = Settings()
    setup_logging(settings.LOG_LEVEL)

    bot = Bot(
        token=settings.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode="Markdown"),
    )

    dp = Dispatcher(storage=MemoryStorage())
    dp["settings"] = settings
    dp["transport"] = get_transport(settings)
    dp["presentations"] = PresentationRegistry()

    dp.include_router(start.router)
    dp.include_router(payments.router)

    await init_db(settings.db_path_abs)

    await dp.start_polling(bot)


if __name__ == "__main__":
    asyncio.run(main())
