from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Корень проекта (jitpay/bot/config.py -> project root)
    BASE_DIR: Path = Path(__file__).resolve().parents[2]

    # Telegram
    BOT_TOKEN: str = Field(default="")
    ADMIN_IDS: str = Field(default="")  # comma-separated

    # Invoices (GraphQL API)
    API_URL: str = Field(default="https://stacker.news/api/graphql")
    POLL_INTERVAL_MS: int = Field(default=1000)
    INVOICE_EXPIRE_SECS: int = Field(default=180)
    HTTP_TIMEOUT_SECONDS: int = Field(default=20)

    # Кошелёк для автоматической оплаты (LNbits). Пусто => только ручная оплата
    WALLET_URL: str = Field(default="")
    WALLET_ADMIN_KEY: str = Field(default="")

    # App
    DB_PATH: str = Field(default="bot.db")  # можно относительный, будет резолвиться от BASE_DIR
    LOG_LEVEL: str = Field(default="INFO")

    @property
    def admin_ids(self) -> list[int]:
        raw = self.ADMIN_IDS.strip()
        if not raw:
            return []
        return [int(x.strip()) for x in raw.split(",") if x.strip()]

    @property
    def poll_interval(self) -> float:
        return self.POLL_INTERVAL_MS / 1000

    @property
    def db_path_abs(self) -> str:
        p = Path(self.DB_PATH)
        if not p.is_absolute():
            p = self.BASE_DIR / p
        return str(p.resolve())
