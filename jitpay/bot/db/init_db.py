from __future__ import annotations

import logging
from pathlib import Path

from .connection import connection

log = logging.getLogger(__name__)


async def init_db(db_path: str) -> None:
    # гарантируем, что папка под БД существует
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    schema = Path(__file__).with_name("schema.sql").read_text(encoding="utf-8")

    log.info("DB init: %s", db_path)

    async with connection(db_path) as conn:
        await conn.executescript(schema)
