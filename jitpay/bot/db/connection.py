from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

import aiosqlite


@asynccontextmanager
async def connection(db_path: str) -> AsyncIterator[aiosqlite.Connection]:
    """Короткое соединение на одну операцию; commit только если блок завершился без ошибки."""
    conn = await aiosqlite.connect(db_path)
    try:
        await conn.execute("PRAGMA journal_mode=WAL;")
        yield conn
        await conn.commit()
    finally:
        await conn.close()
