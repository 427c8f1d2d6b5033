from __future__ import annotations

from datetime import datetime, timezone

from .connection import connection


# -------------------------
# Users / balance
# -------------------------

async def ensure_user(db_path: str, user_id: int) -> None:
    async with connection(db_path) as conn:
        await conn.execute(
            "INSERT OR IGNORE INTO users(user_id, balance_sats, created_at) VALUES(?, 0, ?)",
            (user_id, datetime.now(timezone.utc).isoformat()),
        )


async def get_balance(db_path: str, user_id: int) -> int:
    async with connection(db_path) as conn:
        async with conn.execute("SELECT balance_sats FROM users WHERE user_id = ?", (user_id,)) as cur:
            row = await cur.fetchone()

    return int(row[0]) if row else 0


async def set_balance(db_path: str, user_id: int, balance_sats: int) -> None:
    async with connection(db_path) as conn:
        await conn.execute(
            "INSERT OR IGNORE INTO users(user_id, balance_sats, created_at) VALUES(?, 0, ?)",
            (user_id, datetime.now(timezone.utc).isoformat()),
        )
        await conn.execute(
            "UPDATE users SET balance_sats = ? WHERE user_id = ?",
            (balance_sats, user_id),
        )
