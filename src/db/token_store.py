# src/db/token_store.py
from __future__ import annotations

from typing import Optional

from db.database import connect
from utils import config

# ---------------------------
# Generic key/value access
# ---------------------------


async def get_value(key: str) -> Optional[str]:
    async with connect() as conn:
        cur = await conn.execute("SELECT value FROM kv_store WHERE key = ?;", (key,))
        row = await cur.fetchone()
        await cur.close()
    return row[0] if row else None


async def set_value(key: str, value: str) -> None:
    async with connect() as conn:
        await conn.execute(
            """
            INSERT INTO kv_store(key, value, updated_at)
            VALUES (?, ?, datetime('now'))
            ON CONFLICT(key) DO UPDATE
                SET value = excluded.value,
                    updated_at = excluded.updated_at;
            """,
            (key, value),
        )
        await conn.commit()


async def delete_value(key: str) -> None:
    async with connect() as conn:
        await conn.execute("DELETE FROM kv_store WHERE key = ?;", (key,))
        await conn.commit()


# ---------------------------
# Session token
# ---------------------------


async def get_token() -> Optional[str]:
    """Return the persisted bearer token, or None when logged out."""
    return await get_value(config.AUTH_TOKEN_KEY)


async def set_token(token: str) -> None:
    await set_value(config.AUTH_TOKEN_KEY, token)


async def clear_token() -> None:
    await delete_value(config.AUTH_TOKEN_KEY)
