"""
Auth persistence helpers.
"""

from __future__ import annotations

from typing import Any

from ..core import db


def normalize_username(username: str) -> str:
    return (username or "").strip()


class UserRepository:
    def __init__(self, database: db.Database) -> None:
        self.database = database

    async def get_by_username(self, username: str) -> dict[str, Any] | None:
        return await self.database.fetch_one(
            """
            SELECT id, username, password_hash, created_at, updated_at
            FROM users
            WHERE username = $1
            """,
            normalize_username(username),
        )

    async def upsert_user(self, *, username: str, password_hash: str) -> dict[str, Any]:
        row = await self.database.fetch_one(
            """
            INSERT INTO users (username, password_hash)
            VALUES ($1, $2)
            ON CONFLICT (username) DO UPDATE
            SET password_hash = EXCLUDED.password_hash,
                updated_at = now()
            RETURNING id, username, created_at, updated_at
            """,
            normalize_username(username),
            password_hash,
        )
        if row is None:
            raise RuntimeError("Failed to upsert user.")
        return row
