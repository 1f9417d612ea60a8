"""
Async database access helpers (raw SQL) using asyncpg.

`Database` owns the connection pool. The FastAPI lifespan creates one
instance, initializes it on startup and closes it on shutdown (see
`portfolio_api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

SCHEMA_PATH = Path(__file__).with_name("schema.sql")


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


class Database:
    def __init__(self, url: str, *, max_size: int = 5) -> None:
        url = (url or "").strip()
        if not url:
            raise RuntimeError("DATABASE_URL is not set.")
        self.url = _sanitize_database_url(url)
        self.max_size = max_size
        self._pool: asyncpg.Pool | None = None

    async def init_pool(self) -> None:
        if self._pool is not None:
            return None
        self._pool = await asyncpg.create_pool(
            dsn=self.url,
            min_size=1,
            max_size=self.max_size,
            command_timeout=30,
        )

    async def close_pool(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None

    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call init_pool() on startup.")
        return self._pool

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        row = await self.pool().fetchrow(sql, *args)
        return _record_to_dict(row) if row is not None else None

    async def execute(self, sql: str, *args: Any) -> None:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
        """
        await self.pool().execute(sql, *args)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Yield a connection inside a transaction.

        Commits when the block exits normally, rolls back on any exception.
        """
        async with self.pool().acquire() as conn:  # type: asyncpg.Connection
            async with conn.transaction():
                yield conn

    async def apply_schema(self, path: Path = SCHEMA_PATH) -> None:
        # Statements are idempotent (IF NOT EXISTS), safe on every startup.
        await self.execute(path.read_text(encoding="utf-8"))


async def fetch_one(conn: asyncpg.Connection, sql: str, *args: Any) -> dict[str, Any] | None:
    """
    Connection-scoped variant of `Database.fetch_one` for use inside a transaction.
    """
    row = await conn.fetchrow(sql, *args)
    return _record_to_dict(row) if row is not None else None


async def fetch_all(conn: asyncpg.Connection, sql: str, *args: Any) -> list[dict[str, Any]]:
    rows = await conn.fetch(sql, *args)
    return [_record_to_dict(r) for r in rows]


def affected_rows(status: str) -> int:
    """
    Parse the row count out of an asyncpg command status ("DELETE 3" -> 3).
    """
    try:
        return int((status or "").rsplit(" ", 1)[-1])
    except ValueError:
        return 0
