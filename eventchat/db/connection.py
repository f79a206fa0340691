"""Async SQLite connection wrapper with WAL mode and schema initialization."""

import asyncio
import logging
import sqlite3

import aiosqlite

from eventchat.db.schema import SCHEMA_SQL

logger = logging.getLogger(__name__)


class Database:
    """Thin async wrapper around aiosqlite with WAL mode and auto-schema."""

    def __init__(self, connection: aiosqlite.Connection) -> None:
        self._conn = connection
        # One shared connection: a statement and its commit must not interleave
        # with another coroutine's, or a rollback could discard foreign work.
        self._write_lock = asyncio.Lock()

    @classmethod
    async def connect(cls, path: str = "eventchat.db") -> "Database":
        """Create a connection with WAL mode and schema init."""
        conn = await aiosqlite.connect(path)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA busy_timeout=5000")
        db = cls(conn)
        await db._ensure_schema()
        logger.info("Connected to database at %s", path)
        return db

    async def _ensure_schema(self) -> None:
        """Create tables if they don't exist. Idempotent."""
        await self._conn.executescript(SCHEMA_SQL)
        await self._conn.commit()

    async def execute(self, sql: str, params: tuple | None = None) -> aiosqlite.Cursor:
        """Execute a single SQL statement and commit.

        On failure the transaction is rolled back before the error propagates,
        so a failed write leaves no trace.
        """
        async with self._write_lock:
            try:
                cursor = await self._conn.execute(sql, params or ())
                await self._conn.commit()
            except sqlite3.Error:
                await self._conn.rollback()
                raise
        return cursor

    async def fetchone(self, sql: str, params: tuple | None = None) -> aiosqlite.Row | None:
        """Execute and return a single row."""
        cursor = await self._conn.execute(sql, params or ())
        return await cursor.fetchone()

    async def fetchall(self, sql: str, params: tuple | None = None) -> list[aiosqlite.Row]:
        """Execute and return all rows."""
        cursor = await self._conn.execute(sql, params or ())
        return list(await cursor.fetchall())

    async def close(self) -> None:
        """Close the database connection."""
        await self._conn.close()
