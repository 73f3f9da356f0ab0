"""Transaction handle passed to every repository operation."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Awaitable, Callable, Iterable
from datetime import UTC, datetime
from typing import Any

import aiosqlite

from ideaboard.errors import StorageError

logger = logging.getLogger(__name__)

CommitCallback = Callable[[], Awaitable[None]]

Params = Iterable[Any] | dict[str, Any]


def timestamp(value: datetime | None = None) -> str:
    """Render a UTC timestamp in the fixed-width form used for every stored column."""
    value = value or datetime.now(UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


class Transaction:
    """Thin query wrapper over a connection with an open transaction.

    Every ``sqlite3.Error`` is re-raised as ``StorageError`` chained to the
    original exception.
    """

    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db
        self._on_commit: list[CommitCallback] = []

    async def execute(self, sql: str, params: Params = ()) -> int:
        """Run a write statement and return the number of affected rows."""
        cursor = await self._run(sql, params)
        return cursor.rowcount

    async def insert(self, sql: str, params: Params = ()) -> int:
        """Run an INSERT and return the new row id."""
        cursor = await self._run(sql, params)
        return cursor.lastrowid

    async def fetch_one(self, sql: str, params: Params = ()) -> dict[str, Any] | None:
        cursor = await self._run(sql, params)
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def fetch_all(self, sql: str, params: Params = ()) -> list[dict[str, Any]]:
        cursor = await self._run(sql, params)
        rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def exists(self, sql: str, params: Params = ()) -> bool:
        cursor = await self._run(sql, params)
        return await cursor.fetchone() is not None

    async def fetch_ints(self, sql: str, params: Params = ()) -> list[int]:
        """Return the first column of every row as an int."""
        cursor = await self._run(sql, params)
        rows = await cursor.fetchall()
        return [int(row[0]) for row in rows]

    def on_commit(self, callback: CommitCallback) -> None:
        """Schedule ``callback`` to run once the transaction has committed."""
        self._on_commit.append(callback)

    async def run_commit_callbacks(self) -> None:
        callbacks, self._on_commit = self._on_commit, []
        for callback in callbacks:
            await callback()

    async def _run(self, sql: str, params: Params) -> aiosqlite.Cursor:
        try:
            return await self._db.execute(sql, params)
        except sqlite3.Error as e:
            raise to_storage_error(e) from e


def to_storage_error(error: sqlite3.Error) -> StorageError:
    message = str(error)
    retryable = isinstance(error, sqlite3.OperationalError) and (
        "locked" in message or "busy" in message
    )
    if retryable:
        logger.warning("Storage conflict: %s", message)
    else:
        logger.error("Storage failure: %s", message)
    return StorageError(message, retryable=retryable)
