"""SQLite storage backend with WAL mode and serialised write transactions."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, TypeVar

import aiosqlite
from slugify import slugify

from ideaboard.errors import StorageError
from ideaboard.models.account import Role, Tag, Tenant, User
from ideaboard.storage.base import StorageBackend
from ideaboard.storage.transaction import Transaction, timestamp, to_storage_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SQLiteStore(StorageBackend):
    """SQLite-based storage.

    The connection runs in autocommit mode; ``transaction()`` issues explicit
    ``BEGIN IMMEDIATE`` / ``COMMIT`` / ``ROLLBACK``. ``BEGIN IMMEDIATE`` takes
    the database write lock up front, so concurrent writers (including other
    processes) are serialised and ``MAX(number) + 1`` cannot race.
    """

    def __init__(self, db_path: Path, *, wal_mode: bool = True, busy_timeout: float = 5.0) -> None:
        self.db_path = db_path
        self.wal_mode = wal_mode
        self.busy_timeout = busy_timeout
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Create database and apply schema."""
        if self._db is not None:
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(
            str(self.db_path), isolation_level=None, timeout=self.busy_timeout
        )
        self._db.row_factory = aiosqlite.Row

        if self.wal_mode:
            await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("PRAGMA foreign_keys=ON")

        await self._db.executescript(_load_sql("ideaboard.sql"))
        logger.info("Initialized SQLite store at %s", self.db_path)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Store not initialized. Call initialize() first.")
        return self._db

    # --- Transactions ---

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[Transaction]:
        """Open a write transaction on the shared connection.

        Transactions on one store are serialised; do not open a second
        transaction from inside the first. A failed COMMIT leaves SQLite's
        transaction open, so it is rolled back like any other failure.
        """
        async with self._lock:
            await self._control("BEGIN IMMEDIATE")
            trx = Transaction(self.db)
            try:
                yield trx
                await self._control("COMMIT")
            except BaseException:
                await self._rollback()
                raise
        await trx.run_commit_callbacks()

    async def run_in_transaction(
        self, fn: Callable[[Transaction], Awaitable[T]], *, retries: int = 3
    ) -> T:
        attempt = 0
        while True:
            try:
                async with self.transaction() as trx:
                    return await fn(trx)
            except StorageError as e:
                if not e.retryable or attempt >= retries:
                    raise
                attempt += 1
                logger.warning("Retrying transaction (attempt %d/%d): %s", attempt, retries, e)
                await asyncio.sleep(0.05 * attempt)

    async def _control(self, statement: str) -> None:
        try:
            await self.db.execute(statement)
        except sqlite3.Error as e:
            raise to_storage_error(e) from e

    async def _rollback(self) -> None:
        try:
            await self.db.execute("ROLLBACK")
        except sqlite3.Error:
            # The original error is already propagating; keep it as the one raised.
            logger.exception("Rollback failed for %s", self.db_path)

    # --- Tenants, users and tags ---

    async def add_tenant(self, name: str, subdomain: str) -> Tenant:
        async with self.transaction() as trx:
            tenant_id = await trx.insert(
                "INSERT INTO tenants (name, subdomain, created_on) VALUES (?, ?, ?)",
                (name, subdomain, timestamp()),
            )
        logger.info("Created tenant %s (%s)", tenant_id, subdomain)
        return Tenant(id=tenant_id, name=name, subdomain=subdomain)

    async def get_tenant(self, tenant_id: int) -> Tenant | None:
        async with self.transaction() as trx:
            row = await trx.fetch_one(
                "SELECT id, name, subdomain FROM tenants WHERE id = ?", (tenant_id,)
            )
        return Tenant(**row) if row else None

    async def get_tenant_by_subdomain(self, subdomain: str) -> Tenant | None:
        async with self.transaction() as trx:
            row = await trx.fetch_one(
                "SELECT id, name, subdomain FROM tenants WHERE subdomain = ?", (subdomain,)
            )
        return Tenant(**row) if row else None

    async def add_user(
        self, tenant_id: int, name: str, email: str | None = None, *, role: Role = Role.VISITOR
    ) -> User:
        async with self.transaction() as trx:
            user_id = await trx.insert(
                """INSERT INTO users (tenant_id, name, email, role, created_on)
                   VALUES (?, ?, ?, ?, ?)""",
                (tenant_id, name, email, str(role), timestamp()),
            )
        return User(id=user_id, name=name, email=email, role=role)

    async def get_user(self, tenant_id: int, user_id: int) -> User | None:
        async with self.transaction() as trx:
            row = await trx.fetch_one(
                "SELECT id, name, email, role FROM users WHERE tenant_id = ? AND id = ?",
                (tenant_id, user_id),
            )
        return User(**row) if row else None

    async def add_tag(
        self, tenant_id: int, name: str, *, is_public: bool = True, color: str = "FFFFFF"
    ) -> Tag:
        slug = slugify(name)
        async with self.transaction() as trx:
            tag_id = await trx.insert(
                """INSERT INTO tags (tenant_id, name, slug, color, is_public, created_on)
                   VALUES (?, ?, ?, ?, ?, ?)""",
                (tenant_id, name, slug, color, is_public, timestamp()),
            )
        return Tag(id=tag_id, name=name, slug=slug, color=color, is_public=is_public)

    async def get_tags(self, tenant_id: int) -> list[Tag]:
        async with self.transaction() as trx:
            rows = await trx.fetch_all(
                """SELECT id, name, slug, color, is_public FROM tags
                   WHERE tenant_id = ? ORDER BY name""",
                (tenant_id,),
            )
        return [Tag(**row) for row in rows]

    # --- Stats ---

    async def get_stats(self) -> dict[str, Any]:
        counts: dict[str, Any] = {}
        async with self.transaction() as trx:
            for table in ("tenants", "users", "tags", "ideas", "comments", "idea_supporters"):
                row = await trx.fetch_one(f"SELECT COUNT(*) AS count FROM {table}")
                counts[table] = row["count"] if row else 0
            rows = await trx.fetch_all(
                "SELECT status, COUNT(*) AS count FROM ideas GROUP BY status"
            )
        counts["by_status"] = {row["status"]: row["count"] for row in rows}
        return {**counts, "db_path": str(self.db_path)}


# --- Helpers ---


def _load_sql(filename: str) -> str:
    """Load SQL file from the schema package."""
    schema_dir = Path(__file__).parent.parent / "schema"
    return (schema_dir / filename).read_text()
