"""Shared test fixtures for Ideaboard."""

from __future__ import annotations

from pathlib import Path

import pytest

from ideaboard.config import Config
from ideaboard.context import RequestContext
from ideaboard.core.board import IdeaBoard
from ideaboard.events.bus import EventBus
from ideaboard.models.account import Role, Tag, Tenant, User
from ideaboard.storage.sqlite_store import SQLiteStore


@pytest.fixture
def tmp_db(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest.fixture
async def store(tmp_db: Path) -> SQLiteStore:
    s = SQLiteStore(tmp_db)
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(workspace_path=tmp_path)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def board(store: SQLiteStore, bus: EventBus) -> IdeaBoard:
    return IdeaBoard(store, bus)


@pytest.fixture
async def tenant(store: SQLiteStore) -> Tenant:
    return await store.add_tenant("Demonstration", "demo")


@pytest.fixture
async def other_tenant(store: SQLiteStore) -> Tenant:
    return await store.add_tenant("Avengers", "avengers")


@pytest.fixture
async def admin(store: SQLiteStore, tenant: Tenant) -> User:
    return await store.add_user(
        tenant.id, "Jon Snow", "jon.snow@got.com", role=Role.ADMINISTRATOR
    )


@pytest.fixture
async def visitor(store: SQLiteStore, tenant: Tenant) -> User:
    return await store.add_user(tenant.id, "Arya Stark", "arya.stark@got.com")


@pytest.fixture
async def visitor2(store: SQLiteStore, tenant: Tenant) -> User:
    return await store.add_user(tenant.id, "Sansa Stark", "sansa.stark@got.com")


@pytest.fixture
async def public_tag(store: SQLiteStore, tenant: Tenant) -> Tag:
    return await store.add_tag(tenant.id, "Feature Request")


@pytest.fixture
async def private_tag(store: SQLiteStore, tenant: Tenant) -> Tag:
    return await store.add_tag(tenant.id, "Under Review", is_public=False)


@pytest.fixture
def ctx(tenant: Tenant):
    """Build a RequestContext for the demo tenant acting as ``user``."""

    def _ctx(user: User | None = None) -> RequestContext:
        return RequestContext(tenant=tenant, user=user)

    return _ctx
