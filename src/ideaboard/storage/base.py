"""Abstract storage interface for Ideaboard."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from typing import Any, TypeVar

from ideaboard.models.account import Role, Tag, Tenant, User
from ideaboard.storage.transaction import Transaction

T = TypeVar("T")


class StorageBackend(ABC):
    """Abstract interface for Ideaboard storage backends."""

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize database schema and connections."""

    @abstractmethod
    async def close(self) -> None:
        """Close all connections."""

    # --- Transactions ---

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[Transaction]:
        """Open a write transaction. Commits on success, rolls back on error."""

    @abstractmethod
    async def run_in_transaction(
        self, fn: Callable[[Transaction], Awaitable[T]], *, retries: int = 3
    ) -> T:
        """Run ``fn`` in a transaction, retrying it on retryable conflicts."""

    # --- Tenants, users and tags ---

    @abstractmethod
    async def add_tenant(self, name: str, subdomain: str) -> Tenant:
        """Create a tenant."""

    @abstractmethod
    async def get_tenant(self, tenant_id: int) -> Tenant | None:
        """Get a tenant by id."""

    @abstractmethod
    async def get_tenant_by_subdomain(self, subdomain: str) -> Tenant | None:
        """Get a tenant by subdomain."""

    @abstractmethod
    async def add_user(
        self, tenant_id: int, name: str, email: str | None = None, *, role: Role = Role.VISITOR
    ) -> User:
        """Register a user under a tenant."""

    @abstractmethod
    async def get_user(self, tenant_id: int, user_id: int) -> User | None:
        """Get a user of the tenant by id."""

    @abstractmethod
    async def add_tag(
        self, tenant_id: int, name: str, *, is_public: bool = True, color: str = "FFFFFF"
    ) -> Tag:
        """Create a tag under a tenant."""

    @abstractmethod
    async def get_tags(self, tenant_id: int) -> list[Tag]:
        """List the tenant's tags."""

    # --- Stats ---

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Get database statistics."""
