"""Error taxonomy for the idea engine."""

from __future__ import annotations


class IdeaBoardError(Exception):
    """Base class for all ideaboard errors."""


class NotFoundError(IdeaBoardError):
    """Raised when a tenant-scoped lookup matches no row."""

    def __init__(self, entity: str, key: object) -> None:
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class InvalidTransitionError(IdeaBoardError, ValueError):
    """Raised when a status change is not allowed through the requested path."""


class TenantRequiredError(IdeaBoardError):
    """Raised when a tenant-scoped operation runs without a tenant in context."""

    def __init__(self) -> None:
        super().__init__("A current tenant is required for this operation")


class StorageError(IdeaBoardError):
    """Raised when the storage backend fails.

    ``retryable`` is set for lock/busy conflicts, the only failures worth a
    bounded retry of the whole transaction.
    """

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        self.retryable = retryable
        super().__init__(message)
