"""Ideaboard storage layer."""

from ideaboard.storage.base import StorageBackend
from ideaboard.storage.sqlite_store import SQLiteStore
from ideaboard.storage.transaction import Transaction

__all__ = ["SQLiteStore", "StorageBackend", "Transaction"]
