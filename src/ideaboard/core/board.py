"""Per-request sessions over the idea engine."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import TypeVar

from ideaboard.context import RequestContext
from ideaboard.core.comments import CommentThread
from ideaboard.core.ideas import RECENT_WINDOW_DAYS, IdeaRepository
from ideaboard.core.lifecycle import IdeaLifecycle
from ideaboard.core.supporters import SupporterLedger
from ideaboard.events.bus import EventBus
from ideaboard.storage.base import StorageBackend
from ideaboard.storage.transaction import Transaction

T = TypeVar("T")


class BoardSession:
    """All idea components bound to one transaction and one request context."""

    def __init__(
        self,
        trx: Transaction,
        context: RequestContext,
        event_bus: EventBus | None = None,
        *,
        recent_window_days: int = RECENT_WINDOW_DAYS,
    ) -> None:
        self.context = context
        self.ideas = IdeaRepository(
            trx, context, event_bus, recent_window_days=recent_window_days
        )
        self.comments = CommentThread(self.ideas)
        self.supporters = SupporterLedger(self.ideas)
        self.lifecycle = IdeaLifecycle(self.ideas, self.supporters)


class IdeaBoard:
    """Entry point handing out transactional sessions per request."""

    def __init__(
        self,
        store: StorageBackend,
        event_bus: EventBus | None = None,
        *,
        recent_window_days: int = RECENT_WINDOW_DAYS,
        retries: int = 3,
    ) -> None:
        self._store = store
        self._event_bus = event_bus
        self._recent_window_days = recent_window_days
        self._retries = retries

    @asynccontextmanager
    async def session(self, context: RequestContext) -> AsyncIterator[BoardSession]:
        """Open a session; everything done in it commits or rolls back together."""
        async with self._store.transaction() as trx:
            yield self._bind(trx, context)

    async def run(
        self, context: RequestContext, fn: Callable[[BoardSession], Awaitable[T]]
    ) -> T:
        """Run ``fn`` in a session, retrying the whole session on lock conflicts."""

        async def _in_trx(trx: Transaction) -> T:
            return await fn(self._bind(trx, context))

        return await self._store.run_in_transaction(_in_trx, retries=self._retries)

    def _bind(self, trx: Transaction, context: RequestContext) -> BoardSession:
        return BoardSession(
            trx, context, self._event_bus, recent_window_days=self._recent_window_days
        )
