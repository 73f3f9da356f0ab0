"""Post-commit delivery of idea board events.

Services publish events while their transaction is still open. The bus parks
each one on the transaction and hands it to listeners only once COMMIT has
succeeded, so a rolled back change never produces an event.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

from ideaboard.events.types import EventType

if TYPE_CHECKING:
    from ideaboard.storage.transaction import Transaction

logger = logging.getLogger(__name__)

Listener = Callable[[EventType, dict[str, Any]], Coroutine[Any, Any, None]]

# Subscription key for listeners that receive every event type
_ANY = None


class EventBus:
    def __init__(self) -> None:
        self._subscriptions: dict[EventType | None, list[Listener]] = defaultdict(list)

    def on(self, event_type: EventType, listener: Listener) -> None:
        self._subscriptions[event_type].append(listener)

    def on_all(self, listener: Listener) -> None:
        self._subscriptions[_ANY].append(listener)

    def publish(self, trx: Transaction, event_type: EventType, data: dict[str, Any]) -> None:
        """Queue ``event_type`` for delivery after ``trx`` commits."""
        payload = dict(data)

        async def _deliver() -> None:
            await self.deliver(event_type, payload)

        trx.on_commit(_deliver)

    async def deliver(self, event_type: EventType, data: dict[str, Any]) -> None:
        """Call every listener subscribed to ``event_type``.

        The change behind the event is already committed, so a failing
        listener is logged and the remaining listeners still run.
        """
        listeners = [*self._subscriptions[event_type], *self._subscriptions[_ANY]]
        if not listeners:
            return
        logger.debug("Delivering %s to %d listener(s)", event_type, len(listeners))
        for listener in listeners:
            try:
                await listener(event_type, data)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Listener %r failed on %s", listener, event_type)
