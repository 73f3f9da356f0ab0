"""Supporter Ledger.

Keeps ``ideas.supporters`` in lockstep with the ``idea_supporters`` rows. Both
writes of a change run in the caller's transaction, so they commit or roll
back together.
"""

import logging

from ideaboard.core.ideas import IdeaRepository
from ideaboard.core.status import is_supportable
from ideaboard.events.types import EventType
from ideaboard.storage.transaction import timestamp

logger = logging.getLogger(__name__)


class SupporterLedger:
    def __init__(self, ideas: IdeaRepository) -> None:
        self._ideas = ideas

    async def add(self, number: int, user_id: int) -> bool:
        """Add ``user_id`` as a supporter of idea ``number``.

        Returns True if support was recorded, False for the no-op cases
        (idea not supportable, user already supporting).

        Raises:
            NotFoundError: If the idea does not exist for the tenant
        """
        idea = await self._ideas.get_by_number(number)
        trx = self._ideas.trx

        if not is_supportable(idea.status):
            logger.debug("Idea #%d is %s; support ignored", number, idea.status.name)
            return False

        if await self._supports(user_id, idea.id):
            logger.debug("User %d already supports idea #%d", user_id, number)
            return False

        await trx.execute("UPDATE ideas SET supporters = supporters + 1 WHERE id = ?", (idea.id,))
        await trx.execute(
            "INSERT INTO idea_supporters (user_id, idea_id, created_on) VALUES (?, ?, ?)",
            (user_id, idea.id, timestamp()),
        )

        self._ideas.publish(
            EventType.IDEA_SUPPORTED,
            {"tenant_id": self._ideas.context.tenant_id, "number": number, "user_id": user_id},
        )
        return True

    async def remove(self, number: int, user_id: int) -> bool:
        """Remove ``user_id`` from the supporters of idea ``number``.

        Returns False without changes if the user was not supporting or the
        idea is no longer supportable.

        Raises:
            NotFoundError: If the idea does not exist for the tenant
        """
        idea = await self._ideas.get_by_number(number)
        trx = self._ideas.trx

        if not is_supportable(idea.status):
            logger.debug("Idea #%d is %s; unsupport ignored", number, idea.status.name)
            return False

        if not await self._supports(user_id, idea.id):
            logger.debug("User %d does not support idea #%d", user_id, number)
            return False

        await trx.execute("UPDATE ideas SET supporters = supporters - 1 WHERE id = ?", (idea.id,))
        await trx.execute(
            "DELETE FROM idea_supporters WHERE user_id = ? AND idea_id = ?", (user_id, idea.id)
        )

        self._ideas.publish(
            EventType.IDEA_UNSUPPORTED,
            {"tenant_id": self._ideas.context.tenant_id, "number": number, "user_id": user_id},
        )
        return True

    async def supported_by(self, user_id: int) -> list[int]:
        """Ids of the tenant's ideas currently supported by ``user_id``."""
        return await self._ideas.trx.fetch_ints(
            """SELECT s.idea_id FROM idea_supporters s
                INNER JOIN ideas i ON i.id = s.idea_id
                WHERE s.user_id = ? AND i.tenant_id = ?
                ORDER BY s.idea_id""",
            (user_id, self._ideas.context.tenant_id),
        )

    async def supporter_ids(self, idea_id: int) -> list[int]:
        """User ids supporting an idea, oldest support first."""
        return await self._ideas.trx.fetch_ints(
            "SELECT user_id FROM idea_supporters WHERE idea_id = ? ORDER BY created_on, user_id",
            (idea_id,),
        )

    async def _supports(self, user_id: int, idea_id: int) -> bool:
        return await self._ideas.trx.exists(
            "SELECT 1 FROM idea_supporters WHERE user_id = ? AND idea_id = ?",
            (user_id, idea_id),
        )
