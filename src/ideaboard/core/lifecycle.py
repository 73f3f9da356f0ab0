"""Response setting and duplicate merging.

Duplicate status is reachable only through ``mark_as_duplicate``, the one path
that migrates supporters to the original idea.
"""

import logging
from datetime import UTC, datetime

from ideaboard.core.ideas import IdeaRepository
from ideaboard.core.status import Operation, validate_target, validate_transition
from ideaboard.core.supporters import SupporterLedger
from ideaboard.errors import InvalidTransitionError
from ideaboard.events.types import EventType
from ideaboard.models.idea import Idea, IdeaStatus
from ideaboard.storage.transaction import timestamp

logger = logging.getLogger(__name__)


class IdeaLifecycle:
    """Status transitions of ideas: responses and duplicate merges."""

    def __init__(self, ideas: IdeaRepository, supporters: SupporterLedger) -> None:
        self._ideas = ideas
        self._supporters = supporters

    async def set_response(
        self, number: int, text: str, user_id: int, status: IdeaStatus | int
    ) -> Idea:
        """Respond to an idea and move it to ``status``.

        The response date is kept when the status does not change and a
        response already exists. Any original reference is cleared.

        Raises:
            InvalidTransitionError: If status is DUPLICATE
            NotFoundError: If the idea does not exist for the tenant
        """
        status = IdeaStatus(status)
        validate_target(Operation.RESPOND, status)

        idea = await self._ideas.get_by_number(number)
        validate_transition(Operation.RESPOND, idea.status, status)

        responded_on = _responded_on(idea, keep=idea.status == status)
        tenant_id = self._ideas.context.tenant_id
        await self._ideas.trx.execute(
            """UPDATE ideas
                  SET response = ?, original_id = NULL, response_date = ?,
                      response_user_id = ?, status = ?
                WHERE id = ? AND tenant_id = ?""",
            (text, timestamp(responded_on), user_id, int(status), idea.id, tenant_id),
        )

        logger.info(
            "Idea #%d responded by user %d: %s -> %s",
            number,
            user_id,
            idea.status.name,
            status.name,
        )
        self._ideas.publish(
            EventType.IDEA_RESPONDED,
            {
                "tenant_id": tenant_id,
                "number": number,
                "user_id": user_id,
                "from_status": int(idea.status),
                "status": int(status),
            },
        )
        return await self._ideas.get_by_number(number)

    async def mark_as_duplicate(self, number: int, original_number: int, user_id: int) -> Idea:
        """Merge idea ``number`` into ``original_number``.

        Every supporter of the idea is added to the original through the
        regular supporter path, so users already supporting the original are
        skipped and an unsupportable original receives nobody. Running the
        merge again changes nothing but the responding user.

        Raises:
            InvalidTransitionError: If an idea is merged into itself
            NotFoundError: If either idea does not exist for the tenant
        """
        if number == original_number:
            raise InvalidTransitionError(f"Idea #{number} cannot be a duplicate of itself")

        idea = await self._ideas.get_by_number(number)
        original = await self._ideas.get_by_number(original_number)
        validate_transition(Operation.MERGE, idea.status, IdeaStatus.DUPLICATE)

        responded_on = _responded_on(idea, keep=idea.status == IdeaStatus.DUPLICATE)

        migrated = 0
        for supporter_id in await self._supporters.supporter_ids(idea.id):
            if await self._supporters.add(original.number, supporter_id):
                migrated += 1

        tenant_id = self._ideas.context.tenant_id
        await self._ideas.trx.execute(
            """UPDATE ideas
                  SET response = '', original_id = ?, response_date = ?,
                      response_user_id = ?, status = ?
                WHERE id = ? AND tenant_id = ?""",
            (
                original.id,
                timestamp(responded_on),
                user_id,
                int(IdeaStatus.DUPLICATE),
                idea.id,
                tenant_id,
            ),
        )

        logger.info(
            "Idea #%d marked as duplicate of #%d (%d supporters migrated)",
            number,
            original_number,
            migrated,
        )
        self._ideas.publish(
            EventType.IDEA_DUPLICATED,
            {
                "tenant_id": tenant_id,
                "number": number,
                "original_number": original_number,
                "user_id": user_id,
                "migrated_supporters": migrated,
            },
        )
        return await self._ideas.get_by_number(number)


def _responded_on(idea: Idea, *, keep: bool) -> datetime:
    if keep and idea.response is not None:
        return idea.response.responded_on
    return datetime.now(UTC)
