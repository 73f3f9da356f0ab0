"""Comment Thread: append-only comments per idea, oldest first."""

import logging

from ideaboard.core.ideas import IdeaRepository
from ideaboard.events.types import EventType
from ideaboard.models.comment import Comment
from ideaboard.storage.transaction import timestamp

logger = logging.getLogger(__name__)


class CommentThread:
    def __init__(self, ideas: IdeaRepository) -> None:
        self._ideas = ideas

    async def list(self, number: int) -> list[Comment]:
        """Return the comments of the tenant's idea ``number`` by creation time."""
        rows = await self._ideas.trx.fetch_all(
            """SELECT c.id,
                      c.content,
                      c.created_on,
                      u.id AS user_id,
                      u.name AS user_name,
                      u.email AS user_email,
                      u.role AS user_role
                 FROM comments c
                INNER JOIN ideas i ON i.id = c.idea_id
                INNER JOIN users u ON u.id = c.user_id
                WHERE i.number = ? AND i.tenant_id = ?
                ORDER BY c.created_on ASC, c.id ASC""",
            (number, self._ideas.context.tenant_id),
        )
        return [Comment.from_row(row) for row in rows]

    async def add(self, number: int, content: str, author_id: int) -> int:
        """Append a comment and return its id.

        Raises:
            ValueError: If content is empty
            NotFoundError: If the idea does not exist for the tenant
        """
        if not content or not content.strip():
            raise ValueError("content cannot be empty")

        idea = await self._ideas.get_by_number(number)
        comment_id = await self._ideas.trx.insert(
            "INSERT INTO comments (idea_id, content, user_id, created_on) VALUES (?, ?, ?, ?)",
            (idea.id, content, author_id, timestamp()),
        )

        logger.info("User %d commented on idea #%d", author_id, number)
        self._ideas.publish(
            EventType.COMMENT_ADDED,
            {
                "tenant_id": self._ideas.context.tenant_id,
                "number": number,
                "comment_id": comment_id,
                "user_id": author_id,
            },
        )
        return comment_id
