"""Idea Repository.

Owns idea rows: tenant-scoped reads with per-viewer projections, creation with
per-tenant sequential numbers, content updates and tag assignment.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any, Literal

from slugify import slugify

from ideaboard.context import RequestContext
from ideaboard.errors import NotFoundError
from ideaboard.events.bus import EventBus
from ideaboard.events.types import EventType
from ideaboard.models.idea import BasicIdea, Idea, IdeaStatus
from ideaboard.storage.transaction import Transaction, timestamp

logger = logging.getLogger(__name__)

IdeaOrder = Literal["trending", "recent", "most-wanted"]

RECENT_WINDOW_DAYS = 30

_SELECT_IDEAS = """
SELECT i.id,
       i.number,
       i.title,
       i.slug,
       i.description,
       i.created_on,
       i.supporters,
       (SELECT COUNT(*) FROM comments c WHERE c.idea_id = i.id) AS comments,
       (SELECT COUNT(*) FROM idea_supporters s
         WHERE s.idea_id = i.id AND s.created_on > :recent_since) AS recent_supporters,
       (SELECT COUNT(*) FROM comments c
         WHERE c.idea_id = i.id AND c.created_on > :recent_since) AS recent_comments,
       i.status,
       u.id AS user_id,
       u.name AS user_name,
       u.email AS user_email,
       u.role AS user_role,
       i.response,
       i.response_date,
       r.id AS response_user_id,
       r.name AS response_user_name,
       r.email AS response_user_email,
       r.role AS response_user_role,
       d.number AS original_number,
       d.title AS original_title,
       d.slug AS original_slug,
       d.status AS original_status,
       (SELECT json_group_array(t.id) FROM idea_tags it
          INNER JOIN tags t ON t.id = it.tag_id
         WHERE it.idea_id = i.id AND (t.is_public = 1 OR :all_tags = 1)) AS tags,
       CASE WHEN :viewer_id IS NULL THEN NULL
            ELSE EXISTS (SELECT 1 FROM idea_supporters s
                          WHERE s.idea_id = i.id AND s.user_id = :viewer_id)
       END AS viewer_supported
  FROM ideas i
 INNER JOIN users u ON u.id = i.user_id
  LEFT JOIN users r ON r.id = i.response_user_id
  LEFT JOIN ideas d ON d.id = i.original_id
 WHERE {where}
 ORDER BY i.number
"""


class IdeaRepository:
    """Tenant-scoped reads and writes of ideas within one transaction.

    A repository is built per request from an explicit ``RequestContext`` and
    the caller's transaction; it holds no other state.
    """

    def __init__(
        self,
        trx: Transaction,
        context: RequestContext,
        event_bus: EventBus | None = None,
        *,
        recent_window_days: int = RECENT_WINDOW_DAYS,
    ) -> None:
        self._trx = trx
        self._context = context
        self._event_bus = event_bus
        self._recent_window = timedelta(days=recent_window_days)

    @property
    def trx(self) -> Transaction:
        return self._trx

    @property
    def context(self) -> RequestContext:
        return self._context

    # --- Reads ---

    async def get_by_id(self, idea_id: int) -> Idea:
        return await self._get_single("i.id = :key", idea_id)

    async def get_by_slug(self, slug: str) -> Idea:
        return await self._get_single("i.slug = :key", slug)

    async def get_by_number(self, number: int) -> Idea:
        return await self._get_single("i.number = :key", number)

    async def get_all(self, *, order: IdeaOrder | None = None) -> list[Idea]:
        """Return every non-duplicate idea of the tenant.

        Args:
            order: ``trending`` (ranking desc), ``recent`` (newest first),
                ``most-wanted`` (supporters desc); default is number order.
        """
        now = datetime.now(UTC)
        rows = await self._trx.fetch_all(
            _SELECT_IDEAS.format(where="i.tenant_id = :tenant_id AND i.status != :duplicate"),
            self._params(now, duplicate=int(IdeaStatus.DUPLICATE)),
        )
        ideas = [Idea.from_row(row, now=now) for row in rows]
        return _sort_ideas(ideas, order)

    async def get_all_basic(self) -> list[BasicIdea]:
        """Same filter as ``get_all`` without joins or derived fields."""
        rows = await self._trx.fetch_all(
            """SELECT id, number, title, slug, supporters, status FROM ideas
               WHERE tenant_id = ? AND status != ?
               ORDER BY number""",
            (self._context.tenant_id, int(IdeaStatus.DUPLICATE)),
        )
        return [BasicIdea.from_row(row) for row in rows]

    async def _get_single(self, condition: str, key: Any) -> Idea:
        now = datetime.now(UTC)
        row = await self._trx.fetch_one(
            _SELECT_IDEAS.format(where=f"i.tenant_id = :tenant_id AND {condition}"),
            self._params(now, key=key),
        )
        if row is None:
            raise NotFoundError("idea", key)
        return Idea.from_row(row, now=now)

    def _params(self, now: datetime, **extra: Any) -> dict[str, Any]:
        return {
            "tenant_id": self._context.tenant_id,
            "recent_since": timestamp(now - self._recent_window),
            "all_tags": 1 if self._context.sees_private_tags else 0,
            "viewer_id": self._context.user_id,
            **extra,
        }

    # --- Writes ---

    async def add(self, title: str, description: str, author_id: int) -> Idea:
        """Create an idea numbered after the tenant's current highest number.

        Raises:
            ValueError: If title is empty
        """
        title = _clean_title(title)
        tenant_id = self._context.tenant_id
        idea_id = await self._trx.insert(
            """INSERT INTO ideas (title, slug, number, description, tenant_id, user_id,
                                  created_on, supporters, status)
               VALUES (:title, :slug,
                       (SELECT COALESCE(MAX(number), 0) + 1 FROM ideas WHERE tenant_id = :tenant_id),
                       :description, :tenant_id, :user_id, :created_on, 0, :status)""",
            {
                "title": title,
                "slug": slugify(title),
                "description": description,
                "tenant_id": tenant_id,
                "user_id": author_id,
                "created_on": timestamp(),
                "status": int(IdeaStatus.NEW),
            },
        )
        idea = await self.get_by_id(idea_id)

        logger.info("Created idea #%d for tenant %d: %s", idea.number, tenant_id, idea.title)
        self.publish(
            EventType.IDEA_CREATED,
            {"tenant_id": tenant_id, "number": idea.number, "title": idea.title},
        )
        return idea

    async def update(self, number: int, title: str, description: str) -> Idea:
        """Rewrite title and description, re-deriving the slug.

        Raises:
            ValueError: If title is empty
            NotFoundError: If the idea does not exist for the tenant
        """
        title = _clean_title(title)
        tenant_id = self._context.tenant_id
        updated = await self._trx.execute(
            """UPDATE ideas SET title = ?, slug = ?, description = ?
               WHERE number = ? AND tenant_id = ?""",
            (title, slugify(title), description, number, tenant_id),
        )
        if updated == 0:
            raise NotFoundError("idea", number)

        logger.info("Updated idea #%d for tenant %d", number, tenant_id)
        self.publish(
            EventType.IDEA_UPDATED, {"tenant_id": tenant_id, "number": number, "title": title}
        )
        return await self.get_by_number(number)

    async def assign_tag(self, number: int, tag_id: int) -> bool:
        """Attach a tag to an idea. Returns False if it was already attached."""
        idea = await self.get_by_number(number)
        await self._require_tag(tag_id)
        inserted = await self._trx.execute(
            "INSERT OR IGNORE INTO idea_tags (idea_id, tag_id, created_on) VALUES (?, ?, ?)",
            (idea.id, tag_id, timestamp()),
        )
        if inserted:
            self.publish(
                EventType.IDEA_TAGGED,
                {"tenant_id": self._context.tenant_id, "number": number, "tag_id": tag_id},
            )
        return inserted > 0

    async def unassign_tag(self, number: int, tag_id: int) -> bool:
        """Detach a tag from an idea. Returns False if it was not attached."""
        idea = await self.get_by_number(number)
        await self._require_tag(tag_id)
        deleted = await self._trx.execute(
            "DELETE FROM idea_tags WHERE idea_id = ? AND tag_id = ?", (idea.id, tag_id)
        )
        if deleted:
            self.publish(
                EventType.IDEA_UNTAGGED,
                {"tenant_id": self._context.tenant_id, "number": number, "tag_id": tag_id},
            )
        return deleted > 0

    async def _require_tag(self, tag_id: int) -> None:
        found = await self._trx.exists(
            "SELECT 1 FROM tags WHERE id = ? AND tenant_id = ?",
            (tag_id, self._context.tenant_id),
        )
        if not found:
            raise NotFoundError("tag", tag_id)

    def publish(self, event_type: EventType, data: dict[str, Any]) -> None:
        """Publish an event for delivery once the enclosing transaction commits."""
        if self._event_bus is not None:
            self._event_bus.publish(self._trx, event_type, data)


def _clean_title(title: str) -> str:
    if not title or not title.strip():
        raise ValueError("title cannot be empty")
    return title.strip()


def _sort_ideas(ideas: list[Idea], order: IdeaOrder | None) -> list[Idea]:
    if order == "trending":
        return sorted(ideas, key=lambda i: (-i.ranking, i.number))
    if order == "recent":
        return sorted(ideas, key=lambda i: -i.number)
    if order == "most-wanted":
        return sorted(ideas, key=lambda i: (-i.total_supporters, i.number))
    return ideas
