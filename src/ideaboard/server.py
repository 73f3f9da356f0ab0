"""FastMCP server — 3 consolidated tools, 1 resource."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any, Literal

from fastmcp import FastMCP
from pydantic import Field

from ideaboard.config import Config
from ideaboard.context import RequestContext
from ideaboard.core.board import IdeaBoard
from ideaboard.errors import InvalidTransitionError, NotFoundError, TenantRequiredError
from ideaboard.events.bus import EventBus
from ideaboard.models.idea import IdeaStatus
from ideaboard.storage.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)

_CLIENT_ERRORS = (NotFoundError, InvalidTransitionError, TenantRequiredError, ValueError)

StatusName = Literal["new", "started", "completed", "declined", "planned", "duplicate"]


def _json(data: dict[str, Any]) -> str:
    return json.dumps(data, default=str)


def _ok(data: dict[str, Any]) -> str:
    """Return a versioned JSON success response."""
    return _json({**data, "_v": "1.0"})


def _err(msg: str) -> str:
    """Return a versioned JSON error response."""
    return _json({"_v": "1.0", "error": msg})


def create_server(db_path: str, config: Config | None = None) -> FastMCP:
    """Create FastMCP server with 3 consolidated tools."""
    config = config or Config()
    mcp = FastMCP("ideaboard", version="0.1.0")

    state: dict[str, Any] = {}
    _lock = asyncio.Lock()

    async def _init() -> dict[str, Any]:
        async with _lock:
            if "init_failed" in state:
                raise RuntimeError(f"Ideaboard init previously failed for {db_path}")
            if "board" not in state:
                try:
                    store = SQLiteStore(
                        Path(db_path),
                        wal_mode=config.wal_mode,
                        busy_timeout=config.busy_timeout,
                    )
                    await store.initialize()
                except Exception as e:
                    state["init_failed"] = True
                    logger.error("Failed to initialize database: %s", e)
                    raise RuntimeError(f"Ideaboard init failed: {db_path}") from e
                bus = EventBus()
                state["store"] = store
                state["bus"] = bus
                state["board"] = IdeaBoard(
                    store,
                    bus,
                    recent_window_days=config.recent_window_days,
                    retries=config.transaction_retries,
                )
        return state

    async def _context(s: dict[str, Any], tenant_id: int, user_id: int | None) -> RequestContext:
        store: SQLiteStore = s["store"]
        tenant = await store.get_tenant(tenant_id)
        if tenant is None:
            raise NotFoundError("tenant", tenant_id)
        user = None
        if user_id is not None:
            user = await store.get_user(tenant_id, user_id)
            if user is None:
                raise NotFoundError("user", user_id)
        return RequestContext(tenant=tenant, user=user)

    def _require_user(ctx: RequestContext, action: str) -> int:
        if ctx.user is None:
            raise ValueError(f"user_id is required for {action}")
        return ctx.user.id

    def _require_collaborator(ctx: RequestContext, action: str) -> int:
        user_id = _require_user(ctx, action)
        if not ctx.sees_private_tags:
            raise ValueError(f"{action} requires a collaborator")
        return user_id

    # ── ib_idea ───────────────────────────────────────────────

    @mcp.tool()
    async def ib_idea(
        action: Annotated[
            Literal[
                "add", "update", "get", "list", "basic", "respond", "duplicate", "tag", "untag"
            ],
            Field(description="add | update | get | list | basic | respond | duplicate | tag | untag"),
        ],
        tenant_id: Annotated[int, Field(description="Tenant ID (all actions)")],
        user_id: Annotated[
            int | None,
            Field(description="Acting user ID (required for writes)"),
        ] = None,
        number: Annotated[
            int | None,
            Field(description="Idea number (update, get, respond, duplicate, tag, untag)"),
        ] = None,
        slug: Annotated[
            str | None,
            Field(description="Idea slug, alternative to number (get)"),
        ] = None,
        title: Annotated[
            str | None,
            Field(description="Idea title (add, update)"),
        ] = None,
        description: Annotated[
            str,
            Field(description="Idea description (add, update)"),
        ] = "",
        text: Annotated[
            str,
            Field(description="Response text (respond)"),
        ] = "",
        status: Annotated[
            StatusName | None,
            Field(description="Target status (respond)"),
        ] = None,
        original_number: Annotated[
            int | None,
            Field(description="Number of the original idea (duplicate)"),
        ] = None,
        tag_id: Annotated[
            int | None,
            Field(description="Tag ID (tag, untag)"),
        ] = None,
        order: Annotated[
            Literal["trending", "recent", "most-wanted"] | None,
            Field(description="Ordering (list)"),
        ] = None,
        limit: Annotated[
            int,
            Field(description="Max results 1-200 (list, basic)", ge=1, le=200),
        ] = 50,
    ) -> str:
        """Manage ideas: create, edit, read, list, respond, merge duplicates and tag."""
        s = await _init()
        board: IdeaBoard = s["board"]

        try:
            ctx = await _context(s, tenant_id, user_id)

            if action == "add":
                author_id = _require_user(ctx, "add")
                if not title or not title.strip():
                    return _err("title is required for add")
                async with board.session(ctx) as session:
                    idea = await session.ideas.add(title, description, author_id)
                return _ok(idea.to_response(detail="full"))

            if action == "list":
                async with board.session(ctx) as session:
                    ideas = await session.ideas.get_all(order=order)
                items = [i.to_response() for i in ideas[:limit]]
                return _ok({"count": len(items), "ideas": items})

            if action == "basic":
                async with board.session(ctx) as session:
                    basics = await session.ideas.get_all_basic()
                items = [b.to_response() for b in basics[:limit]]
                return _ok({"count": len(items), "ideas": items})

            if action == "get" and slug:
                async with board.session(ctx) as session:
                    idea = await session.ideas.get_by_slug(slug)
                return _ok(idea.to_response(detail="full"))

            if number is None:
                return _err(f"number is required for {action}")

            if action == "get":
                async with board.session(ctx) as session:
                    idea = await session.ideas.get_by_number(number)
                return _ok(idea.to_response(detail="full"))

            if action == "update":
                _require_user(ctx, "update")
                if not title or not title.strip():
                    return _err("title is required for update")
                async with board.session(ctx) as session:
                    idea = await session.ideas.update(number, title, description)
                return _ok(idea.to_response(detail="full"))

            if action == "respond":
                responder_id = _require_collaborator(ctx, "respond")
                if status is None:
                    return _err("status is required for respond")
                async with board.session(ctx) as session:
                    idea = await session.lifecycle.set_response(
                        number, text, responder_id, IdeaStatus[status.upper()]
                    )
                return _ok(idea.to_response(detail="full"))

            if action == "duplicate":
                responder_id = _require_collaborator(ctx, "duplicate")
                if original_number is None:
                    return _err("original_number is required for duplicate")

                async def _merge(session):
                    return await session.lifecycle.mark_as_duplicate(
                        number, original_number, responder_id
                    )

                idea = await board.run(ctx, _merge)
                return _ok(idea.to_response(detail="full"))

            if action in ("tag", "untag"):
                _require_collaborator(ctx, action)
                if tag_id is None:
                    return _err(f"tag_id is required for {action}")
                async with board.session(ctx) as session:
                    if action == "tag":
                        changed = await session.ideas.assign_tag(number, tag_id)
                    else:
                        changed = await session.ideas.unassign_tag(number, tag_id)
                return _ok({"number": number, "tag_id": tag_id, "changed": changed})
        except _CLIENT_ERRORS as e:
            return _err(str(e))

        return _err(f"Unknown action: {action}")

    # ── ib_support ────────────────────────────────────────────

    @mcp.tool()
    async def ib_support(
        action: Annotated[
            Literal["add", "remove", "mine"],
            Field(description="add | remove | mine"),
        ],
        tenant_id: Annotated[int, Field(description="Tenant ID")],
        user_id: Annotated[int, Field(description="Supporting user ID")],
        number: Annotated[
            int | None,
            Field(description="Idea number (add, remove)"),
        ] = None,
    ) -> str:
        """Support or unsupport an idea, or list the ideas a user supports."""
        s = await _init()
        board: IdeaBoard = s["board"]

        try:
            ctx = await _context(s, tenant_id, user_id)

            if action == "mine":
                async with board.session(ctx) as session:
                    idea_ids = await session.supporters.supported_by(user_id)
                return _ok({"count": len(idea_ids), "idea_ids": idea_ids})

            if number is None:
                return _err(f"number is required for {action}")

            async with board.session(ctx) as session:
                if action == "add":
                    changed = await session.supporters.add(number, user_id)
                else:
                    changed = await session.supporters.remove(number, user_id)
                idea = await session.ideas.get_by_number(number)
            return _ok(
                {
                    "number": number,
                    "changed": changed,
                    "total_supporters": idea.total_supporters,
                    "viewer_supported": idea.viewer_supported,
                }
            )
        except _CLIENT_ERRORS as e:
            return _err(str(e))

    # ── ib_comment ────────────────────────────────────────────

    @mcp.tool()
    async def ib_comment(
        action: Annotated[
            Literal["add", "list"],
            Field(description="add | list"),
        ],
        tenant_id: Annotated[int, Field(description="Tenant ID")],
        number: Annotated[int, Field(description="Idea number")],
        user_id: Annotated[
            int | None,
            Field(description="Commenting user ID (add)"),
        ] = None,
        content: Annotated[
            str | None,
            Field(description="Comment text (add)"),
        ] = None,
    ) -> str:
        """Add a comment to an idea or read its comment thread."""
        s = await _init()
        board: IdeaBoard = s["board"]

        try:
            ctx = await _context(s, tenant_id, user_id)

            if action == "add":
                author_id = _require_user(ctx, "add")
                if not content or not content.strip():
                    return _err("content is required for add")
                async with board.session(ctx) as session:
                    comment_id = await session.comments.add(number, content, author_id)
                return _ok({"id": comment_id, "number": number})

            async with board.session(ctx) as session:
                comments = await session.comments.list(number)
            items = [c.to_response() for c in comments]
            return _ok({"count": len(items), "comments": items})
        except _CLIENT_ERRORS as e:
            return _err(str(e))

    # ── Resources (1) ──────────────────────────────────────────

    @mcp.resource("ib://status")
    async def ib_resource_status() -> str:
        """Database overview."""
        s = await _init()
        return _ok(await s["store"].get_stats())

    return mcp
