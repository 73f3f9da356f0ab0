"""Tests for the Comment Thread."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from ideaboard.context import RequestContext
from ideaboard.errors import NotFoundError
from ideaboard.events.types import EventType
from ideaboard.models.comment import Comment


@pytest.fixture
async def idea(board, ctx, visitor):
    async with board.session(ctx(visitor)) as s:
        return await s.ideas.add("Discuss this", "", visitor.id)


async def test_add_and_list_comments(board, ctx, idea, admin, visitor):
    async with board.session(ctx(visitor)) as s:
        first_id = await s.comments.add(idea.number, "First!", visitor.id)
        second_id = await s.comments.add(idea.number, "Agreed", admin.id)
        third_id = await s.comments.add(idea.number, "Any news?", visitor.id)

    async with board.session(ctx()) as s:
        comments = await s.comments.list(idea.number)

    assert [c.id for c in comments] == [first_id, second_id, third_id]
    assert [c.content for c in comments] == ["First!", "Agreed", "Any news?"]
    assert all(isinstance(c, Comment) for c in comments)
    assert comments[1].user.name == "Jon Snow"
    assert comments[0].created_on <= comments[1].created_on <= comments[2].created_on


async def test_list_comments_empty(board, ctx, idea):
    async with board.session(ctx()) as s:
        assert await s.comments.list(idea.number) == []


async def test_list_comments_is_tenant_scoped(board, ctx, idea, visitor, other_tenant):
    async with board.session(ctx(visitor)) as s:
        await s.comments.add(idea.number, "Hidden elsewhere", visitor.id)

    async with board.session(RequestContext(tenant=other_tenant)) as s:
        assert await s.comments.list(idea.number) == []


async def test_add_comment_unknown_idea(board, ctx, visitor):
    async with board.session(ctx(visitor)) as s:
        with pytest.raises(NotFoundError):
            await s.comments.add(77, "Hello?", visitor.id)


async def test_add_empty_comment_fails(board, ctx, idea, visitor):
    async with board.session(ctx(visitor)) as s:
        with pytest.raises(ValueError, match="content"):
            await s.comments.add(idea.number, "  ", visitor.id)


async def test_comment_event(board, bus, ctx, idea, visitor):
    events = []

    async def handler(event_type, data):
        events.append(data)

    bus.on(EventType.COMMENT_ADDED, handler)

    async with board.session(ctx(visitor)) as s:
        comment_id = await s.comments.add(idea.number, "Ping", visitor.id)

    assert len(events) == 1
    assert events[0]["comment_id"] == comment_id
    assert events[0]["number"] == idea.number


async def test_comment_to_response(visitor):
    comment = Comment(
        id=1, content="Hi", created_on=datetime(2026, 1, 1, tzinfo=UTC), user=visitor
    )
    assert comment.to_response() == {
        "id": 1,
        "content": "Hi",
        "created_on": "2026-01-01T00:00:00+00:00",
        "user": {"id": visitor.id, "name": "Arya Stark", "role": "visitor"},
    }
