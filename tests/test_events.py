"""Tests for post-commit event delivery."""

from __future__ import annotations

import pytest

from ideaboard.events.bus import EventBus
from ideaboard.events.types import EventType
from ideaboard.storage.sqlite_store import SQLiteStore


async def test_publish_waits_for_commit(store: SQLiteStore, bus: EventBus):
    received = []

    async def handler(event_type, data):
        received.append((event_type, data))

    bus.on(EventType.IDEA_CREATED, handler)

    async with store.transaction() as trx:
        bus.publish(trx, EventType.IDEA_CREATED, {"number": 1})
        assert received == []

    assert received == [(EventType.IDEA_CREATED, {"number": 1})]


async def test_rolled_back_transaction_delivers_nothing(store: SQLiteStore, bus: EventBus):
    received = []

    async def handler(event_type, data):
        received.append(event_type)

    bus.on_all(handler)

    with pytest.raises(RuntimeError):
        async with store.transaction() as trx:
            bus.publish(trx, EventType.IDEA_SUPPORTED, {"number": 1})
            raise RuntimeError("boom")

    assert received == []


async def test_listeners_filter_by_event_type(bus: EventBus):
    comments = []
    everything = []

    async def on_comment(event_type, data):
        comments.append(data["comment_id"])

    async def on_any(event_type, data):
        everything.append(event_type)

    bus.on(EventType.COMMENT_ADDED, on_comment)
    bus.on_all(on_any)

    await bus.deliver(EventType.COMMENT_ADDED, {"comment_id": 7})
    await bus.deliver(EventType.IDEA_UPDATED, {"number": 2})

    assert comments == [7]
    assert everything == [EventType.COMMENT_ADDED, EventType.IDEA_UPDATED]


async def test_failing_listener_does_not_stop_others(bus: EventBus):
    received = []

    async def broken(event_type, data):
        raise RuntimeError("listener failure")

    async def healthy(event_type, data):
        received.append(data["number"])

    bus.on(EventType.IDEA_RESPONDED, broken)
    bus.on(EventType.IDEA_RESPONDED, healthy)

    await bus.deliver(EventType.IDEA_RESPONDED, {"number": 3})
    assert received == [3]


async def test_payload_is_snapshotted_at_publish(store: SQLiteStore, bus: EventBus):
    received = []

    async def handler(event_type, data):
        received.append(data)

    bus.on(EventType.IDEA_UPDATED, handler)

    async with store.transaction() as trx:
        data = {"number": 1, "title": "Before"}
        bus.publish(trx, EventType.IDEA_UPDATED, data)
        data["title"] = "After"

    assert received == [{"number": 1, "title": "Before"}]
