"""Tests for the FastMCP server."""

from __future__ import annotations

import json

import pytest
from fastmcp import Client

from ideaboard.models.account import Role
from ideaboard.server import create_server
from ideaboard.storage.sqlite_store import SQLiteStore


def _data(result) -> dict:
    """Extract parsed JSON from CallToolResult."""
    return json.loads(result.content[0].text)


@pytest.fixture
async def seeded(tmp_path):
    db_path = tmp_path / "server.db"
    store = SQLiteStore(db_path)
    await store.initialize()
    tenant = await store.add_tenant("Demonstration", "demo")
    admin = await store.add_user(tenant.id, "Jon Snow", role=Role.ADMINISTRATOR)
    visitor = await store.add_user(tenant.id, "Arya Stark")
    private = await store.add_tag(tenant.id, "Internal", is_public=False)
    await store.close()
    return {
        "db_path": db_path,
        "tenant": tenant.id,
        "admin": admin.id,
        "visitor": visitor.id,
        "private_tag": private.id,
    }


@pytest.fixture
async def client(seeded):
    server = create_server(str(seeded["db_path"]))
    async with Client(server) as c:
        yield c


async def _add_idea(client, seeded, title: str) -> dict:
    result = await client.call_tool(
        "ib_idea",
        {"action": "add", "tenant_id": seeded["tenant"], "user_id": seeded["visitor"], "title": title},
    )
    return _data(result)


async def test_list_tools(client: Client):
    tools = await client.list_tools()
    assert {t.name for t in tools} == {"ib_idea", "ib_support", "ib_comment"}


async def test_tool_descriptions_short(client: Client):
    tools = await client.list_tools()
    for tool in tools:
        assert len(tool.description) <= 100, f"{tool.name} description too long"


async def test_add_and_get_idea(client, seeded):
    data = await _add_idea(client, seeded, "Dark mode")
    assert data["_v"] == "1.0"
    assert data["number"] == 1
    assert data["slug"] == "dark-mode"
    assert data["status"] == "new"

    result = await client.call_tool(
        "ib_idea", {"action": "get", "tenant_id": seeded["tenant"], "slug": "dark-mode"}
    )
    assert _data(result)["title"] == "Dark mode"


async def test_add_requires_user(client, seeded):
    result = await client.call_tool(
        "ib_idea", {"action": "add", "tenant_id": seeded["tenant"], "title": "Anonymous"}
    )
    assert "user_id is required" in _data(result)["error"]


async def test_unknown_tenant(client):
    result = await client.call_tool("ib_idea", {"action": "list", "tenant_id": 999})
    assert "tenant not found" in _data(result)["error"]


async def test_get_missing_idea(client, seeded):
    result = await client.call_tool(
        "ib_idea", {"action": "get", "tenant_id": seeded["tenant"], "number": 42}
    )
    assert _data(result)["error"] == "idea not found: 42"


async def test_respond_rejects_duplicate(client, seeded):
    await _add_idea(client, seeded, "Something")
    result = await client.call_tool(
        "ib_idea",
        {
            "action": "respond",
            "tenant_id": seeded["tenant"],
            "user_id": seeded["admin"],
            "number": 1,
            "status": "duplicate",
        },
    )
    assert "mark_as_duplicate" in _data(result)["error"]


async def test_respond_requires_collaborator(client, seeded):
    await _add_idea(client, seeded, "Something")
    result = await client.call_tool(
        "ib_idea",
        {
            "action": "respond",
            "tenant_id": seeded["tenant"],
            "user_id": seeded["visitor"],
            "number": 1,
            "status": "started",
        },
    )
    assert "collaborator" in _data(result)["error"]


async def test_support_and_duplicate_flow(client, seeded):
    await _add_idea(client, seeded, "Original")
    await _add_idea(client, seeded, "Copy")

    for user in ("visitor", "admin"):
        result = await client.call_tool(
            "ib_support",
            {"action": "add", "tenant_id": seeded["tenant"], "user_id": seeded[user], "number": 2},
        )
        assert _data(result)["changed"] is True

    result = await client.call_tool(
        "ib_idea",
        {
            "action": "duplicate",
            "tenant_id": seeded["tenant"],
            "user_id": seeded["admin"],
            "number": 2,
            "original_number": 1,
        },
    )
    data = _data(result)
    assert data["status"] == "duplicate"
    assert data["response"]["original"]["number"] == 1

    result = await client.call_tool("ib_idea", {"action": "list", "tenant_id": seeded["tenant"]})
    listing = _data(result)
    assert listing["count"] == 1
    assert listing["ideas"][0]["total_supporters"] == 2

    result = await client.call_tool(
        "ib_support",
        {"action": "mine", "tenant_id": seeded["tenant"], "user_id": seeded["visitor"]},
    )
    assert _data(result)["count"] == 2


async def test_private_tag_hidden_from_visitor(client, seeded):
    await _add_idea(client, seeded, "Tagged")
    await client.call_tool(
        "ib_idea",
        {
            "action": "tag",
            "tenant_id": seeded["tenant"],
            "user_id": seeded["admin"],
            "number": 1,
            "tag_id": seeded["private_tag"],
        },
    )

    as_admin = await client.call_tool(
        "ib_idea",
        {"action": "get", "tenant_id": seeded["tenant"], "user_id": seeded["admin"], "number": 1},
    )
    as_visitor = await client.call_tool(
        "ib_idea",
        {"action": "get", "tenant_id": seeded["tenant"], "user_id": seeded["visitor"], "number": 1},
    )
    assert _data(as_admin)["tags"] == [seeded["private_tag"]]
    assert _data(as_visitor)["tags"] == []


async def test_comments(client, seeded):
    await _add_idea(client, seeded, "Talk")
    result = await client.call_tool(
        "ib_comment",
        {
            "action": "add",
            "tenant_id": seeded["tenant"],
            "user_id": seeded["visitor"],
            "number": 1,
            "content": "Love it",
        },
    )
    assert "id" in _data(result)

    result = await client.call_tool(
        "ib_comment", {"action": "list", "tenant_id": seeded["tenant"], "number": 1}
    )
    data = _data(result)
    assert data["count"] == 1
    assert data["comments"][0]["content"] == "Love it"
