"""CLI — init, serve, status, tenant, user, tag, idea."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ideaboard.config import Config
from ideaboard.context import RequestContext
from ideaboard.core.board import IdeaBoard
from ideaboard.errors import IdeaBoardError
from ideaboard.models.account import Role
from ideaboard.storage.sqlite_store import SQLiteStore


def _open_store(config: Config) -> SQLiteStore:
    return SQLiteStore(config.db_path, wal_mode=config.wal_mode, busy_timeout=config.busy_timeout)


def _run(coro):
    try:
        return asyncio.run(coro)
    except IdeaBoardError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.version_option(package_name="ideaboard")
@click.option(
    "--workspace",
    type=click.Path(file_okay=False),
    default=None,
    help="Workspace directory (default: ~/.ideaboard or $IDEABOARD_WORKSPACE)",
)
@click.pass_context
def main(ctx: click.Context, workspace: str | None) -> None:
    """Ideaboard — multi-tenant idea and feedback board."""
    config = Config.load(Path(workspace).expanduser().resolve() if workspace else None)
    config.configure_logging()
    ctx.obj = config


@main.command()
@click.pass_obj
def init(config: Config) -> None:
    """Initialize the workspace database."""

    async def _init() -> None:
        store = _open_store(config)
        await store.initialize()
        await store.close()
        config.save()

    _run(_init())
    click.echo(f"Initialized workspace at {config.workspace_path}")
    click.echo(f"Database: {config.db_path}")


@main.command()
@click.option("--transport", type=click.Choice(["stdio"]), default="stdio")
@click.pass_obj
def serve(config: Config, transport: str) -> None:
    """Start the MCP server."""
    if not config.db_path.exists():
        click.echo(f"Error: No database at {config.db_path}. Run 'ideaboard init' first.", err=True)
        sys.exit(1)

    from ideaboard.server import create_server

    server = create_server(str(config.db_path), config)
    server.run(transport=transport)  # type: ignore[arg-type]


@main.command()
@click.pass_obj
def status(config: Config) -> None:
    """Show database statistics."""
    if not config.db_path.exists():
        click.echo(f"Error: No database at {config.db_path}", err=True)
        sys.exit(1)

    async def _status() -> dict:
        store = _open_store(config)
        try:
            await store.initialize()
            return await store.get_stats()
        finally:
            await store.close()

    click.echo(json.dumps(_run(_status()), indent=2))


# --- Tenants, users, tags ---


@main.group()
def tenant() -> None:
    """Manage tenants."""


@tenant.command("add")
@click.argument("name")
@click.argument("subdomain")
@click.pass_obj
def tenant_add(config: Config, name: str, subdomain: str) -> None:
    """Create a tenant."""

    async def _add():
        store = _open_store(config)
        try:
            await store.initialize()
            return await store.add_tenant(name, subdomain)
        finally:
            await store.close()

    created = _run(_add())
    click.echo(f"Created tenant {created.id}: {created.name} ({created.subdomain})")


@main.group()
def user() -> None:
    """Manage users."""


@user.command("add")
@click.argument("tenant_id", type=int)
@click.argument("name")
@click.option("--email", default=None)
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.VISITOR.value,
    show_default=True,
)
@click.pass_obj
def user_add(config: Config, tenant_id: int, name: str, email: str | None, role: str) -> None:
    """Register a user under a tenant."""

    async def _add():
        store = _open_store(config)
        try:
            await store.initialize()
            return await store.add_user(tenant_id, name, email, role=Role(role))
        finally:
            await store.close()

    created = _run(_add())
    click.echo(f"Created user {created.id}: {created.name} [{created.role}]")


@main.group()
def tag() -> None:
    """Manage tags."""


@tag.command("add")
@click.argument("tenant_id", type=int)
@click.argument("name")
@click.option("--private", is_flag=True, help="Only visible to collaborators")
@click.pass_obj
def tag_add(config: Config, tenant_id: int, name: str, private: bool) -> None:
    """Create a tag."""

    async def _add():
        store = _open_store(config)
        try:
            await store.initialize()
            return await store.add_tag(tenant_id, name, is_public=not private)
        finally:
            await store.close()

    created = _run(_add())
    click.echo(f"Created tag {created.id}: {created.name} ({'public' if created.is_public else 'private'})")


# --- Ideas ---


async def _with_board(config: Config, tenant_id: int, user_id: int | None, fn):
    store = _open_store(config)
    try:
        await store.initialize()
        found = await store.get_tenant(tenant_id)
        if found is None:
            raise click.ClickException(f"Tenant not found: {tenant_id}")
        acting = None
        if user_id is not None:
            acting = await store.get_user(tenant_id, user_id)
            if acting is None:
                raise click.ClickException(f"User not found: {user_id}")
        board = IdeaBoard(
            store,
            recent_window_days=config.recent_window_days,
            retries=config.transaction_retries,
        )
        return await board.run(RequestContext(tenant=found, user=acting), fn)
    finally:
        await store.close()


@main.group()
def idea() -> None:
    """Work with ideas."""


@idea.command("add")
@click.argument("tenant_id", type=int)
@click.argument("user_id", type=int)
@click.argument("title")
@click.option("--description", default="")
@click.pass_obj
def idea_add(config: Config, tenant_id: int, user_id: int, title: str, description: str) -> None:
    """Submit a new idea."""

    async def _add(session):
        return await session.ideas.add(title, description, user_id)

    created = _run(_with_board(config, tenant_id, user_id, _add))
    click.echo(f"Created idea #{created.number}: {created.title} ({created.slug})")


@idea.command("list")
@click.argument("tenant_id", type=int)
@click.option("--user", "user_id", type=int, default=None, help="View as this user")
@click.option(
    "--order",
    type=click.Choice(["trending", "recent", "most-wanted"]),
    default="trending",
    show_default=True,
)
@click.pass_obj
def idea_list(config: Config, tenant_id: int, user_id: int | None, order: str) -> None:
    """List ideas of a tenant."""

    async def _list(session):
        return await session.ideas.get_all(order=order)

    ideas = _run(_with_board(config, tenant_id, user_id, _list))

    table = Table(title=f"Ideas ({order})")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Supporters", justify="right")
    table.add_column("Comments", justify="right")
    table.add_column("Ranking", justify="right")
    for item in ideas[: config.list_limit]:
        table.add_row(
            str(item.number),
            item.title,
            item.status.name.lower(),
            str(item.total_supporters),
            str(item.total_comments),
            f"{item.ranking:.4f}",
        )
    Console().print(table)


@idea.command("show")
@click.argument("tenant_id", type=int)
@click.argument("number", type=int)
@click.option("--user", "user_id", type=int, default=None, help="View as this user")
@click.pass_obj
def idea_show(config: Config, tenant_id: int, number: int, user_id: int | None) -> None:
    """Show one idea with its comments."""

    async def _show(session):
        found = await session.ideas.get_by_number(number)
        comments = await session.comments.list(number)
        return found, comments

    found, comments = _run(_with_board(config, tenant_id, user_id, _show))
    data = found.to_response(detail="full")
    data["comments"] = [c.to_response() for c in comments]
    click.echo(json.dumps(data, indent=2, default=str))
