"""Interactive demo of the idea board: submit, support, discuss, respond, merge.

Walks through one tenant's board, ending with idea #5 being merged into #3
and its supporters carried over.
"""

import asyncio
import json
import tempfile
from pathlib import Path

from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table

from ideaboard.context import RequestContext
from ideaboard.core.board import IdeaBoard
from ideaboard.events.bus import EventBus
from ideaboard.models.account import Role
from ideaboard.models.idea import IdeaStatus
from ideaboard.storage.sqlite_store import SQLiteStore

console = Console()


def step_header(num: int, title: str) -> None:
    """Display a colorful step header."""
    console.print()
    console.print(
        Panel(
            f"[bold cyan]Step {num}:[/bold cyan] [yellow]{title}[/yellow]",
            border_style="cyan",
        )
    )


def display_json(data: dict | list, title: str | None = None) -> None:
    json_str = json.dumps(data, indent=2, default=str)
    console.print(Panel(JSON(json_str), title=title, border_style="green"))


def display_ideas(ideas) -> None:
    table = Table(title="Trending")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Supporters", justify="right")
    table.add_column("Ranking", justify="right")
    for idea in ideas:
        table.add_row(
            str(idea.number),
            idea.title,
            idea.status.name.lower(),
            str(idea.total_supporters),
            f"{idea.ranking:.4f}",
        )
    console.print(table)


async def demo() -> None:
    """Run the interactive demo."""
    with tempfile.TemporaryDirectory() as tmp:
        store = SQLiteStore(Path(tmp) / "demo.db")
        await store.initialize()
        bus = EventBus()

        async def log_event(event_type, data):
            console.print(f"  [dim]event[/dim] {event_type} {data}")

        bus.on_all(log_event)
        board = IdeaBoard(store, bus)

        step_header(1, "Create a tenant and its users")
        tenant = await store.add_tenant("Demonstration", "demo")
        admin = await store.add_user(tenant.id, "Jon Snow", role=Role.ADMINISTRATOR)
        u1 = await store.add_user(tenant.id, "Arya Stark")
        u2 = await store.add_user(tenant.id, "Sansa Stark")
        as_admin = RequestContext(tenant=tenant, user=admin)

        step_header(2, "Submit five ideas")
        async with board.session(as_admin) as s:
            for title in (
                "Dark mode",
                "Export to CSV",
                "Single sign-on",
                "Mobile app",
                "SSO with Google",
            ):
                await s.ideas.add(title, "", u1.id)

        step_header(3, "Support and discuss")
        async with board.session(as_admin) as s:
            await s.supporters.add(5, u1.id)
            await s.supporters.add(5, u2.id)
            await s.supporters.add(3, u2.id)
            await s.comments.add(1, "Please, my eyes!", u1.id)
            display_ideas(await s.ideas.get_all(order="trending"))

        step_header(4, "Respond to an idea")
        async with board.session(as_admin) as s:
            idea = await s.lifecycle.set_response(1, "On our roadmap", admin.id, IdeaStatus.PLANNED)
            display_json(idea.to_response(detail="full"), title="Idea #1")

        step_header(5, "Merge #5 into #3")
        async with board.session(as_admin) as s:
            duplicate = await s.lifecycle.mark_as_duplicate(5, 3, admin.id)
            display_json(duplicate.to_response(detail="full"), title="Idea #5")
            display_ideas(await s.ideas.get_all(order="trending"))

        await store.close()


if __name__ == "__main__":
    asyncio.run(demo())
