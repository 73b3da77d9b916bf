"""Broadcast CLI commands.

Commands:
    broadcast create   -- Publish a help request
    broadcast list     -- Show broadcasts visible to this session
    broadcast dismiss  -- Hide a broadcast for this session only
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table
from typing_extensions import Annotated

from buildsync.cli.context import (
    _output_result,
    console,
    finish,
    require_session,
)

app = typer.Typer(help="Broadcast help requests to the expert network")


@app.command("create")
def create(
    ctx: typer.Context,
    summary: Annotated[Optional[str], typer.Argument(help="Problem summary")] = None,
    category: Annotated[str, typer.Option("--category", help="Request category")] = "General",
    urgency: Annotated[str, typer.Option("--urgency", help="low, medium or high")] = "medium",
    project: Annotated[
        Optional[str], typer.Option("--project", help="Project the request is for")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Publish a new help request."""
    actor_session = require_session(ctx, json_output)
    broadcast = actor_session.negotiation.create_broadcast(
        summary, category=category, urgency=urgency, project_id=project
    )
    finish(
        actor_session,
        broadcast,
        json_output,
        {"broadcast": broadcast.to_dict() if broadcast else None},
        f"[green]OK[/green] broadcast {broadcast.id if broadcast else ''} created",
        "Broadcast could not be created.",
    )


@app.command("list")
def list_broadcasts(
    ctx: typer.Context,
    mine: Annotated[bool, typer.Option("--mine", help="Only broadcasts created by me")] = False,
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """List broadcasts, minus the ones dismissed in this session."""
    actor_session = require_session(ctx, json_output)
    negotiation = actor_session.negotiation
    broadcasts = negotiation.my_broadcasts() if mine else negotiation.visible_broadcasts()

    if json_output:
        _output_result(True, {"broadcasts": [b.to_dict() for b in broadcasts]})
        return

    if not broadcasts:
        console.print("[dim]No broadcasts[/dim]")
        return

    table = Table(title="Broadcasts")
    table.add_column("ID", style="cyan")
    table.add_column("Client")
    table.add_column("Summary")
    table.add_column("Urgency")
    table.add_column("Status")
    table.add_column("Offers", justify="right")
    table.add_column("Ver", justify="right")
    for b in broadcasts:
        table.add_row(
            b.id,
            b.client_name,
            b.problem_summary[:40],
            str(b.urgency),
            str(b.status),
            str(len(b.offers)),
            str(b.version),
        )
    console.print(table)


@app.command("dismiss")
def dismiss(
    ctx: typer.Context,
    broadcast_id: Annotated[str, typer.Argument(help="Broadcast ID")],
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Hide a broadcast for this session. Shared state is not changed."""
    actor_session = require_session(ctx, json_output)
    actor_session.dismiss_broadcast(broadcast_id)
    finish(
        actor_session,
        broadcast_id,
        json_output,
        {"dismissed": sorted(actor_session.negotiation.hidden_ids)},
        f"Broadcast {broadcast_id} hidden",
        "",
    )
