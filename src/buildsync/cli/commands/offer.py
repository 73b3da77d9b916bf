"""Offer CLI commands: submit (experts) and approve (clients)."""

from __future__ import annotations

from typing import Optional

import typer
from rich.table import Table
from typing_extensions import Annotated

from buildsync.cli.context import _output_result, console, finish, require_session

app = typer.Typer(help="Offer help on broadcasts and approve offers")


@app.command("submit")
def submit(
    ctx: typer.Context,
    broadcast_id: Annotated[str, typer.Argument(help="Broadcast ID")],
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Offer your help on a broadcast (experts only)."""
    actor_session = require_session(ctx, json_output)
    broadcast = actor_session.negotiation.submit_offer(broadcast_id)
    finish(
        actor_session,
        broadcast,
        json_output,
        {"broadcast": broadcast.to_dict() if broadcast else None},
        f"[green]OK[/green] offer on {broadcast_id}",
        "Offer could not be submitted.",
    )


@app.command("list")
def list_offers(
    ctx: typer.Context,
    broadcast_id: Annotated[str, typer.Argument(help="Broadcast ID")],
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Show the experts who offered on a broadcast."""
    actor_session = require_session(ctx, json_output)
    profiles = actor_session.negotiation.offer_profiles(broadcast_id)

    if json_output:
        _output_result(True, {"broadcast_id": broadcast_id, "offers": [p.to_dict() for p in profiles]})
        return

    if not profiles:
        console.print("[dim]No offers yet[/dim]")
        return

    table = Table(title=f"Offers on {broadcast_id}")
    table.add_column("Expert ID", style="cyan")
    table.add_column("Name")
    table.add_column("Specialty")
    table.add_column("Rating", justify="right")
    table.add_column("Rate")
    for p in profiles:
        table.add_row(p.id, p.name, p.specialty, f"{p.rating:.1f}", p.hourly_rate)
    console.print(table)


@app.command("approve")
def approve(
    ctx: typer.Context,
    broadcast_id: Annotated[str, typer.Argument(help="Broadcast ID")],
    expert_id: Annotated[str, typer.Argument(help="Expert ID to approve")],
    project: Annotated[
        Optional[str], typer.Option("--project", help="Existing project to assign the expert to")
    ] = None,
    expected_version: Annotated[
        Optional[int],
        typer.Option("--expected-version", help="Fail if the broadcast changed since this version"),
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Approve an expert's offer and start the collaboration."""
    actor_session = require_session(ctx, json_output)
    result = actor_session.negotiation.approve_offer(
        broadcast_id, expert_id, project_id=project, expected_version=expected_version
    )
    finish(
        actor_session,
        result,
        json_output,
        {"project": result.to_dict() if result else None},
        f"[green]OK[/green] project {result.id if result else ''} is in progress",
        "Offer could not be approved.",
    )
