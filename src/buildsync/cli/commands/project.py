"""Project CLI commands.

Commands:
    project list             -- List projects
    project show             -- Show one project with both threads
    project start            -- Start a project from a first message
    project message          -- Post to a project thread
    project resolve          -- Mark an in-progress project done
    project reconnect        -- Reopen a completed project with the same expert
    project find-new-expert  -- Reopen a completed project for a new expert
    project invoice          -- Attach an invoice
    project end-session      -- Close an expert session and file its summary
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.panel import Panel
from rich.table import Table
from typing_extensions import Annotated

from buildsync.cli.context import (
    _output_error,
    _output_result,
    console,
    finish,
    require_session,
)
from buildsync.marketplace.models import Project, Thread
from buildsync.marketplace.store import CollectionName

app = typer.Typer(help="Manage projects and their message threads")


def _project_data(project: Project | None) -> dict:
    return {"project": project.to_dict() if project else None}


@app.command("list")
def list_projects(
    ctx: typer.Context,
    status: Annotated[
        Optional[str], typer.Option("--status", help="planning, in-progress or completed")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """List projects."""
    actor_session = require_session(ctx, json_output)
    projects = [p for p in actor_session.store.projects if status is None or p.status == status]

    if json_output:
        _output_result(True, {"projects": [p.to_dict() for p in projects]})
        return

    if not projects:
        console.print("[dim]No projects[/dim]")
        return

    table = Table(title="Projects")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Expert")
    table.add_column("Updated")
    for p in projects:
        table.add_row(p.id, p.title, str(p.status), p.assigned_pro_name or "-", p.last_updated)
    console.print(table)


@app.command("show")
def show(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Show a project with its threads and milestones."""
    actor_session = require_session(ctx, json_output)
    project = actor_session.store.find(CollectionName.PROJECTS, project_id)
    if project is None:
        _output_error(json_output, f"Project {project_id} not found")
        raise typer.Exit(1)

    if json_output:
        _output_result(True, _project_data(project))
        return

    header = f"[bold]{project.title}[/bold]  ({project.status})"
    if project.assigned_pro_name:
        header += f"\nExpert: {project.assigned_pro_name}"
    if project.invoice:
        header += f"\nInvoice: {project.invoice.amount:.2f} ({project.invoice.status})"
    console.print(Panel(f"{header}\n\n{project.summary}", title=project.id))

    for label, thread in (("AI thread", Thread.ADVISORY), ("Expert thread", Thread.EXPERT)):
        messages = project.thread(thread)
        if not messages:
            continue
        console.print(f"\n[bold]{label}[/bold]")
        for m in messages:
            console.print(f"  [dim]{m.role}:[/dim] {m.text}")

    if project.summaries:
        console.print("\n[bold]Milestones[/bold]")
        for s in project.summaries:
            console.print(f"  {s.title}: {s.content}")


@app.command("start")
def start(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(help="First message describing the build")],
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Start a planning project from a first message."""
    actor_session = require_session(ctx, json_output)
    project = actor_session.projects.send_message(text)
    finish(
        actor_session,
        project,
        json_output,
        _project_data(project),
        f"[green]OK[/green] project {project.id if project else ''} started",
        "Project could not be started.",
    )


@app.command("message")
def message(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    text: Annotated[str, typer.Argument(help="Message text")],
    thread: Annotated[str, typer.Option("--thread", help="ai or expert")] = "ai",
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Post a message to one of a project's threads."""
    actor_session = require_session(ctx, json_output)
    try:
        thread_value = Thread(thread)
    except ValueError:
        _output_error(json_output, f"Invalid thread '{thread}'. Use 'ai' or 'expert'.")
        raise typer.Exit(1)
    project = actor_session.projects.send_message(text, project_id=project_id, thread=thread_value)
    finish(
        actor_session,
        project,
        json_output,
        _project_data(project),
        "[green]OK[/green] message sent",
        f"Project {project_id} not found",
    )


@app.command("resolve")
def resolve(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Mark an in-progress project as done."""
    actor_session = require_session(ctx, json_output)
    outcome = actor_session.projects.resolve_project(project_id)
    message_text = "[green]OK[/green] project completed"
    if outcome is not None and outcome.prompt_review:
        message_text += f". Please review {outcome.project.assigned_pro_name}."
    finish(
        actor_session,
        outcome,
        json_output,
        {
            "project": outcome.project.to_dict() if outcome else None,
            "prompt_review": outcome.prompt_review if outcome else False,
        },
        message_text,
        "Project could not be resolved.",
    )


@app.command("reconnect")
def reconnect(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Reopen a completed project with its assigned expert."""
    actor_session = require_session(ctx, json_output)
    project = actor_session.projects.reconnect_expert(project_id)
    finish(
        actor_session,
        project,
        json_output,
        _project_data(project),
        "[green]OK[/green] project reopened",
        f"Project {project_id} cannot be reconnected.",
    )


@app.command("find-new-expert")
def find_new_expert(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Reopen a completed project so a new expert can take over."""
    actor_session = require_session(ctx, json_output)
    project = actor_session.projects.find_new_expert(project_id)
    finish(
        actor_session,
        project,
        json_output,
        _project_data(project),
        "[green]OK[/green] project back in planning",
        f"Project {project_id} cannot be reopened.",
    )


@app.command("invoice")
def invoice(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    amount: Annotated[float, typer.Option("--amount", help="Invoice amount")],
    invoice_type: Annotated[str, typer.Option("--type", help="hourly or fixed")] = "fixed",
    rate_label: Annotated[str, typer.Option("--rate-label", help="Rate description")] = "",
    description: Annotated[str, typer.Option("--description", help="Work description")] = "",
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Attach an invoice to a project."""
    actor_session = require_session(ctx, json_output)
    project = actor_session.projects.attach_invoice(
        project_id, amount, invoice_type, rate_label, description
    )
    finish(
        actor_session,
        project,
        json_output,
        _project_data(project),
        "[green]OK[/green] invoice attached",
        f"Project {project_id} not found",
    )


@app.command("end-session")
def end_session(
    ctx: typer.Context,
    project_id: Annotated[str, typer.Argument(help="Project ID")],
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """End the expert conversation and file an AI summary as a milestone."""
    actor_session = require_session(ctx, json_output)
    project = actor_session.projects.end_expert_session(project_id)
    finish(
        actor_session,
        project,
        json_output,
        _project_data(project),
        "[green]OK[/green] session ended",
        f"Project {project_id} not found",
    )
