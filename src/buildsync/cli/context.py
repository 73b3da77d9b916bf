"""Shared plumbing for CLI commands: session lookup and output helpers."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import typer
from rich.console import Console

from buildsync.advisory import HttpAdvisoryClient
from buildsync.config import BuildSyncConfig
from buildsync.notifications import Notification
from buildsync.sync import ActorSession, SqliteDurableLayer, open_session

logger = logging.getLogger(__name__)

console = Console()


@dataclass
class CliState:
    """Global options captured by the root callback."""

    session: str = "default"
    db_path: Path | None = None
    verbose: bool = False
    config: BuildSyncConfig = field(default_factory=BuildSyncConfig)
    _layer: SqliteDurableLayer | None = field(default=None, repr=False)

    def layer(self) -> SqliteDurableLayer:
        if self._layer is None:
            self._layer = SqliteDurableLayer(self.db_path or self.config.get_store_path())
        return self._layer

    def session_kwargs(self) -> dict[str, Any]:
        return {"timeout": self.config.get_notification_timeout()}


def get_state(ctx: typer.Context) -> CliState:
    state = ctx.find_object(CliState)
    if state is None:
        state = CliState()
        ctx.obj = state
    return state


def require_session(ctx: typer.Context, json_output: bool) -> ActorSession:
    """Open the logged-in actor session or exit with code 1."""
    state = get_state(ctx)
    advisory = HttpAdvisoryClient(state.config.get_advisory_url(), state.config.get_api_key())
    ctx.call_on_close(advisory.close)

    actor_session = open_session(
        state.layer(), state.session, advisory=advisory, **state.session_kwargs()
    )
    if actor_session is None:
        _output_error(
            json_output,
            f"Session '{state.session}' is not logged in. Run 'buildsync login' first.",
        )
        raise typer.Exit(1)
    return actor_session


def notification_dicts(actor_session: ActorSession) -> list[dict[str, object]]:
    return [n.to_dict() for n in actor_session.dispatcher.active()]


def latest_message(actor_session: ActorSession, fallback: str) -> str:
    active = actor_session.dispatcher.active()
    return active[-1].message if active else fallback


def print_notification(note: Notification) -> None:
    style = {"success": "green", "offer": "magenta"}.get(str(note.severity), "cyan")
    suffix = f" [dim](broadcast {note.deep_link_id})[/dim]" if note.deep_link_id else ""
    console.print(f"[{style}]•[/{style}] {note.message}{suffix}")


def _output_result(json_mode: bool, data: dict, success_message: str | None = None):
    """Output result in JSON or human-readable format."""
    if json_mode:
        print(json.dumps(data))
    elif success_message:
        console.print(success_message)


def _output_error(json_mode: bool, error_message: str):
    """Output error in JSON or human-readable format."""
    if json_mode:
        print(json.dumps({"error": error_message}))
    else:
        console.print(f"[red]Error:[/red] {error_message}")


def finish(
    actor_session: ActorSession,
    result: Any,
    json_output: bool,
    data: dict[str, Any],
    success_message: str,
    failure_message: str,
) -> None:
    """Render a command result; a ``None`` result exits with code 1."""
    if result is None:
        _output_error(json_output, latest_message(actor_session, failure_message))
        raise typer.Exit(1)

    data = {**data, "notifications": notification_dicts(actor_session)}
    _output_result(json_output, data, success_message)
    if not json_output:
        for note in actor_session.dispatcher.active():
            print_notification(note)
