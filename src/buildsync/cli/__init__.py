"""buildsync command line interface."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from typing_extensions import Annotated

from buildsync.config import BuildSyncConfig

from .commands import broadcast, login, logout, offer, project, wall, watch
from .context import CliState

app = typer.Typer(
    name="buildsync",
    help="Broadcast build problems, trade offers with experts and collaborate on projects.",
    add_completion=False,
    no_args_is_help=True,
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback()
def callback(
    ctx: typer.Context,
    session: Annotated[
        str,
        typer.Option("--session", envvar="BUILDSYNC_SESSION", help="Actor session name"),
    ] = "default",
    db: Annotated[
        Optional[Path],
        typer.Option("--db", envvar="BUILDSYNC_DB", help="Shared sqlite store (overrides config)"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Capture global options for every command."""
    _configure_logging(verbose)
    ctx.obj = CliState(session=session, db_path=db, verbose=verbose, config=BuildSyncConfig())


app.command("login")(login)
app.command("logout")(logout)
app.command("watch")(watch)
app.add_typer(broadcast.app, name="broadcast")
app.add_typer(offer.app, name="offer")
app.add_typer(project.app, name="project")
app.add_typer(wall.app, name="wall")

__all__ = ["app"]
