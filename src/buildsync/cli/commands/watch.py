"""Live notification feed for one session."""

from __future__ import annotations

import json
import logging
import time
from typing import Optional

import typer
from typing_extensions import Annotated

from buildsync.cli.context import console, get_state, print_notification, require_session
from buildsync.notifications import Notification

logger = logging.getLogger(__name__)


def watch(
    ctx: typer.Context,
    interval: Annotated[
        Optional[float], typer.Option("--interval", help="Seconds between polls")
    ] = None,
    max_polls: Annotated[
        Optional[int], typer.Option("--max-polls", help="Stop after this many polls")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="One JSON object per notification")] = False,
) -> None:
    """Follow changes made by other sessions and print notifications."""
    state = get_state(ctx)
    actor_session = require_session(ctx, json_output)
    delay = interval if interval and interval > 0 else state.config.get_poll_interval()

    def emit(note: Notification) -> None:
        if json_output:
            print(json.dumps(note.to_dict()), flush=True)
        else:
            print_notification(note)

    actor_session.dispatcher.add_listener(emit)

    if not json_output:
        console.print(
            f"Watching session '{actor_session.session}' as {actor_session.actor.name} "
            f"({actor_session.actor.role}). Press Ctrl+C to stop."
        )

    polls = 0
    try:
        while True:
            delivered = actor_session.poll()
            polls += 1
            if delivered:
                logger.debug("Delivered %d external changes", delivered)
            actor_session.dispatcher.expire()
            if max_polls is not None and polls >= max_polls:
                break
            time.sleep(delay)
    except KeyboardInterrupt:
        if not json_output:
            console.print("\n[dim]Stopped[/dim]")
