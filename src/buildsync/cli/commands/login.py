"""Session sign-in and sign-out."""

from __future__ import annotations

from typing import Optional

import typer
import ulid
from typing_extensions import Annotated

from buildsync.cli.context import (
    _output_error,
    _output_result,
    get_state,
    notification_dicts,
    print_notification,
    require_session,
)
from buildsync.marketplace.models import EXPERT_CATEGORIES, ExpertProfile, Role
from buildsync.marketplace.registry import ExpertNotFound, ExpertRegistry
from buildsync.sync import PersistenceAdapter, load_identity
from buildsync.sync import login as login_session


def _expert_profile(
    name: str,
    expert_id: str | None,
    specialty: str,
    category: str,
    hourly_rate: str,
) -> ExpertProfile:
    if expert_id:
        return ExpertRegistry(lambda: ()).get(expert_id)
    return ExpertProfile(
        id=f"expert-{ulid.ULID()}",
        name=name,
        specialty=specialty,
        category=category,
        avatar=f"https://picsum.photos/seed/{name.replace(' ', '')}/200/200",
        hourly_rate=hourly_rate,
        expert_plan="pro",
    )


def login(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Display name")],
    role: Annotated[str, typer.Option("--role", help="client or expert")] = "client",
    expert_id: Annotated[
        Optional[str],
        typer.Option("--expert-id", help="Sign in as an existing roster expert"),
    ] = None,
    specialty: Annotated[str, typer.Option("--specialty", help="Expert specialty")] = "General Contractor",
    category: Annotated[str, typer.Option("--category", help="Expert category")] = "General",
    hourly_rate: Annotated[str, typer.Option("--rate", help="Expert hourly rate label")] = "",
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Sign in to the current session as a client or an expert."""
    state = get_state(ctx)

    try:
        role_value = Role(role)
    except ValueError:
        _output_error(json_output, f"Invalid role '{role}'. Use 'client' or 'expert'.")
        raise typer.Exit(1)

    profile = None
    if role_value == Role.RESPONDER:
        if category not in EXPERT_CATEGORIES:
            _output_error(
                json_output,
                f"Invalid category '{category}'. Valid: {', '.join(sorted(EXPERT_CATEGORIES))}",
            )
            raise typer.Exit(1)
        stored = load_identity(PersistenceAdapter(state.layer(), session=state.session))
        try:
            if expert_id or stored is None or not stored.is_responder:
                profile = _expert_profile(name, expert_id, specialty, category, hourly_rate)
        except ExpertNotFound as exc:
            _output_error(json_output, str(exc))
            raise typer.Exit(1)

    actor_session = login_session(
        state.layer(),
        session=state.session,
        role=role_value,
        name=profile.name if profile else name,
        avatar=profile.avatar if profile else "",
        profile=profile,
        **state.session_kwargs(),
    )
    actor = actor_session.actor
    _output_result(
        json_output,
        {
            "session": state.session,
            "actor": actor.to_dict(),
            "credits": actor_session.credits,
            "notifications": notification_dicts(actor_session),
        },
        f"[green]Signed in[/green] as {actor.name} ({actor.role}) on session '{state.session}'",
    )
    if not json_output:
        for note in actor_session.dispatcher.active():
            print_notification(note)


def logout(
    ctx: typer.Context,
    json_output: Annotated[bool, typer.Option("--json", help="Machine-readable JSON output")] = False,
) -> None:
    """Sign out of the current session."""
    actor_session = require_session(ctx, json_output)
    actor_session.logout()
    _output_result(
        json_output,
        {"session": actor_session.session, "authenticated": False},
        f"Session '{actor_session.session}' terminated.",
    )
