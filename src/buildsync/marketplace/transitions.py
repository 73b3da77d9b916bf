"""Transition matrices, guard conditions and pure transition helpers.

Broadcast lifecycle:
    open -> offer_received -> (approved: active, removed from the active set)

Project lifecycle:
    planning -> in-progress -> completed -> in-progress (reconnect)
                                         -> planning (find new expert)

The helpers in this module never touch the entity store. They either return
an updated copy of the entity or raise :class:`InvalidTransition`.
"""

from __future__ import annotations

from dataclasses import replace

from .models import (
    Broadcast,
    BroadcastStatus,
    ChatMessage,
    Offer,
    Project,
    ProjectStatus,
)

BROADCAST_TRANSITIONS: frozenset[tuple[str, str]] = frozenset(
    {
        ("open", "offer_received"),
        ("offer_received", "offer_received"),
        ("open", "active"),
        ("offer_received", "active"),
    }
)

TERMINAL_BROADCAST_STATES: frozenset[str] = frozenset({"active", "resolved"})

PROJECT_TRANSITIONS: frozenset[tuple[str, str]] = frozenset(
    {
        ("planning", "in-progress"),
        ("in-progress", "in-progress"),
        ("in-progress", "completed"),
        ("completed", "in-progress"),
        ("completed", "planning"),
    }
)

# (from, to) -> guard name
_GUARDED_PROJECT_TRANSITIONS: dict[tuple[str, str], str] = {
    ("planning", "in-progress"): "assignment_required",
    ("in-progress", "in-progress"): "assignment_required",
    ("completed", "in-progress"): "assignment_required",
}


class InvalidTransition(Exception):
    """Raised when a lifecycle transition is not allowed."""


def is_terminal(status: str) -> bool:
    return status in TERMINAL_BROADCAST_STATES


def _guard_assignment_required(assigned_pro_id: str | None) -> tuple[bool, str | None]:
    """Guard: entering in-progress requires a resolved assignment."""
    if not assigned_pro_id or not assigned_pro_id.strip():
        return False, "Transition to in-progress requires an assigned expert"
    return True, None


def validate_broadcast_transition(from_status: str, to_status: str) -> tuple[bool, str | None]:
    """Validate a broadcast transition. Returns (ok, error_message)."""
    try:
        BroadcastStatus(from_status)
        BroadcastStatus(to_status)
    except ValueError:
        return False, f"Unknown broadcast status: {from_status} -> {to_status}"
    if (from_status, to_status) not in BROADCAST_TRANSITIONS:
        return False, f"Illegal broadcast transition: {from_status} -> {to_status}"
    return True, None


def validate_project_transition(
    from_status: str,
    to_status: str,
    *,
    assigned_pro_id: str | None = None,
) -> tuple[bool, str | None]:
    """Validate a project transition. Returns (ok, error_message).

    Checks the transition matrix, then runs the guard condition for the
    pair, if any.
    """
    try:
        ProjectStatus(from_status)
        ProjectStatus(to_status)
    except ValueError:
        return False, f"Unknown project status: {from_status} -> {to_status}"

    pair = (from_status, to_status)
    if pair not in PROJECT_TRANSITIONS:
        return False, f"Illegal project transition: {from_status} -> {to_status}"

    guard_name = _GUARDED_PROJECT_TRANSITIONS.get(pair)
    if guard_name == "assignment_required":
        return _guard_assignment_required(assigned_pro_id)
    return True, None


def _check(ok_msg: tuple[bool, str | None]) -> None:
    ok, msg = ok_msg
    if not ok:
        raise InvalidTransition(msg)


def add_offer(broadcast: Broadcast, offer: Offer) -> Broadcast:
    """Append ``offer`` and move the broadcast to ``offer_received``.

    A responder that already has an offer on the broadcast gets the
    broadcast back unchanged (no duplicate, no overwrite).
    """
    if broadcast.offer_from(offer.expert_id) is not None:
        return broadcast
    _check(validate_broadcast_transition(str(broadcast.status), "offer_received"))
    return replace(
        broadcast,
        status=BroadcastStatus.OFFER_RECEIVED,
        offers=broadcast.offers + (offer,),
        version=broadcast.version + 1,
    )


def close_broadcast(broadcast: Broadcast, expert_id: str, expert_name: str) -> Broadcast:
    """Mark a broadcast approved (``active``) with its assigned expert."""
    _check(validate_broadcast_transition(str(broadcast.status), "active"))
    return replace(
        broadcast,
        status=BroadcastStatus.ACTIVE,
        assigned_expert_id=expert_id,
        assigned_expert_name=expert_name,
        version=broadcast.version + 1,
    )


def assign_expert(
    project: Project,
    expert_id: str,
    expert_name: str,
    message: ChatMessage,
) -> Project:
    """Attach an expert to an existing project and move it to in-progress."""
    _check(
        validate_project_transition(
            str(project.status), "in-progress", assigned_pro_id=expert_id
        )
    )
    return replace(
        project,
        status=ProjectStatus.IN_PROGRESS,
        assigned_pro_id=expert_id,
        assigned_pro_name=expert_name,
        expert_messages=project.expert_messages + (message,),
        last_updated="Just now",
    )


def complete_project(project: Project) -> Project:
    _check(
        validate_project_transition(
            str(project.status), "completed", assigned_pro_id=project.assigned_pro_id
        )
    )
    return replace(project, status=ProjectStatus.COMPLETED, last_updated="Just now")


def reopen_with_expert(project: Project, message: ChatMessage) -> Project:
    """completed -> in-progress, keeping the same assignment."""
    if project.status != ProjectStatus.COMPLETED:
        raise InvalidTransition(
            f"Only completed projects can reconnect, project is {project.status}"
        )
    _check(
        validate_project_transition(
            str(project.status), "in-progress", assigned_pro_id=project.assigned_pro_id
        )
    )
    return replace(
        project,
        status=ProjectStatus.IN_PROGRESS,
        expert_messages=project.expert_messages + (message,),
        last_updated="Just now",
    )


def reopen_for_new_expert(project: Project, message: ChatMessage) -> Project:
    """completed -> planning, clearing the assignment."""
    _check(validate_project_transition(str(project.status), "planning"))
    return replace(
        project,
        status=ProjectStatus.PLANNING,
        assigned_pro_id=None,
        assigned_pro_name=None,
        expert_messages=project.expert_messages + (message,),
        last_updated="Just now",
    )
