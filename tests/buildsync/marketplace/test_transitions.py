"""Unit tests for the lifecycle matrices, guards and pure transition helpers."""

from __future__ import annotations

from dataclasses import replace

import pytest

from buildsync.marketplace.models import (
    BroadcastStatus,
    ChatMessage,
    Offer,
    Project,
    ProjectStatus,
)
from buildsync.marketplace.transitions import (
    BROADCAST_TRANSITIONS,
    PROJECT_TRANSITIONS,
    TERMINAL_BROADCAST_STATES,
    InvalidTransition,
    add_offer,
    assign_expert,
    close_broadcast,
    complete_project,
    is_terminal,
    reopen_for_new_expert,
    reopen_with_expert,
    validate_broadcast_transition,
    validate_project_transition,
)

NOTE = ChatMessage(id="sys-1", role="system_summary", text="note")


class TestConstants:
    def test_broadcast_transition_count(self) -> None:
        assert len(BROADCAST_TRANSITIONS) == 4

    def test_project_transition_count(self) -> None:
        assert len(PROJECT_TRANSITIONS) == 5

    def test_terminal_states(self) -> None:
        assert TERMINAL_BROADCAST_STATES == frozenset({"active", "resolved"})
        assert is_terminal("active") is True
        assert is_terminal("open") is False


class TestValidateBroadcastTransition:
    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            ("open", "offer_received"),
            ("offer_received", "offer_received"),
            ("open", "active"),
            ("offer_received", "active"),
        ],
    )
    def test_legal(self, from_status: str, to_status: str) -> None:
        assert validate_broadcast_transition(from_status, to_status) == (True, None)

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            ("active", "offer_received"),
            ("resolved", "offer_received"),
            ("active", "active"),
            ("offer_received", "open"),
        ],
    )
    def test_illegal(self, from_status: str, to_status: str) -> None:
        ok, msg = validate_broadcast_transition(from_status, to_status)
        assert ok is False
        assert "Illegal broadcast transition" in msg

    def test_unknown_status(self) -> None:
        ok, msg = validate_broadcast_transition("open", "chatting")
        assert ok is False
        assert "Unknown broadcast status" in msg


class TestValidateProjectTransition:
    def test_planning_to_in_progress_needs_assignment(self) -> None:
        ok, msg = validate_project_transition("planning", "in-progress")
        assert ok is False
        assert "requires an assigned expert" in msg

    def test_planning_to_in_progress_with_assignment(self) -> None:
        assert validate_project_transition(
            "planning", "in-progress", assigned_pro_id="expert-1"
        ) == (True, None)

    def test_whitespace_assignment_rejected(self) -> None:
        ok, _ = validate_project_transition("completed", "in-progress", assigned_pro_id="  ")
        assert ok is False

    def test_in_progress_to_completed_unguarded(self) -> None:
        assert validate_project_transition("in-progress", "completed") == (True, None)

    def test_completed_to_planning(self) -> None:
        assert validate_project_transition("completed", "planning") == (True, None)

    def test_planning_to_completed_illegal(self) -> None:
        ok, msg = validate_project_transition("planning", "completed")
        assert ok is False
        assert "Illegal project transition" in msg


# ── Broadcast helpers ────────────────────────────────────────────


class TestAddOffer:
    def test_first_offer_moves_to_offer_received(self, make_broadcast, marcus) -> None:
        b = make_broadcast()
        updated = add_offer(b, Offer.for_profile(marcus, "t"))
        assert updated.status == BroadcastStatus.OFFER_RECEIVED
        assert len(updated.offers) == 1
        assert updated.version == b.version + 1

    def test_does_not_mutate_input(self, make_broadcast, marcus) -> None:
        b = make_broadcast()
        add_offer(b, Offer.for_profile(marcus, "t"))
        assert b.offers == ()
        assert b.status == BroadcastStatus.OPEN

    def test_same_responder_is_idempotent(self, make_broadcast, marcus) -> None:
        b = make_broadcast(offers=(marcus,))
        assert add_offer(b, Offer.for_profile(marcus, "later")) is b

    def test_distinct_responders_accumulate(self, make_broadcast, marcus, sarah) -> None:
        b = add_offer(make_broadcast(), Offer.for_profile(marcus, "t1"))
        b = add_offer(b, Offer.for_profile(sarah, "t2"))
        assert [o.expert_id for o in b.offers] == [marcus.id, sarah.id]
        assert b.status == BroadcastStatus.OFFER_RECEIVED

    def test_closed_broadcast_rejects_offer(self, make_broadcast, marcus) -> None:
        b = make_broadcast(status=BroadcastStatus.ACTIVE)
        with pytest.raises(InvalidTransition):
            add_offer(b, Offer.for_profile(marcus, "t"))


class TestCloseBroadcast:
    def test_close_sets_assignment(self, make_broadcast, marcus) -> None:
        closed = close_broadcast(make_broadcast(offers=(marcus,)), marcus.id, marcus.name)
        assert closed.status == BroadcastStatus.ACTIVE
        assert closed.assigned_expert_id == marcus.id

    def test_close_twice_rejected(self, make_broadcast, marcus) -> None:
        closed = close_broadcast(make_broadcast(), marcus.id, marcus.name)
        with pytest.raises(InvalidTransition):
            close_broadcast(closed, marcus.id, marcus.name)


# ── Project helpers ──────────────────────────────────────────────


class TestProjectHelpers:
    def test_assign_expert(self) -> None:
        p = Project(id="p", title="t", status=ProjectStatus.PLANNING, summary="s")
        updated = assign_expert(p, "expert-1", "Marcus", NOTE)
        assert updated.status == ProjectStatus.IN_PROGRESS
        assert updated.assigned_pro_id == "expert-1"
        assert updated.expert_messages[-1] is NOTE

    def test_complete_keeps_assignment(self, completed_project: Project) -> None:
        in_progress = replace(completed_project, status=ProjectStatus.IN_PROGRESS)
        done = complete_project(in_progress)
        assert done.status == ProjectStatus.COMPLETED
        assert done.assigned_pro_id == "E7"

    def test_reopen_with_expert(self, completed_project: Project) -> None:
        reopened = reopen_with_expert(completed_project, NOTE)
        assert reopened.status == ProjectStatus.IN_PROGRESS
        assert reopened.assigned_pro_id == "E7"
        assert reopened.expert_messages == (NOTE,)

    def test_reopen_with_expert_requires_completed(self, completed_project: Project) -> None:
        with pytest.raises(InvalidTransition, match="Only completed projects"):
            reopen_with_expert(replace(completed_project, status=ProjectStatus.IN_PROGRESS), NOTE)

    def test_reopen_without_assignment_rejected(self, completed_project: Project) -> None:
        orphan = replace(completed_project, assigned_pro_id=None, assigned_pro_name=None)
        with pytest.raises(InvalidTransition):
            reopen_with_expert(orphan, NOTE)

    def test_reopen_for_new_expert_clears_assignment(self, completed_project: Project) -> None:
        reopened = reopen_for_new_expert(completed_project, NOTE)
        assert reopened.status == ProjectStatus.PLANNING
        assert reopened.assigned_pro_id is None
        assert reopened.assigned_pro_name is None
        assert reopened.expert_messages == (NOTE,)

    def test_reopen_for_new_expert_from_in_progress_rejected(
        self, completed_project: Project
    ) -> None:
        with pytest.raises(InvalidTransition):
            reopen_for_new_expert(
                replace(completed_project, status=ProjectStatus.IN_PROGRESS), NOTE
            )
