"""Tests for broadcast creation, offers and approval."""

from __future__ import annotations

import pytest

from buildsync.marketplace.models import BroadcastStatus, ProjectStatus, Urgency
from buildsync.marketplace.negotiation import DEFAULT_BROADCAST_SUMMARY, Negotiation
from buildsync.marketplace.store import CollectionName, EntityStore
from buildsync.notifications import Severity


@pytest.fixture
def client_negotiation(store, dispatcher, client_actor, registry) -> Negotiation:
    return Negotiation(store, dispatcher, client_actor, registry)


@pytest.fixture
def expert_negotiation(store, dispatcher, expert_actor, registry) -> Negotiation:
    return Negotiation(store, dispatcher, expert_actor, registry)


def _messages(dispatcher) -> list[str]:
    return [n.message for n in dispatcher.active()]


# ── create_broadcast ─────────────────────────────────────────────


class TestCreateBroadcast:
    def test_new_broadcast_is_first_and_open(
        self, client_negotiation: Negotiation, store: EntityStore, make_broadcast
    ) -> None:
        store.prepend(CollectionName.BROADCASTS, make_broadcast("older"))
        b = client_negotiation.create_broadcast("Cracked tile", category="Design", urgency="high")
        assert store.broadcasts[0] is b
        assert b.status == BroadcastStatus.OPEN
        assert b.offers == ()
        assert b.client_id == "client-1"
        assert b.urgency == Urgency.HIGH

    def test_confirmation_notification(self, client_negotiation: Negotiation, dispatcher) -> None:
        client_negotiation.create_broadcast("Cracked tile")
        note = dispatcher.active()[-1]
        assert note.severity == Severity.SUCCESS
        assert "Help signal broadcasted" in note.message

    def test_empty_summary_falls_back(self, client_negotiation: Negotiation) -> None:
        b = client_negotiation.create_broadcast("   ")
        assert b.problem_summary == DEFAULT_BROADCAST_SUMMARY

    def test_empty_summary_uses_project_summary(
        self, client_negotiation: Negotiation, store: EntityStore, completed_project
    ) -> None:
        store.append(CollectionName.PROJECTS, completed_project)
        b = client_negotiation.create_broadcast(None, project_id=completed_project.id)
        assert b.problem_summary == "Garden shed roof repair"

    def test_unknown_urgency_is_rejected(
        self, client_negotiation: Negotiation, store: EntityStore, dispatcher
    ) -> None:
        assert client_negotiation.create_broadcast("x", urgency="someday") is None
        assert store.broadcasts == ()
        assert "Unknown urgency 'someday'." in _messages(dispatcher)


# ── submit_offer ─────────────────────────────────────────────────


class TestSubmitOffer:
    def test_offer_appended(
        self, expert_negotiation: Negotiation, store: EntityStore, make_broadcast, marcus
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast())
        updated = expert_negotiation.submit_offer("br-1")
        assert updated.status == BroadcastStatus.OFFER_RECEIVED
        assert [o.expert_id for o in store.broadcasts[0].offers] == [marcus.id]

    def test_double_submit_is_idempotent(
        self, expert_negotiation: Negotiation, store: EntityStore, make_broadcast, dispatcher
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast())
        expert_negotiation.submit_offer("br-1")
        expert_negotiation.submit_offer("br-1")
        assert len(store.broadcasts[0].offers) == 1
        assert "You already offered to help Sarah Jenkins." in _messages(dispatcher)

    def test_distinct_responders(
        self, store, dispatcher, registry, expert_actor, second_expert_actor, make_broadcast
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast())
        Negotiation(store, dispatcher, expert_actor, registry).submit_offer("br-1")
        Negotiation(store, dispatcher, second_expert_actor, registry).submit_offer("br-1")
        assert len(store.broadcasts[0].offers) == 2

    def test_requester_cannot_offer(
        self, client_negotiation: Negotiation, store: EntityStore, make_broadcast, dispatcher
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast())
        assert client_negotiation.submit_offer("br-1") is None
        assert store.broadcasts[0].offers == ()
        assert "Only experts can send offers." in _messages(dispatcher)

    def test_missing_broadcast_is_noop(
        self, expert_negotiation: Negotiation, store: EntityStore, dispatcher
    ) -> None:
        assert expert_negotiation.submit_offer("gone") is None
        assert store.broadcasts == ()
        assert "This request is no longer available." in _messages(dispatcher)

    def test_closed_broadcast_rejects_offer(
        self, expert_negotiation: Negotiation, store: EntityStore, make_broadcast
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast(status=BroadcastStatus.ACTIVE))
        assert expert_negotiation.submit_offer("br-1") is None
        assert store.broadcasts[0].offers == ()


# ── approve_offer ────────────────────────────────────────────────


class TestApproveOffer:
    def test_approval_removes_broadcast_and_creates_project(
        self, client_negotiation: Negotiation, store: EntityStore, make_broadcast, marcus
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast(offers=(marcus,)))
        project = client_negotiation.approve_offer("br-1", marcus.id)

        assert store.broadcasts == ()
        assert store.projects == (project,)
        assert project.status == ProjectStatus.IN_PROGRESS
        assert project.assigned_pro_id == marcus.id
        assert project.title == "Leaky faucet..."
        assert "Match finalized" in project.expert_messages[0].text

    def test_approval_attaches_to_existing_project(
        self, client_negotiation: Negotiation, store: EntityStore, make_broadcast, marcus,
        completed_project,
    ) -> None:
        from dataclasses import replace

        planning = replace(
            completed_project,
            status=ProjectStatus.PLANNING,
            assigned_pro_id=None,
            assigned_pro_name=None,
        )
        store.append(CollectionName.PROJECTS, planning)
        store.append(CollectionName.BROADCASTS, make_broadcast(offers=(marcus,)))

        project = client_negotiation.approve_offer("br-1", marcus.id, project_id=planning.id)
        assert len(store.projects) == 1
        assert project.id == planning.id
        assert project.assigned_pro_name == marcus.name
        assert "Initial project context transmitted" in project.expert_messages[-1].text

    def test_stale_version_conflicts(
        self, client_negotiation: Negotiation, store: EntityStore, make_broadcast, marcus,
        dispatcher,
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast(offers=(marcus,), version=3))
        assert client_negotiation.approve_offer("br-1", marcus.id, expected_version=2) is None
        assert len(store.broadcasts) == 1
        assert store.projects == ()
        assert any("changed while you were reviewing" in m for m in _messages(dispatcher))

    def test_matching_version_succeeds(
        self, client_negotiation: Negotiation, store: EntityStore, make_broadcast, marcus
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast(offers=(marcus,), version=2))
        assert client_negotiation.approve_offer("br-1", marcus.id, expected_version=2) is not None

    def test_missing_broadcast(
        self, client_negotiation: Negotiation, store: EntityStore, dispatcher
    ) -> None:
        assert client_negotiation.approve_offer("gone", "expert-1") is None
        assert store.projects == ()
        assert "That request is no longer available." in _messages(dispatcher)

    def test_expert_without_offer_on_offered_broadcast(
        self, client_negotiation: Negotiation, store: EntityStore, make_broadcast, marcus, sarah
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast(offers=(marcus,)))
        assert client_negotiation.approve_offer("br-1", sarah.id) is None
        assert len(store.broadcasts) == 1

    def test_open_broadcast_resolves_expert_from_registry(
        self, client_negotiation: Negotiation, store: EntityStore, make_broadcast
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast())
        project = client_negotiation.approve_offer("br-1", "expert-4")
        assert project.assigned_pro_name == "Claire Dubois"

    def test_unknown_expert_on_open_broadcast(
        self, client_negotiation: Negotiation, store: EntityStore, make_broadcast
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast())
        assert client_negotiation.approve_offer("br-1", "expert-99") is None
        assert store.projects == ()


# ── connect_expert / dismiss ─────────────────────────────────────


class TestConnectAndDismiss:
    def test_direct_connect(self, client_negotiation: Negotiation, store: EntityStore) -> None:
        project = client_negotiation.connect_expert("expert-2")
        assert project.assigned_pro_name == "Sarah Chen"
        assert project.summary == "Direct Expert Collaboration"
        assert store.projects == (project,)

    def test_direct_connect_unknown_expert(
        self, client_negotiation: Negotiation, dispatcher
    ) -> None:
        assert client_negotiation.connect_expert("nobody") is None
        assert "That expert could not be found." in _messages(dispatcher)

    def test_dismiss_is_local(
        self, client_negotiation: Negotiation, store, dispatcher, registry, client_actor,
        make_broadcast,
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast())
        client_negotiation.dismiss_broadcast("br-1")
        assert client_negotiation.visible_broadcasts() == []
        assert len(store.broadcasts) == 1
        other = Negotiation(store, dispatcher, client_actor, registry)
        assert len(other.visible_broadcasts()) == 1

    def test_my_broadcasts_and_offer_profiles(
        self, client_negotiation: Negotiation, store: EntityStore, make_broadcast, marcus
    ) -> None:
        store.append(CollectionName.BROADCASTS, make_broadcast("mine", offers=(marcus,)))
        store.append(CollectionName.BROADCASTS, make_broadcast("theirs", client_id="client-2"))
        assert [b.id for b in client_negotiation.my_broadcasts()] == ["mine"]
        assert client_negotiation.offer_profiles("mine") == [marcus]
        assert client_negotiation.offer_profiles("missing") == []
