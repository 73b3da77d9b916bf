"""Shared fixtures for the buildsync test suite."""

from __future__ import annotations

from typing import Callable

import pytest

from buildsync.marketplace.models import (
    ActorIdentity,
    Broadcast,
    BroadcastStatus,
    ExpertProfile,
    Offer,
    Project,
    ProjectStatus,
    Role,
    Urgency,
)
from buildsync.marketplace.registry import ExpertRegistry
from buildsync.marketplace.roster import SAMPLE_EXPERTS
from buildsync.marketplace.store import EntityStore
from buildsync.notifications import NotificationDispatcher
from buildsync.sync import ActorSession, SharedMemoryLayer


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def marcus() -> ExpertProfile:
    return SAMPLE_EXPERTS[0]


@pytest.fixture
def sarah() -> ExpertProfile:
    return SAMPLE_EXPERTS[1]


@pytest.fixture
def client_actor() -> ActorIdentity:
    return ActorIdentity(role=Role.REQUESTER, identity="client-1", name="Sarah Jenkins")


@pytest.fixture
def expert_actor(marcus: ExpertProfile) -> ActorIdentity:
    return ActorIdentity(
        role=Role.RESPONDER,
        identity=marcus.id,
        name=marcus.name,
        avatar=marcus.avatar,
        profile=marcus,
    )


@pytest.fixture
def second_expert_actor(sarah: ExpertProfile) -> ActorIdentity:
    return ActorIdentity(
        role=Role.RESPONDER,
        identity=sarah.id,
        name=sarah.name,
        avatar=sarah.avatar,
        profile=sarah,
    )


@pytest.fixture
def make_broadcast() -> Callable[..., Broadcast]:
    def _make(
        broadcast_id: str = "br-1",
        *,
        client_id: str = "client-1",
        offers: tuple[ExpertProfile, ...] = (),
        status: BroadcastStatus | None = None,
        version: int = 1,
    ) -> Broadcast:
        offer_objs = tuple(
            Offer.for_profile(p, "2026-01-01T00:00:00+00:00") for p in offers
        )
        if status is None:
            status = BroadcastStatus.OFFER_RECEIVED if offer_objs else BroadcastStatus.OPEN
        return Broadcast(
            id=broadcast_id,
            client_id=client_id,
            client_name="Sarah Jenkins",
            problem_summary="Leaky faucet",
            category="Plumbing",
            urgency=Urgency.MEDIUM,
            timestamp="2026-01-01T00:00:00+00:00",
            status=status,
            offers=offer_objs,
            version=version,
        )

    return _make


@pytest.fixture
def completed_project() -> Project:
    return Project(
        id="proj-e7",
        title="Garden Shed...",
        status=ProjectStatus.COMPLETED,
        summary="Garden shed roof repair",
        assigned_pro_id="E7",
        assigned_pro_name="Evan Seven",
    )


@pytest.fixture
def store() -> EntityStore:
    return EntityStore()


@pytest.fixture
def dispatcher(clock: FakeClock, store: EntityStore) -> NotificationDispatcher:
    return NotificationDispatcher(timeout=5.0, clock=clock, broadcasts=lambda: store.broadcasts)


@pytest.fixture
def registry(store: EntityStore) -> ExpertRegistry:
    return ExpertRegistry(lambda: store.registered_experts)


@pytest.fixture
def layer() -> SharedMemoryLayer:
    return SharedMemoryLayer()


@pytest.fixture
def client_session(
    layer: SharedMemoryLayer, client_actor: ActorIdentity, clock: FakeClock
) -> ActorSession:
    return ActorSession(layer, client_actor, session="client", clock=clock)


@pytest.fixture
def expert_session(
    layer: SharedMemoryLayer, expert_actor: ActorIdentity, clock: FakeClock
) -> ActorSession:
    return ActorSession(layer, expert_actor, session="expert", clock=clock)
