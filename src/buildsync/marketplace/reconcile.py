"""Snapshot diffing for externally delivered collections.

Given the previous and the newly delivered version of a shared collection,
classifies what changed and returns the semantic events the local actor
should hear about. Everything here is pure: no store access, no
notifications, no I/O.

Known limits of the default ``count`` offer diff:

* only the first broadcast (in snapshot order) whose offer count grew is
  reported, so simultaneous offers on several broadcasts under-report;
* an offer withdrawn and another added in the same delivery cancel out.

The ``identity`` mode diffs offers by responder id instead and reports every
broadcast that gained an offer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Sequence, Union

from .models import ActorIdentity, Broadcast, Project
from .store import CollectionName

logger = logging.getLogger(__name__)


class OfferDiffMode(StrEnum):
    COUNT = "count"
    IDENTITY = "identity"


@dataclass(frozen=True)
class NewBroadcastAvailable:
    """A responder should learn that new help requests appeared."""

    added: int


@dataclass(frozen=True)
class NewOfferReceived:
    """A requester's own broadcast gained at least one offer."""

    broadcast_id: str


@dataclass(frozen=True)
class ProjectAssigned:
    """A responder was assigned to a newly created project."""

    project: Project


ReconcileEvent = Union[NewBroadcastAvailable, NewOfferReceived, ProjectAssigned]


def _offer_increase_count(previous: Broadcast, current: Broadcast) -> bool:
    return len(current.offers) > len(previous.offers)


def _offer_increase_identity(previous: Broadcast, current: Broadcast) -> bool:
    before = {o.expert_id for o in previous.offers}
    return any(o.expert_id not in before for o in current.offers)


def reconcile_broadcasts(
    previous: Sequence[Broadcast],
    current: Sequence[Broadcast],
    actor: ActorIdentity,
    *,
    mode: OfferDiffMode = OfferDiffMode.COUNT,
) -> list[ReconcileEvent]:
    """Diff two broadcast snapshots for ``actor``.

    Responders get one :class:`NewBroadcastAvailable` when the collection
    grew. Requesters get :class:`NewOfferReceived` for their own broadcasts
    present in both snapshots whose offers grew.
    """
    events: list[ReconcileEvent] = []

    if actor.is_responder and len(current) > len(previous):
        events.append(NewBroadcastAvailable(added=len(current) - len(previous)))

    if actor.is_requester:
        before = {b.id: b for b in previous}
        grew = (
            _offer_increase_identity if mode == OfferDiffMode.IDENTITY else _offer_increase_count
        )
        for broadcast in current:
            old = before.get(broadcast.id)
            if old is None or broadcast.client_id != actor.identity:
                continue
            if grew(old, broadcast):
                events.append(NewOfferReceived(broadcast_id=broadcast.id))
                if mode == OfferDiffMode.COUNT:
                    break

    return events


def reconcile_projects(
    previous: Sequence[Project],
    current: Sequence[Project],
    actor: ActorIdentity,
) -> list[ReconcileEvent]:
    """Diff two project snapshots for ``actor``.

    Only responders are told about projects, and only when the collection
    grew and one of the added projects is assigned to them.
    """
    if not actor.is_responder or len(current) <= len(previous):
        return []

    known = {p.id for p in previous}
    for project in current:
        if project.id not in known and project.assigned_pro_id == actor.expert_id:
            return [ProjectAssigned(project=project)]
    return []


def reconcile(
    name: CollectionName,
    previous: Sequence[object],
    current: Sequence[object],
    actor: ActorIdentity,
    *,
    previous_raw: str | None = None,
    raw: str | None = None,
    mode: OfferDiffMode = OfferDiffMode.COUNT,
) -> list[ReconcileEvent]:
    """Dispatch to the collection-specific diff.

    When both raw payloads are given and identical byte-for-byte, returns no
    events without diffing; this is what breaks the loop when an actor's own
    write comes back through its change subscription.
    """
    if raw is not None and raw == previous_raw:
        logger.debug("Skipping reconcile of %s: payload unchanged", name)
        return []

    if name == CollectionName.BROADCASTS:
        return reconcile_broadcasts(previous, current, actor, mode=mode)  # type: ignore[arg-type]
    if name == CollectionName.PROJECTS:
        return reconcile_projects(previous, current, actor)  # type: ignore[arg-type]
    return []
