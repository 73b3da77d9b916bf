"""Broadcast / offer negotiation commands.

Single entry point for every local change to the broadcast collection.
Each command follows the same pipeline:

    1. Resolve the target from the current store snapshot
    2. Validate (missing target, stale version, illegal transition)
    3. Compute the new entities with the pure helpers in ``transitions``
    4. Write through the store (which triggers persistence)
    5. Post a confirmation notification

Failures never propagate: the command becomes a no-op, returns ``None`` and
posts an informational notification where the user needs one.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import ulid

from buildsync.notifications import NotificationDispatcher, Severity

from .models import (
    ActorIdentity,
    Broadcast,
    BroadcastStatus,
    ExpertProfile,
    Offer,
    Project,
    Urgency,
)
from .projects import link_expert
from .registry import ExpertRegistry, NotFoundForAction
from .store import CollectionName, EntityStore
from .transitions import InvalidTransition, add_offer, close_broadcast

logger = logging.getLogger(__name__)

DEFAULT_BROADCAST_SUMMARY = "General Build Inquiry"


class Conflict(Exception):
    """Raised when a command was issued against a stale broadcast version."""


def _new_id(prefix: str) -> str:
    return f"{prefix}-{ulid.ULID()}"


def _now_utc() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


class Negotiation:
    """Broadcast lifecycle commands for one local actor."""

    def __init__(
        self,
        store: EntityStore,
        dispatcher: NotificationDispatcher,
        actor: ActorIdentity,
        registry: ExpertRegistry,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.actor = actor
        self.registry = registry
        self._hidden: set[str] = set()

    # ── Queries ───────────────────────────────────────────────────

    def visible_broadcasts(self) -> list[Broadcast]:
        """Broadcasts minus the ones this actor dismissed."""
        return [b for b in self.store.broadcasts if b.id not in self._hidden]

    def my_broadcasts(self) -> list[Broadcast]:
        return [b for b in self.store.broadcasts if b.client_id == self.actor.identity]

    def offer_profiles(self, broadcast_id: str) -> list[ExpertProfile]:
        """Profiles behind the offers of a broadcast, in submission order."""
        broadcast = self.store.find(CollectionName.BROADCASTS, broadcast_id)
        if broadcast is None:
            return []
        return [offer.profile for offer in broadcast.offers]

    @property
    def hidden_ids(self) -> frozenset[str]:
        return frozenset(self._hidden)

    def restore_hidden(self, broadcast_ids: list[str]) -> None:
        self._hidden.update(broadcast_ids)

    # ── Commands ──────────────────────────────────────────────────

    def create_broadcast(
        self,
        summary: str | None = None,
        *,
        category: str = "General",
        urgency: Urgency | str = Urgency.MEDIUM,
        snapshot: str | None = None,
        project_id: str | None = None,
    ) -> Broadcast | None:
        """Publish a new help request, newest first.

        An empty summary falls back to the summary of ``project_id`` and then
        to a generic inquiry.
        """
        text = (summary or "").strip()
        if not text and project_id:
            project = self.store.find(CollectionName.PROJECTS, project_id)
            if project is not None:
                text = project.summary
        if not text:
            text = DEFAULT_BROADCAST_SUMMARY

        try:
            urgency_value = Urgency(urgency)
        except ValueError:
            self.dispatcher.post(f"Unknown urgency '{urgency}'.", Severity.INFO)
            return None

        broadcast = Broadcast(
            id=_new_id("br"),
            client_id=self.actor.identity,
            client_name=self.actor.name,
            problem_summary=text,
            category=category,
            urgency=urgency_value,
            timestamp=_now_utc(),
            snapshot=snapshot,
        )
        self.store.prepend(CollectionName.BROADCASTS, broadcast)
        logger.debug("Broadcast %s created by %s", broadcast.id, self.actor.identity)
        self.dispatcher.post(
            "Help signal broadcasted to Expert Network. Network listening...",
            Severity.SUCCESS,
        )
        return broadcast

    def submit_offer(self, broadcast_id: str) -> Broadcast | None:
        """Offer the local responder's help on a broadcast.

        Submitting twice is idempotent: the broadcast keeps one offer per
        responder and the second call changes nothing.
        """
        profile = self.actor.profile
        if profile is None:
            self.dispatcher.post("Only experts can send offers.", Severity.INFO)
            return None

        broadcast = self.store.find(CollectionName.BROADCASTS, broadcast_id)
        if broadcast is None:
            logger.info("Offer on missing broadcast %s ignored", broadcast_id)
            self.dispatcher.post("This request is no longer available.", Severity.INFO)
            return None

        if broadcast.offer_from(profile.id) is not None:
            self.dispatcher.post(
                f"You already offered to help {broadcast.client_name}.", Severity.INFO
            )
            return broadcast

        try:
            updated = add_offer(broadcast, Offer.for_profile(profile, _now_utc()))
        except InvalidTransition as exc:
            logger.info("Offer on %s rejected: %s", broadcast_id, exc)
            self.dispatcher.post("This request is no longer open.", Severity.INFO)
            return None

        self.store.replace_entity(CollectionName.BROADCASTS, updated)
        self.dispatcher.post(f"Offer sent to {broadcast.client_name}", Severity.SUCCESS)
        return updated

    def approve_offer(
        self,
        broadcast_id: str,
        expert_id: str,
        *,
        project_id: str | None = None,
        expected_version: int | None = None,
    ) -> Project | None:
        """Accept an expert for a broadcast.

        Removes the broadcast from the active set and creates (or updates,
        when ``project_id`` names an existing project) an in-progress project
        assigned to the expert. ``expected_version`` guards against approving
        a broadcast that changed since the caller last saw it.
        """
        try:
            broadcast = self._require_broadcast(broadcast_id)
            if expected_version is not None and expected_version != broadcast.version:
                raise Conflict(
                    f"Broadcast {broadcast_id} is at version {broadcast.version}, "
                    f"expected {expected_version}"
                )
            profile = self._profile_for_approval(broadcast, expert_id)
            close_broadcast(broadcast, profile.id, profile.name)
            project = link_expert(
                self.store,
                profile,
                project_id=project_id,
                summary=broadcast.problem_summary,
            )
        except NotFoundForAction as exc:
            logger.info("Approval skipped: %s", exc)
            self.dispatcher.post("That request is no longer available.", Severity.INFO)
            return None
        except Conflict as exc:
            logger.info("Approval conflict: %s", exc)
            self.dispatcher.post(
                "This request changed while you were reviewing it. Please review the offers again.",
                Severity.INFO,
            )
            return None
        except InvalidTransition as exc:
            logger.info("Approval rejected: %s", exc)
            self.dispatcher.post("This request can no longer be approved.", Severity.INFO)
            return None

        self.store.remove(CollectionName.BROADCASTS, broadcast.id)
        self._hidden.discard(broadcast.id)
        self.dispatcher.post(
            f"Linked with {profile.name}. Expert Signal established.", Severity.SUCCESS
        )
        return project

    def connect_expert(self, expert_id: str, *, project_id: str | None = None) -> Project | None:
        """Assign an expert directly, without a broadcast."""
        try:
            profile = self.registry.get(expert_id)
            project = link_expert(
                self.store,
                profile,
                project_id=project_id,
                summary="Direct Expert Collaboration",
            )
        except NotFoundForAction as exc:
            logger.info("Direct connect skipped: %s", exc)
            self.dispatcher.post("That expert could not be found.", Severity.INFO)
            return None
        except InvalidTransition as exc:
            logger.info("Direct connect rejected: %s", exc)
            self.dispatcher.post("This project cannot take a new expert right now.", Severity.INFO)
            return None

        self.dispatcher.post(
            f"Linked with {profile.name}. Expert Signal established.", Severity.SUCCESS
        )
        return project

    def dismiss_broadcast(self, broadcast_id: str) -> None:
        """Hide a broadcast for this actor only; shared state is untouched."""
        self._hidden.add(broadcast_id)
        self.dispatcher.post("Signal suppressed.", Severity.INFO)

    # ── Internal ──────────────────────────────────────────────────

    def _require_broadcast(self, broadcast_id: str) -> Broadcast:
        broadcast = self.store.find(CollectionName.BROADCASTS, broadcast_id)
        if broadcast is None:
            raise NotFoundForAction(f"Broadcast {broadcast_id} not found")
        return broadcast

    def _profile_for_approval(self, broadcast: Broadcast, expert_id: str) -> ExpertProfile:
        offer = broadcast.offer_from(expert_id)
        if offer is not None:
            return offer.profile
        if broadcast.status == BroadcastStatus.OPEN:
            return self.registry.get(expert_id)
        raise NotFoundForAction(f"No offer from {expert_id} on broadcast {broadcast.id}")
