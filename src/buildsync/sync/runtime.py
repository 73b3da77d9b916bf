"""ActorSession: one actor's wiring of store, persistence and commands.

Local change path:
    command -> EntityStore.update -> listener -> PersistenceAdapter.save

External change path:
    durable layer -> PersistenceAdapter -> reconcile(previous, current)
    -> notifications -> EntityStore.replace_all

Every session remembers the last raw payload it saw per collection (its own
writes included), so a redelivered or echoed payload is a no-op.

Usage:
    layer = SharedMemoryLayer()
    client = ActorSession(layer, client_identity, session="client")
    expert = ActorSession(layer, expert_identity, session="expert")
    client.negotiation.create_broadcast("Leaky faucet")
"""

from __future__ import annotations

import json
from collections import deque
import logging
import time
from functools import partial
from typing import Any, Callable

from buildsync.advisory import AdvisoryService
from buildsync.marketplace.models import ActorIdentity, ExpertProfile, Role
from buildsync.marketplace.negotiation import Negotiation
from buildsync.marketplace.projects import ProjectService
from buildsync.marketplace.reconcile import (
    NewBroadcastAvailable,
    NewOfferReceived,
    OfferDiffMode,
    ProjectAssigned,
    ReconcileEvent,
    reconcile,
)
from buildsync.marketplace.registry import ExpertRegistry
from buildsync.marketplace.store import CollectionName, EntityStore
from buildsync.marketplace.wall import Wall
from buildsync.notifications import DEFAULT_TIMEOUT_SECONDS, NotificationDispatcher, Severity

from .adapter import PersistenceAdapter
from .keys import (
    COLLECTION_KEYS,
    SessionKey,
    decode_collection,
    default_collection,
    encode_collection,
)
from .layers import DurableLayer

logger = logging.getLogger(__name__)

WELCOME_CREDITS = 50

# Most recent reconcile events kept per session.
EVENT_HISTORY = 100


def _decode_identity(raw: str) -> ActorIdentity:
    return ActorIdentity.from_dict(json.loads(raw))


def load_identity(adapter: PersistenceAdapter) -> ActorIdentity | None:
    """Return the identity stored for the adapter's session, if any."""
    return adapter.load(SessionKey.IDENTITY, None, decode=_decode_identity, scoped=True)


def save_identity(adapter: PersistenceAdapter, actor: ActorIdentity) -> None:
    adapter.save(SessionKey.IDENTITY, actor.to_dict(), scoped=True)
    adapter.save(SessionKey.AUTH, True, scoped=True)


class ActorSession:
    """Everything one actor needs, bound to a shared durable layer."""

    def __init__(
        self,
        layer: DurableLayer,
        actor: ActorIdentity,
        *,
        session: str = "default",
        advisory: AdvisoryService | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        offer_diff: OfferDiffMode = OfferDiffMode.COUNT,
        origin: str | None = None,
    ) -> None:
        self.actor = actor
        self.offer_diff = OfferDiffMode(offer_diff)
        self.adapter = PersistenceAdapter(layer, session=session, origin=origin)
        self.store = EntityStore()
        self.dispatcher = NotificationDispatcher(
            timeout=timeout,
            clock=clock,
            broadcasts=lambda: self.store.broadcasts,
        )
        self.registry = ExpertRegistry(lambda: self.store.registered_experts)
        self.events: deque[ReconcileEvent] = deque(maxlen=EVENT_HISTORY)
        self._last_raw: dict[CollectionName, str] = {}

        self._load()

        self.negotiation = Negotiation(self.store, self.dispatcher, actor, self.registry)
        self.projects = ProjectService(self.store, self.dispatcher, actor, advisory)
        self.wall = Wall(self.store, self.dispatcher, actor)
        self.negotiation.restore_hidden(
            self.adapter.load(SessionKey.DISMISSED, [], scoped=True)
        )

        self.store.add_listener(self._on_local_change)
        for name, key in COLLECTION_KEYS.items():
            self.adapter.subscribe_external_change(
                key,
                partial(self._on_external_change, name),
                decode=partial(decode_collection, name),
            )

    @property
    def session(self) -> str:
        return self.adapter.session

    def _load(self) -> None:
        for name, key in COLLECTION_KEYS.items():
            items = self.adapter.load(
                key,
                default_collection(name),
                decode=partial(decode_collection, name),
            )
            self.store.replace_all(name, items)
            self._last_raw[name] = encode_collection(items)

    # ── Change paths ──────────────────────────────────────────────

    def _on_local_change(self, name: CollectionName, items: tuple[Any, ...]) -> None:
        self._last_raw[name] = self.adapter.save(
            COLLECTION_KEYS[name], items, encode=encode_collection
        )

    def _on_external_change(
        self, name: CollectionName, items: tuple[Any, ...], raw: str
    ) -> list[ReconcileEvent]:
        previous_raw = self._last_raw.get(name)
        if raw == previous_raw:
            logger.debug("Ignoring redelivered %s payload", name)
            return []

        events = reconcile(
            name,
            self.store.get(name),
            items,
            self.actor,
            previous_raw=previous_raw,
            raw=raw,
            mode=self.offer_diff,
        )
        for event in events:
            self._notify(event)
        self._last_raw[name] = raw
        self.store.replace_all(name, items)
        self.events.extend(events)
        return events

    def _notify(self, event: ReconcileEvent) -> None:
        if isinstance(event, NewBroadcastAvailable):
            self.dispatcher.post("New help signal detected on the network!", Severity.INFO)
        elif isinstance(event, NewOfferReceived):
            self.dispatcher.post(
                "An expert has responded to your broadcast!",
                Severity.OFFER,
                deep_link_id=event.broadcast_id,
            )
        elif isinstance(event, ProjectAssigned):
            self.dispatcher.post(
                f"New Project Accepted: {event.project.title}", Severity.SUCCESS
            )

    def poll(self) -> int:
        """Pull pending external changes from layers that need polling."""
        return self.adapter.poll()

    # ── Session-scoped commands ───────────────────────────────────

    def dismiss_broadcast(self, broadcast_id: str) -> None:
        self.negotiation.dismiss_broadcast(broadcast_id)
        self.adapter.save(
            SessionKey.DISMISSED, sorted(self.negotiation.hidden_ids), scoped=True
        )

    @property
    def credits(self) -> int:
        return int(self.adapter.load(SessionKey.CREDITS, 0, scoped=True) or 0)

    def logout(self) -> None:
        self.adapter.save(SessionKey.AUTH, False, scoped=True)
        self.dispatcher.post("Session terminated.", Severity.INFO)


def login(
    layer: DurableLayer,
    *,
    session: str,
    role: Role | str,
    name: str,
    identity: str | None = None,
    avatar: str = "",
    profile: ExpertProfile | None = None,
    **kwargs: Any,
) -> ActorSession:
    """Store an identity for ``session`` and open an :class:`ActorSession`.

    First-time sign-ins get the welcome credit bonus. Responders are
    published to the shared registered-experts roster. A responder signing
    in again without a ``profile`` keeps the profile and identity already
    stored for the session.
    """
    adapter = PersistenceAdapter(layer, session=session)
    previous = load_identity(adapter)
    role = Role(role)
    if (
        role == Role.RESPONDER
        and profile is None
        and identity is None
        and previous is not None
        and previous.is_responder
        and previous.profile is not None
    ):
        profile = previous.profile
        identity = previous.identity
        name = previous.name
        avatar = previous.avatar

    actor = ActorIdentity(
        role=role,
        identity=identity or (profile.id if profile else session),
        name=name,
        avatar=avatar,
        profile=profile,
    )
    save_identity(adapter, actor)

    actor_session = ActorSession(layer, actor, session=session, **kwargs)
    if previous is None:
        actor_session.adapter.save(SessionKey.CREDITS, WELCOME_CREDITS, scoped=True)
        actor_session.dispatcher.post(
            f"Welcome bonus! {WELCOME_CREDITS} BuildSync credits added.", Severity.SUCCESS
        )
    else:
        actor_session.dispatcher.post(f"Welcome back, {name}. Link established.", Severity.SUCCESS)

    if actor.is_responder and profile is not None:
        actor_session.wall.register_expert(profile)
    return actor_session


def open_session(layer: DurableLayer, session: str, **kwargs: Any) -> ActorSession | None:
    """Reopen a previously logged-in session, or None if there is none."""
    adapter = PersistenceAdapter(layer, session=session)
    actor = load_identity(adapter)
    if actor is None:
        return None
    if adapter.load(SessionKey.AUTH, False, scoped=True) is not True:
        return None
    return ActorSession(layer, actor, session=session, **kwargs)
