"""Marketplace core: entities, store, lifecycle rules and snapshot diffing.

Command modules (``negotiation``, ``projects``, ``wall``) depend on the
notification and advisory packages and are imported from their own modules.
"""

from .models import (
    ActorIdentity,
    Broadcast,
    BroadcastStatus,
    ChatMessage,
    Collection,
    ExpertProfile,
    Invoice,
    Milestone,
    Offer,
    Project,
    ProjectStatus,
    Role,
    Thread,
    Urgency,
    WallComment,
    WallPost,
)
from .reconcile import (
    NewBroadcastAvailable,
    NewOfferReceived,
    OfferDiffMode,
    ProjectAssigned,
    ReconcileEvent,
    reconcile,
    reconcile_broadcasts,
    reconcile_projects,
)
from .registry import ExpertNotFound, ExpertRegistry, NotFoundForAction
from .store import COLLECTION_TYPES, CollectionName, EntityStore
from .transitions import (
    BROADCAST_TRANSITIONS,
    PROJECT_TRANSITIONS,
    TERMINAL_BROADCAST_STATES,
    InvalidTransition,
    is_terminal,
    validate_broadcast_transition,
    validate_project_transition,
)

__all__ = [
    "ActorIdentity",
    "BROADCAST_TRANSITIONS",
    "Broadcast",
    "BroadcastStatus",
    "COLLECTION_TYPES",
    "ChatMessage",
    "Collection",
    "CollectionName",
    "EntityStore",
    "ExpertNotFound",
    "ExpertProfile",
    "ExpertRegistry",
    "InvalidTransition",
    "Invoice",
    "Milestone",
    "NewBroadcastAvailable",
    "NewOfferReceived",
    "NotFoundForAction",
    "Offer",
    "OfferDiffMode",
    "PROJECT_TRANSITIONS",
    "Project",
    "ProjectAssigned",
    "ProjectStatus",
    "ReconcileEvent",
    "Role",
    "TERMINAL_BROADCAST_STATES",
    "Thread",
    "Urgency",
    "WallComment",
    "WallPost",
    "is_terminal",
    "reconcile",
    "reconcile_broadcasts",
    "reconcile_projects",
    "validate_broadcast_transition",
    "validate_project_transition",
]
