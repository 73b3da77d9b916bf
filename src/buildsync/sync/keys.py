"""Durable key names, compiled-in defaults and collection codecs.

Shared keys hold whole collections as JSON arrays and are visible to every
actor on the same durable layer. Session keys belong to one actor session
and are stored under ``"<session>:<key>"``.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from buildsync.marketplace.roster import (
    DEFAULT_COLLECTIONS,
    INITIAL_PROJECTS,
    SAMPLE_WALL_POSTS,
)
from buildsync.marketplace.store import COLLECTION_TYPES, CollectionName


class SharedKey(StrEnum):
    PROJECTS = "buildsync_v15_projects"
    BROADCASTS = "buildsync_v15_broadcasts"
    REGISTERED_EXPERTS = "buildsync_v15_experts"
    COLLECTIONS = "buildsync_v15_collections"
    WALL_POSTS = "buildsync_v15_wallposts"


class SessionKey(StrEnum):
    AUTH = "buildsync_v15_auth"
    IDENTITY = "buildsync_v15_identity"
    CREDITS = "buildsync_v15_credits"
    DISMISSED = "buildsync_v15_dismissed"


COLLECTION_KEYS: dict[CollectionName, SharedKey] = {
    CollectionName.PROJECTS: SharedKey.PROJECTS,
    CollectionName.BROADCASTS: SharedKey.BROADCASTS,
    CollectionName.REGISTERED_EXPERTS: SharedKey.REGISTERED_EXPERTS,
    CollectionName.COLLECTIONS: SharedKey.COLLECTIONS,
    CollectionName.WALL_POSTS: SharedKey.WALL_POSTS,
}

_DEFAULTS: dict[CollectionName, tuple[Any, ...]] = {
    CollectionName.PROJECTS: INITIAL_PROJECTS,
    CollectionName.BROADCASTS: (),
    CollectionName.REGISTERED_EXPERTS: (),
    CollectionName.COLLECTIONS: DEFAULT_COLLECTIONS,
    CollectionName.WALL_POSTS: SAMPLE_WALL_POSTS,
}


def default_collection(name: CollectionName) -> tuple[Any, ...]:
    """Return the compiled-in default for a shared collection."""
    return _DEFAULTS[CollectionName(name)]


def encode_collection(items: Any) -> str:
    """Serialize a collection to its durable JSON form.

    The encoding is deterministic so equal collections produce identical
    bytes, which is what the raw-payload comparison relies on.
    """
    return json.dumps([item.to_dict() for item in items], ensure_ascii=False)


def decode_collection(name: CollectionName, raw: str) -> tuple[Any, ...]:
    """Parse a durable JSON payload into a tuple of entities.

    Raises:
        ValueError: Invalid JSON or invalid enum values.
        KeyError: A required field is missing.
        TypeError: The payload or a nested field has the wrong shape.
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise TypeError(f"Expected a JSON array for {name}, got {type(data).__name__}")
    entity_type = COLLECTION_TYPES[CollectionName(name)]
    items = []
    for entry in data:
        if not isinstance(entry, dict):
            raise TypeError(f"Expected an object in {name}, got {type(entry).__name__}")
        items.append(entity_type.from_dict(entry))
    return tuple(items)
