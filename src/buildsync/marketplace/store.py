"""In-memory entity store.

Holds the authoritative local copies of the shared collections. Every
collection is an immutable tuple of frozen entities, so a replacement is
atomic and untouched entries keep their identity across local updates.

Two write paths exist and nothing else may write:

* :meth:`EntityStore.update` for local commands; change listeners fire so the
  persistence adapter can write the collection out.
* :meth:`EntityStore.replace_all` for external synchronization; listeners are
  not fired because the new value already came from the durable layer.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any, Callable, Iterable

from .models import Broadcast, Collection, ExpertProfile, Project, WallPost

logger = logging.getLogger(__name__)


class CollectionName(StrEnum):
    BROADCASTS = "broadcasts"
    PROJECTS = "projects"
    REGISTERED_EXPERTS = "registered_experts"
    COLLECTIONS = "collections"
    WALL_POSTS = "wall_posts"


COLLECTION_TYPES: dict[CollectionName, type] = {
    CollectionName.BROADCASTS: Broadcast,
    CollectionName.PROJECTS: Project,
    CollectionName.REGISTERED_EXPERTS: ExpertProfile,
    CollectionName.COLLECTIONS: Collection,
    CollectionName.WALL_POSTS: WallPost,
}

ChangeListener = Callable[[CollectionName, tuple[Any, ...]], None]


class EntityStore:
    """Per-process holder of every shared collection."""

    def __init__(self, initial: dict[CollectionName, Iterable[Any]] | None = None) -> None:
        self._collections: dict[CollectionName, tuple[Any, ...]] = {
            name: () for name in CollectionName
        }
        self._listeners: list[ChangeListener] = []
        for name, items in (initial or {}).items():
            self._collections[CollectionName(name)] = tuple(items)

    def add_listener(self, listener: ChangeListener) -> None:
        """Register a callback fired after every local update."""
        self._listeners.append(listener)

    def get(self, name: CollectionName) -> tuple[Any, ...]:
        return self._collections[CollectionName(name)]

    def find(self, name: CollectionName, entity_id: str) -> Any | None:
        for item in self.get(name):
            if item.id == entity_id:
                return item
        return None

    def replace_all(self, name: CollectionName, items: Iterable[Any]) -> None:
        """Swap in a full snapshot from outside. Does not notify listeners."""
        self._collections[CollectionName(name)] = tuple(items)
        logger.debug("Replaced %s from external snapshot", name)

    def update(
        self,
        name: CollectionName,
        fn: Callable[[tuple[Any, ...]], Iterable[Any]],
    ) -> tuple[Any, ...]:
        """Apply a local structural update and notify listeners.

        ``fn`` receives the current tuple and returns the new contents. When
        the result equals the current contents nothing happens.
        """
        key = CollectionName(name)
        current = self._collections[key]
        new = tuple(fn(current))
        if new == current:
            return current
        self._collections[key] = new
        for listener in self._listeners:
            listener(key, new)
        return new

    def replace_entity(self, name: CollectionName, entity: Any) -> tuple[Any, ...]:
        """Swap the entity with the same id, keeping every other entry."""
        return self.update(
            name,
            lambda items: tuple(entity if item.id == entity.id else item for item in items),
        )

    def prepend(self, name: CollectionName, entity: Any) -> tuple[Any, ...]:
        return self.update(name, lambda items: (entity,) + items)

    def append(self, name: CollectionName, entity: Any) -> tuple[Any, ...]:
        return self.update(name, lambda items: items + (entity,))

    def remove(self, name: CollectionName, entity_id: str) -> tuple[Any, ...]:
        return self.update(
            name, lambda items: tuple(item for item in items if item.id != entity_id)
        )

    @property
    def broadcasts(self) -> tuple[Broadcast, ...]:
        return self.get(CollectionName.BROADCASTS)

    @property
    def projects(self) -> tuple[Project, ...]:
        return self.get(CollectionName.PROJECTS)

    @property
    def registered_experts(self) -> tuple[ExpertProfile, ...]:
        return self.get(CollectionName.REGISTERED_EXPERTS)

    @property
    def collections(self) -> tuple[Collection, ...]:
        return self.get(CollectionName.COLLECTIONS)

    @property
    def wall_posts(self) -> tuple[WallPost, ...]:
        return self.get(CollectionName.WALL_POSTS)
