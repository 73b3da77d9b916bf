"""Builders wall, saved-post collections and expert registration."""

from __future__ import annotations

import logging
from dataclasses import replace

import ulid

from buildsync.notifications import NotificationDispatcher, Severity

from .models import ActorIdentity, Collection, ExpertProfile, WallComment, WallPost
from .store import CollectionName, EntityStore

logger = logging.getLogger(__name__)

DEFAULT_POST_TAGS = ("#new-build", "#neural-update")


def _new_id(prefix: str) -> str:
    return f"{prefix}-{ulid.ULID()}"


def toggle_like_flag(post: WallPost, actor: ActorIdentity) -> WallPost:
    """Flip the actor's role-specific like flag and adjust the counter."""
    if actor.is_requester:
        liked = post.liked_by_client
        return replace(
            post,
            liked_by_client=not liked,
            likes=post.likes - 1 if liked else post.likes + 1,
        )
    liked = post.liked_by_expert
    return replace(
        post,
        liked_by_expert=not liked,
        likes=post.likes - 1 if liked else post.likes + 1,
    )


class Wall:
    def __init__(
        self,
        store: EntityStore,
        dispatcher: NotificationDispatcher,
        actor: ActorIdentity,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.actor = actor

    def add_wall_post(
        self,
        content: str,
        *,
        image: str | None = None,
        video: str | None = None,
    ) -> WallPost | None:
        if not content.strip():
            return None
        post = WallPost(
            id=_new_id("wall"),
            author_name=self.actor.name,
            author_avatar=self.actor.avatar,
            content=content,
            timestamp="Just now",
            tags=DEFAULT_POST_TAGS,
            image=image,
            video=video,
        )
        self.store.prepend(CollectionName.WALL_POSTS, post)
        self.dispatcher.post("Neural post shared to Builders Wall.", Severity.SUCCESS)
        return post

    def toggle_like(self, post_id: str) -> WallPost | None:
        post = self.store.find(CollectionName.WALL_POSTS, post_id)
        if post is None:
            logger.info("Like on missing post %s ignored", post_id)
            return None
        updated = toggle_like_flag(post, self.actor)
        self.store.replace_entity(CollectionName.WALL_POSTS, updated)
        return updated

    def add_comment(self, post_id: str, text: str) -> WallPost | None:
        post = self.store.find(CollectionName.WALL_POSTS, post_id)
        if post is None or not text.strip():
            return None
        comment = WallComment(
            id=_new_id("comm"),
            author_name=self.actor.name,
            author_avatar=self.actor.avatar,
            content=text,
            timestamp="Just now",
        )
        updated = replace(post, comments=post.comments + (comment,))
        self.store.replace_entity(CollectionName.WALL_POSTS, updated)
        return updated

    # ── Collections ───────────────────────────────────────────────

    def create_collection(self, name: str, auto_save_post_id: str | None = None) -> Collection:
        """Create a saved-post folder, optionally seeded with one post."""
        collection = Collection(
            id=_new_id("coll"),
            name=name,
            post_ids=(auto_save_post_id,) if auto_save_post_id else (),
        )
        self.store.append(CollectionName.COLLECTIONS, collection)
        self.dispatcher.post(f"Archive '{name}' created.", Severity.SUCCESS)
        return collection

    def save_post(self, post_id: str, collection_id: str) -> Collection | None:
        """Add a post to a folder. Saving an already-saved post changes nothing."""
        collection = self.store.find(CollectionName.COLLECTIONS, collection_id)
        if collection is None:
            self.dispatcher.post("That collection no longer exists.", Severity.INFO)
            return None
        if post_id not in collection.post_ids:
            collection = replace(collection, post_ids=collection.post_ids + (post_id,))
            self.store.replace_entity(CollectionName.COLLECTIONS, collection)
        self.dispatcher.post("Achievement saved to Hub.", Severity.SUCCESS)
        return collection

    # ── Registration ──────────────────────────────────────────────

    def register_expert(self, profile: ExpertProfile) -> ExpertProfile:
        """Publish a responder profile to the shared registered-experts roster.

        Re-registering an existing id replaces the stored profile.
        """
        if self.store.find(CollectionName.REGISTERED_EXPERTS, profile.id) is not None:
            self.store.replace_entity(CollectionName.REGISTERED_EXPERTS, profile)
        else:
            self.store.append(CollectionName.REGISTERED_EXPERTS, profile)
        logger.debug("Expert %s registered", profile.id)
        return profile
