"""User profiles keyed by the identity-provider subject."""

from __future__ import annotations

import logging
from typing import Any

from confide.core.errors import PermissionDeniedError
from confide.db.time import MonotonicClock, to_iso
from confide.repositories.base import COMMENTS, POSTS, USERS, validate_input
from confide.schemas.user import UserCreate, UserProfile, UserStats, UserUpdate
from confide.services.identity import Identity
from confide.store.base import DocumentStore, FieldFilter, ObjectStorage, Query

logger = logging.getLogger(__name__)


class UserRepository:
    """Create, read and edit profiles; compute profile statistics."""

    def __init__(
        self,
        store: DocumentStore,
        clock: MonotonicClock | None = None,
        storage: ObjectStorage | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or MonotonicClock()
        self.storage = storage

    async def create_profile(self, actor: Identity, data: UserCreate | dict[str, Any]) -> UserProfile:
        """Create the profile of a registered identity.

        Raises:
            PermissionDeniedError: For anonymous identities.
            DocumentExistsError: If the profile already exists.
        """
        if actor.is_anonymous:
            raise PermissionDeniedError("Anonymous users cannot create a profile")
        payload = validate_input(UserCreate, data)
        document = {
            "username": payload.username,
            "email": payload.email,
            "bio": payload.bio,
            "avatar_url": None,
            "created_at": to_iso(self.clock.now()),
        }
        await self.store.create(USERS, document, doc_id=actor.user_id)
        logger.info("Created profile for %s", actor.user_id)
        return await self.get_user(actor.user_id)

    async def get_user(self, user_id: str) -> UserProfile:
        return UserProfile.from_document(await self.store.get(USERS, user_id))

    async def find_user(self, user_id: str) -> UserProfile | None:
        document = await self.store.find(USERS, user_id)
        return UserProfile.from_document(document) if document is not None else None

    async def update_profile(
        self,
        actor: Identity,
        user_id: str,
        changes: UserUpdate | dict[str, Any],
    ) -> UserProfile:
        """Apply owner edits to username, bio or avatar.

        Raises:
            PermissionDeniedError: If ``actor`` does not own the profile.
            NotFoundError: If the profile does not exist.
        """
        if actor.user_id != user_id:
            raise PermissionDeniedError("Profiles can only be edited by their owner")
        payload = validate_input(UserUpdate, changes)
        partial = payload.model_dump(exclude_unset=True)
        if partial:
            await self.store.update(USERS, user_id, partial)
        return await self.get_user(user_id)

    async def update_avatar(
        self,
        actor: Identity,
        image: bytes,
        content_type: str = "image/jpeg",
    ) -> UserProfile:
        """Upload a new avatar through object storage and point the profile at it."""
        if self.storage is None:
            raise RuntimeError("No object storage configured for avatars")
        await self.get_user(actor.user_id)
        url = await self.storage.upload(image, content_type)
        return await self.update_profile(actor, actor.user_id, UserUpdate(avatar_url=url))

    async def user_stats(self, user_id: str, viewer: Identity | None = None) -> UserStats:
        """Count confessions, comments and likes received by ``user_id``.

        Anonymous posts and comments only count when ``viewer`` is the user
        themselves.
        """
        include_anonymous = viewer is not None and viewer.user_id == user_id
        posts = await self.store.query(Query.build(POSTS, [FieldFilter("author_id", "==", user_id)]))
        comments = await self.store.query(Query.build(COMMENTS, [FieldFilter("author_id", "==", user_id)]))
        if not include_anonymous:
            posts = [post for post in posts if not post.get("is_anonymous")]
            comments = [comment for comment in comments if not comment.get("is_anonymous")]
        likes_received = sum(int(post.get("like_count") or 0) for post in posts)
        return UserStats(
            user_id=user_id,
            confessions=len(posts),
            comments=len(comments),
            likes_received=likes_received,
        )
