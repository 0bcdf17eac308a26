"""Data access for confession posts and their derived counters."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from confide.core.errors import PermissionDeniedError
from confide.db.time import MonotonicClock, to_iso
from confide.repositories.base import POSTS, validate_input
from confide.schemas.post import Post, PostCreate, PostFilter, PostSort
from confide.services.identity import Identity
from confide.store.base import Document, DocumentStore, FieldFilter, OrderBy, Query, Subscription

__all__ = ["PostRepository", "post_order", "sort_posts"]

logger = logging.getLogger(__name__)

LIKE_COUNT = "like_count"
COMMENT_COUNT = "comment_count"
SHARE_COUNT = "share_count"

PostsCallback = Callable[[list[Post]], Awaitable[None] | None]


def post_order(sort: PostSort) -> tuple[OrderBy, ...]:
    """Store ordering for a feed sort.

    Popularity ties are broken by recency: with equal likes the newer post wins.
    """
    if sort is PostSort.POPULARITY:
        return (OrderBy(LIKE_COUNT, descending=True), OrderBy("created_at", descending=True))
    return (OrderBy("created_at", descending=True),)


def sort_posts(posts: list[Post], sort: PostSort) -> list[Post]:
    """Order already-materialized posts the same way the store does."""
    if sort is PostSort.POPULARITY:
        return sorted(posts, key=lambda post: (post.like_count, post.created_at, post.id), reverse=True)
    return sorted(posts, key=lambda post: (post.created_at, post.id), reverse=True)


class PostRepository:
    """Create, read and delete posts; owns the counter update rules."""

    def __init__(self, store: DocumentStore, clock: MonotonicClock | None = None) -> None:
        """Initialize the repository with a document store and a timestamp source."""
        self.store = store
        self.clock = clock or MonotonicClock()

    async def create_post(self, data: PostCreate | dict[str, Any], actor: Identity) -> str:
        """Persist a new post authored by ``actor`` and return its identifier.

        Counters start at zero and the timestamp is assigned here, at write time.

        Raises:
            ValidationError: If the content is empty or too long, or the category or
                mood is not one of the fixed values.
        """
        payload = validate_input(PostCreate, data)
        document = {
            "content": payload.content,
            "author_id": actor.user_id,
            "username": payload.username or actor.public_name,
            "category": payload.category.value,
            "mood": payload.mood.value if payload.mood else None,
            "is_anonymous": payload.is_anonymous,
            LIKE_COUNT: 0,
            COMMENT_COUNT: 0,
            SHARE_COUNT: 0,
            "created_at": to_iso(self.clock.now()),
        }
        post_id = await self.store.create(POSTS, document)
        logger.info("Created post %s in category %s", post_id, payload.category.value)
        return post_id

    async def get_post(self, post_id: str) -> Post:
        """Return a post or raise ``NotFoundError``."""
        return Post.from_document(await self.store.get(POSTS, post_id))

    async def find_post(self, post_id: str) -> Post | None:
        """Return a post, or ``None`` if it was deleted or never existed."""
        document = await self.store.find(POSTS, post_id)
        return Post.from_document(document) if document is not None else None

    def build_query(
        self,
        post_filter: PostFilter | None = None,
        sort: PostSort = PostSort.RECENCY,
        limit: int | None = None,
    ) -> Query:
        """Translate a feed filter and sort into a store query."""
        post_filter = post_filter or PostFilter()
        filters = []
        if post_filter.author_id is not None:
            filters.append(FieldFilter("author_id", "==", post_filter.author_id))
        if post_filter.category is not None:
            filters.append(FieldFilter("category", "==", post_filter.category.value))
        return Query.build(POSTS, filters, post_order(sort), limit)

    async def fetch_posts(
        self,
        post_filter: PostFilter | None = None,
        sort: PostSort = PostSort.RECENCY,
        limit: int | None = None,
    ) -> list[Post]:
        """Return a one-shot snapshot of the feed."""
        documents = await self.store.query(self.build_query(post_filter, sort, limit))
        return [Post.from_document(document) for document in documents]

    async def list_posts(
        self,
        post_filter: PostFilter | None,
        sort: PostSort,
        on_change: PostsCallback,
        limit: int | None = None,
    ) -> Subscription:
        """Subscribe to the ordered feed; ``on_change`` receives every new sequence."""

        def _deliver(documents: list[Document]) -> Awaitable[None] | None:
            return on_change([Post.from_document(document) for document in documents])

        return await self.store.subscribe(self.build_query(post_filter, sort, limit), _deliver)

    async def delete_post(self, post_id: str, actor: Identity) -> None:
        """Delete a post owned by ``actor``.

        Comments and likes referencing the post are left in place and become
        unreachable; they are not cascaded.

        Raises:
            NotFoundError: If the post does not exist.
            PermissionDeniedError: If ``actor`` is not the author.
        """
        post = await self.get_post(post_id)
        if post.author_id is None or post.author_id != actor.user_id:
            logger.info("User %s denied deleting post %s", actor.user_id, post_id)
            raise PermissionDeniedError("Only the author can delete this post")
        await self.store.delete(POSTS, post_id)
        logger.info("Deleted post %s", post_id)

    async def record_share(self, post_id: str) -> int:
        """Count one share of a post and return the new share count."""
        return await self.adjust_counter(post_id, SHARE_COUNT, 1)

    async def adjust_counter(self, post_id: str, field: str, delta: int) -> int:
        """Apply a store-side increment to one of the post's counters.

        Counters never go below zero.
        """
        return await self.store.atomic_increment(POSTS, post_id, field, delta, floor=0)
