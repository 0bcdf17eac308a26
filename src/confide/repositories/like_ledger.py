"""Like ledger: one like per user per post, mirrored into the post's counter.

The ledger record's identifier is derived from the (post, user) pair, so the
store's primary key is what enforces "one like per user per post"; there is no
read-then-insert race on the record itself.

Writing the ledger record and adjusting ``like_count`` are two separate store
calls. The counter uses the store's atomic increment, so concurrent likes from
different users never lose updates, but a failure between the two calls leaves
the counter off by one. That drift is reported, not repaired; see
``confide.services.reconciliation`` for the explicit audit.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import Awaitable, Callable

from confide.core.errors import ConfideError, DocumentExistsError
from confide.db.time import MonotonicClock, to_iso
from confide.repositories.base import LIKES, report_counter_drift
from confide.repositories.notification_repo import NotificationRepository
from confide.repositories.post_repo import LIKE_COUNT, PostRepository
from confide.schemas.like import Like, LikeToggleResult, like_id
from confide.schemas.notification import NotificationType
from confide.schemas.post import Post
from confide.services.identity import Identity
from confide.store.base import Document, DocumentStore, FieldFilter, OrderBy, Query, Subscription

logger = logging.getLogger(__name__)

LikedPostsCallback = Callable[[list[Post]], Awaitable[None] | None]


class LikeLedger:
    """Toggle likes and answer "who liked what" questions."""

    def __init__(
        self,
        store: DocumentStore,
        posts: PostRepository,
        notifications: NotificationRepository | None = None,
        clock: MonotonicClock | None = None,
    ) -> None:
        self.store = store
        self.posts = posts
        self.notifications = notifications
        self.clock = clock or MonotonicClock()
        # One in-flight toggle per (post, user) pair within this process.
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def toggle_like(self, post_id: str, actor: Identity) -> LikeToggleResult:
        """Like the post if ``actor`` has not liked it yet, otherwise unlike it.

        Toggles by the same user on the same post are serialized; toggles by
        different users run independently.

        Raises:
            NotFoundError: If the post does not exist.
            TransientStoreError: If the store fails; the caller should roll back any
                optimistic state and let the user retry.
        """
        key = like_id(post_id, actor.user_id)
        async with self._lock_for(key):
            post = await self.posts.get_post(post_id)
            existing = await self.store.find(LIKES, key)
            if existing is None:
                return await self._like(post, actor, key)
            return await self._unlike(post, actor, key)

    async def _like(self, post: Post, actor: Identity, key: str) -> LikeToggleResult:
        record = {
            "post_id": post.id,
            "user_id": actor.user_id,
            "created_at": to_iso(self.clock.now()),
        }
        try:
            await self.store.create(LIKES, record, doc_id=key)
        except DocumentExistsError:
            # Same user, another device: the record already stands for this like.
            logger.info("Like %s already recorded by a concurrent writer", key)
            return LikeToggleResult(post_id=post.id, liked=True, like_count=post.like_count)

        like_count = await self._adjust(post.id, +1)
        logger.debug("User %s liked post %s (%d)", actor.user_id, post.id, like_count)
        if self.notifications is not None:
            await self.notifications.notify_author(post, NotificationType.LIKE, post.content, actor)
        return LikeToggleResult(post_id=post.id, liked=True, like_count=like_count)

    async def _unlike(self, post: Post, actor: Identity, key: str) -> LikeToggleResult:
        removed = await self.store.delete(LIKES, key)
        if not removed:
            logger.info("Like %s already removed by a concurrent writer", key)
            return LikeToggleResult(post_id=post.id, liked=False, like_count=post.like_count)

        like_count = await self._adjust(post.id, -1)
        logger.debug("User %s unliked post %s (%d)", actor.user_id, post.id, like_count)
        return LikeToggleResult(post_id=post.id, liked=False, like_count=like_count)

    async def _adjust(self, post_id: str, delta: int) -> int:
        try:
            return await self.posts.adjust_counter(post_id, LIKE_COUNT, delta)
        except ConfideError as err:
            report_counter_drift(post_id, LIKE_COUNT, delta, err)
            raise

    async def has_liked(self, post_id: str, user_id: str) -> bool:
        return await self.store.find(LIKES, like_id(post_id, user_id)) is not None

    async def get_like(self, post_id: str, user_id: str) -> Like | None:
        document = await self.store.find(LIKES, like_id(post_id, user_id))
        return Like.from_document(document) if document is not None else None

    async def count_likes(self, post_id: str) -> int:
        """Count ledger records for a post, independent of the denormalized counter."""
        return await self.store.count(Query.build(LIKES, [FieldFilter("post_id", "==", post_id)]))

    async def liked_posts(self, user_id: str) -> list[Post]:
        """Posts the user has liked, most recently liked first; deleted posts are skipped."""
        return await self._resolve(await self.store.query(self._user_query(user_id)))

    async def watch_liked_posts(self, user_id: str, on_change: LikedPostsCallback) -> Subscription:
        """Live version of :meth:`liked_posts`."""

        async def _deliver(documents: list[Document]) -> None:
            result = on_change(await self._resolve(documents))
            if result is not None:
                await result

        return await self.store.subscribe(self._user_query(user_id), _deliver)

    async def _resolve(self, likes: list[Document]) -> list[Post]:
        posts = await asyncio.gather(*(self.posts.find_post(like.data["post_id"]) for like in likes))
        return [post for post in posts if post is not None]

    @staticmethod
    def _user_query(user_id: str) -> Query:
        return Query.build(
            LIKES,
            [FieldFilter("user_id", "==", user_id)],
            (OrderBy("created_at", descending=True),),
        )
