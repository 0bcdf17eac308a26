"""Append-only comments on posts."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from confide.core.errors import ConfideError
from confide.db.time import MonotonicClock, to_iso
from confide.repositories.base import COMMENTS, report_counter_drift, validate_input
from confide.repositories.notification_repo import NotificationRepository
from confide.repositories.post_repo import COMMENT_COUNT, PostRepository
from confide.schemas.comment import Comment, CommentCreate
from confide.schemas.notification import NotificationType
from confide.services.identity import Identity
from confide.store.base import Document, DocumentStore, FieldFilter, OrderBy, Query, Subscription

logger = logging.getLogger(__name__)

CommentsCallback = Callable[[list[Comment]], Awaitable[None] | None]

NEWEST_FIRST = (OrderBy("created_at", descending=True),)


class CommentRepository:
    """Add comments and read them back newest first."""

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

    async def add_comment(self, post_id: str, actor: Identity, content: str) -> Comment:
        """Append a comment and bump the parent post's comment count.

        The comment is written first; if the counter increment then fails, the
        comment stays and the counter drifts by one.

        Raises:
            ValidationError: If the content is blank or longer than 200 characters.
            NotFoundError: If the post does not exist.
        """
        payload = validate_input(CommentCreate, {"content": content})
        post = await self.posts.get_post(post_id)
        document = {
            "post_id": post_id,
            "author_id": actor.user_id,
            "username": actor.public_name,
            "content": payload.content,
            "is_anonymous": actor.is_anonymous,
            "created_at": to_iso(self.clock.now()),
        }
        comment_id = await self.store.create(COMMENTS, document)
        try:
            await self.posts.adjust_counter(post_id, COMMENT_COUNT, 1)
        except ConfideError as err:
            report_counter_drift(post_id, COMMENT_COUNT, 1, err)
            raise
        logger.debug("User %s commented %s on post %s", actor.user_id, comment_id, post_id)

        if self.notifications is not None:
            await self.notifications.notify_author(
                post,
                NotificationType.NEW_COMMENT,
                payload.content,
                actor,
            )
        return Comment.from_document(Document(id=comment_id, data=document))

    async def fetch_comments(self, post_id: str) -> list[Comment]:
        documents = await self.store.query(self._post_query(post_id))
        return [Comment.from_document(document) for document in documents]

    async def list_comments(self, post_id: str, on_change: CommentsCallback) -> Subscription:
        """Subscribe to a post's comments, most recent first."""

        def _deliver(documents: list[Document]) -> Awaitable[None] | None:
            return on_change([Comment.from_document(document) for document in documents])

        return await self.store.subscribe(self._post_query(post_id), _deliver)

    async def list_user_comments(self, user_id: str) -> list[Comment]:
        """Every comment written by ``user_id``, across all posts, newest first."""
        documents = await self.store.query(
            Query.build(COMMENTS, [FieldFilter("author_id", "==", user_id)], NEWEST_FIRST)
        )
        return [Comment.from_document(document) for document in documents]

    async def count_comments(self, post_id: str) -> int:
        return await self.store.count(self._post_query(post_id))

    @staticmethod
    def _post_query(post_id: str) -> Query:
        return Query.build(COMMENTS, [FieldFilter("post_id", "==", post_id)], NEWEST_FIRST)
