"""Passive notification records; delivery to devices is out of scope."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from confide.core.errors import ConfideError, PermissionDeniedError
from confide.db.time import MonotonicClock, to_iso
from confide.repositories.base import NOTIFICATIONS
from confide.schemas.notification import Notification, NotificationType
from confide.schemas.post import Post
from confide.services.identity import Identity
from confide.store.base import Document, DocumentStore, FieldFilter, OrderBy, Query, Subscription

logger = logging.getLogger(__name__)

NotificationsCallback = Callable[[list[Notification]], Awaitable[None] | None]


def snippet(text: str, length: int) -> str:
    """Shorten ``text`` to at most ``length`` characters, marking the cut."""
    text = " ".join(text.split())
    if len(text) <= length:
        return text
    return text[: max(length - 1, 0)].rstrip() + "…"


class NotificationRepository:
    """Append notifications and let their recipients read them."""

    def __init__(
        self,
        store: DocumentStore,
        clock: MonotonicClock | None = None,
        snippet_length: int = 100,
    ) -> None:
        self.store = store
        self.clock = clock or MonotonicClock()
        self.snippet_length = snippet_length

    async def notify(
        self,
        recipient_id: str,
        type: NotificationType,
        post_id: str,
        content: str,
        actor_name: str,
    ) -> str:
        document = {
            "recipient_id": recipient_id,
            "type": NotificationType(type).value,
            "post_id": post_id,
            "content": snippet(content, self.snippet_length),
            "actor_name": actor_name,
            "created_at": to_iso(self.clock.now()),
            "read": False,
        }
        notification_id = await self.store.create(NOTIFICATIONS, document)
        logger.debug("Queued %s notification %s for %s", document["type"], notification_id, recipient_id)
        return notification_id

    async def notify_author(
        self,
        post: Post,
        type: NotificationType,
        content: str,
        actor: Identity,
    ) -> str | None:
        """Notify the author of ``post`` about an action by someone else.

        Failures are logged and dropped: the action that triggered the
        notification has already succeeded.
        """
        if not post.author_id or post.author_id == actor.user_id:
            return None
        try:
            return await self.notify(post.author_id, type, post.id, content, actor.public_name)
        except ConfideError as err:
            logger.warning("Could not notify %s about post %s: %s", post.author_id, post.id, err)
            return None

    async def mark_read(self, notification_id: str, actor: Identity) -> None:
        """Mark one notification read; only its recipient may do so."""
        notification = Notification.from_document(await self.store.get(NOTIFICATIONS, notification_id))
        if notification.recipient_id != actor.user_id:
            raise PermissionDeniedError("Only the recipient can update this notification")
        if not notification.read:
            await self.store.update(NOTIFICATIONS, notification_id, {"read": True})

    async def mark_all_read(self, actor: Identity) -> int:
        """Mark every unread notification of ``actor`` read; return how many changed."""
        unread = await self.store.query(self._query(actor.user_id, unread_only=True))
        for document in unread:
            await self.store.update(NOTIFICATIONS, document.id, {"read": True})
        return len(unread)

    async def fetch_notifications(self, user_id: str, limit: int | None = None) -> list[Notification]:
        documents = await self.store.query(self._query(user_id, limit=limit))
        return [Notification.from_document(document) for document in documents]

    async def list_notifications(
        self,
        user_id: str,
        on_change: NotificationsCallback,
    ) -> Subscription:
        """Subscribe to a user's notifications, newest first."""

        def _deliver(documents: list[Document]) -> Awaitable[None] | None:
            return on_change([Notification.from_document(document) for document in documents])

        return await self.store.subscribe(self._query(user_id), _deliver)

    async def unread_count(self, user_id: str) -> int:
        return await self.store.count(self._query(user_id, unread_only=True))

    @staticmethod
    def _query(user_id: str, unread_only: bool = False, limit: int | None = None) -> Query:
        filters = [FieldFilter("recipient_id", "==", user_id)]
        if unread_only:
            filters.append(FieldFilter("read", "==", False))
        return Query.build(NOTIFICATIONS, filters, (OrderBy("created_at", descending=True),), limit)
