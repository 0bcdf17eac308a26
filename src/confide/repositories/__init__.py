"""Repositories over the document store."""

from __future__ import annotations

from dataclasses import dataclass

from confide.db.time import MonotonicClock
from confide.store.base import DocumentStore, ObjectStorage

from .comment_repo import CommentRepository
from .like_ledger import LikeLedger
from .notification_repo import NotificationRepository
from .post_repo import PostRepository
from .user_repo import UserRepository

__all__ = [
    "CommentRepository",
    "LikeLedger",
    "NotificationRepository",
    "PostRepository",
    "Repositories",
    "UserRepository",
    "build_repositories",
]


@dataclass
class Repositories:
    """All repositories wired to one store and one clock."""

    posts: PostRepository
    likes: LikeLedger
    comments: CommentRepository
    users: UserRepository
    notifications: NotificationRepository


def build_repositories(
    store: DocumentStore,
    clock: MonotonicClock | None = None,
    storage: ObjectStorage | None = None,
    snippet_length: int = 100,
) -> Repositories:
    """Wire the repositories together around ``store``."""
    clock = clock or MonotonicClock()
    posts = PostRepository(store, clock)
    notifications = NotificationRepository(store, clock, snippet_length=snippet_length)
    return Repositories(
        posts=posts,
        likes=LikeLedger(store, posts, notifications, clock),
        comments=CommentRepository(store, posts, notifications, clock),
        users=UserRepository(store, clock, storage),
        notifications=notifications,
    )
