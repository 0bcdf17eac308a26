"""Live feed assembly and client-side search.

A :class:`FeedAssembler` keeps the materialized, ordered list of posts for one
filter and sort, re-deriving it on every store change notification and pushing
the new list to its observers. Search is a linear scan over whatever the feed
has materialized (one page), not a server-side index: posts beyond the page
limit are never found.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable

from confide.core.settings import settings
from confide.repositories.post_repo import PostRepository, sort_posts
from confide.schemas.post import Category, Post, PostFilter, PostSort
from confide.store.base import Subscription

logger = logging.getLogger(__name__)

FeedObserver = Callable[[list[Post]], Awaitable[None] | None]


def search_posts(posts: Iterable[Post], text: str, category: Category | None = None) -> list[Post]:
    """Case-insensitive substring match over content and category name.

    Order is preserved. Blank search text matches nothing.
    """
    needle = text.strip().lower()
    if not needle:
        return []
    return [
        post
        for post in posts
        if (category is None or post.category == category)
        and (needle in post.content.lower() or needle in post.category.value.lower())
    ]


class FeedAssembler:
    """Materialized view of one feed query, kept current by a store subscription."""

    def __init__(
        self,
        posts: PostRepository,
        post_filter: PostFilter | None = None,
        sort: PostSort = PostSort.RECENCY,
        limit: int | None = None,
    ) -> None:
        self.posts = posts
        self.post_filter = post_filter or PostFilter()
        self.sort = sort
        self.limit = limit
        self.version = 0
        self._items: list[Post] = []
        self._observers: list[FeedObserver] = []
        self._subscription: Subscription | None = None

    @property
    def items(self) -> list[Post]:
        return list(self._items)

    @property
    def started(self) -> bool:
        return self._subscription is not None and self._subscription.active

    async def start(self) -> None:
        """Establish the store subscription; the first sequence arrives before this returns."""
        if self.started:
            return
        self._subscription = await self.posts.list_posts(
            self.post_filter,
            self.sort,
            self._on_snapshot,
            limit=self.limit,
        )

    def close(self) -> None:
        """Tear down the subscription; no observer is called afterwards."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
        self._observers.clear()

    def add_observer(self, observer: FeedObserver) -> Subscription:
        """Register ``observer`` for every future sequence."""
        self._observers.append(observer)

        def _cancel() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return Subscription(_cancel)

    def search(self, text: str, category: Category | None = None) -> list[Post]:
        return search_posts(self._items, text, category)

    async def _on_snapshot(self, posts: list[Post]) -> None:
        self._items = sort_posts(posts, self.sort)
        self.version += 1
        snapshot = self.items
        for observer in list(self._observers):
            try:
                result = observer(list(snapshot))
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Feed observer failed")

    async def __aenter__(self) -> FeedAssembler:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


class LatestSnapshot:
    """Single-slot mailbox between a feed and a slow consumer.

    A snapshot that arrives before the previous one was taken replaces it,
    so a consumer that falls behind only ever sees the newest feed.
    """

    def __init__(self) -> None:
        self._value: list[Post] | None = None
        self._ready = asyncio.Event()
        self.dropped = 0

    @property
    def pending(self) -> bool:
        return self._ready.is_set()

    def put(self, posts: list[Post]) -> None:
        if self._ready.is_set():
            self.dropped += 1
        self._value = posts
        self._ready.set()

    async def get(self) -> list[Post]:
        await self._ready.wait()
        self._ready.clear()
        posts, self._value = self._value, None
        return posts or []


class RecentSearches:
    """Most recent distinct search queries, newest first."""

    def __init__(self, limit: int | None = None) -> None:
        self.limit = limit if limit is not None else settings.recent_search_limit
        self._items: list[str] = []

    @property
    def items(self) -> list[str]:
        return list(self._items)

    def add(self, text: str) -> None:
        text = text.strip()
        if not text:
            return
        if text in self._items:
            self._items.remove(text)
        self._items.insert(0, text)
        del self._items[self.limit :]

    def clear(self) -> None:
        self._items.clear()


class SearchHistory:
    """Per-user :class:`RecentSearches`, kept in process memory."""

    def __init__(self, limit: int | None = None) -> None:
        self.limit = limit if limit is not None else settings.recent_search_limit
        self._by_user: dict[str, RecentSearches] = {}

    def for_user(self, user_id: str) -> RecentSearches:
        if user_id not in self._by_user:
            self._by_user[user_id] = RecentSearches(self.limit)
        return self._by_user[user_id]
