"""Abstract document store consumed by the repositories.

The store is the only shared resource: posts, comments, likes, users and
notifications all live in it as schemaless documents grouped by collection.
Concrete backends implement the CRUD primitives; change notification is shared
here so every backend behaves the same way for live feeds.
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from confide.core.errors import NotFoundError

logger = logging.getLogger(__name__)

OPERATORS = frozenset({"==", "!=", "<", "<=", ">", ">=", "in", "array-contains"})


@dataclass(frozen=True)
class Document:
    """A snapshot of one stored document."""

    id: str
    data: dict[str, Any]

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True)
class FieldFilter:
    """Predicate on a single document field."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class OrderBy:
    """One sort key; later keys break ties of earlier ones."""

    field: str
    descending: bool = True


@dataclass(frozen=True)
class Query:
    """Collection query: filters are ANDed, then ordered, then limited."""

    collection: str
    filters: tuple[FieldFilter, ...] = ()
    order: tuple[OrderBy, ...] = ()
    limit: int | None = None

    @classmethod
    def build(
        cls,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order: Sequence[OrderBy] = (),
        limit: int | None = None,
    ) -> Query:
        return cls(collection=collection, filters=tuple(filters), order=tuple(order), limit=limit)


ChangeCallback = Callable[[list[Document]], Awaitable[None] | None]


class Subscription:
    """Teardown handle returned by subscribe calls.

    Cancelling is idempotent. Once cancelled, no further snapshots are delivered,
    even if a change notification is already in progress.
    """

    def __init__(self, cancel: Callable[[], None] | None = None) -> None:
        self._cancel = cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._cancel is not None:
            self._cancel()

    __call__ = unsubscribe


@dataclass(eq=False)
class _Listener:
    query: Query
    callback: ChangeCallback
    handle: Subscription = field(default_factory=Subscription)

    async def deliver(self, snapshot: list[Document]) -> None:
        if not self.handle.active:
            return
        result = self.callback(snapshot)
        if inspect.isawaitable(result):
            await result


class DocumentStore(ABC):
    """Async CRUD, query and subscription capability over named collections."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[_Listener]] = defaultdict(list)

    @abstractmethod
    async def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        doc_id: str | None = None,
    ) -> str:
        """Insert a document and return its identifier.

        Raises:
            DocumentExistsError: If ``doc_id`` is given and already taken.
        """

    @abstractmethod
    async def find(self, collection: str, doc_id: str) -> Document | None:
        """Return the document or ``None`` when it does not exist."""

    @abstractmethod
    async def query(self, query: Query) -> list[Document]:
        """Return a one-shot snapshot of the documents matching ``query``."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, partial: Mapping[str, Any]) -> None:
        """Merge ``partial`` into an existing document.

        Raises:
            NotFoundError: If the document does not exist.
        """

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        """Remove a document; return False if there was nothing to remove."""

    @abstractmethod
    async def atomic_increment(
        self,
        collection: str,
        doc_id: str,
        field: str,
        delta: int,
        floor: int | None = None,
    ) -> int:
        """Add ``delta`` to a numeric field in one store-side step.

        The result is clamped to ``floor`` when given. Returns the new value.

        Raises:
            NotFoundError: If the document does not exist.
        """

    async def get(self, collection: str, doc_id: str) -> Document:
        """Return the document or raise ``NotFoundError``."""
        document = await self.find(collection, doc_id)
        if document is None:
            raise NotFoundError(collection, doc_id)
        return document

    async def count(self, query: Query) -> int:
        return len(await self.query(query))

    async def subscribe(self, query: Query, on_change: ChangeCallback) -> Subscription:
        """Deliver the current snapshot, then a fresh one after every write.

        The initial snapshot is delivered before this coroutine returns. The caller
        owns the returned handle and must cancel it when its view is discarded.
        """
        listener = _Listener(query=query, callback=on_change)
        listeners = self._listeners[query.collection]

        def _cancel() -> None:
            if listener in listeners:
                listeners.remove(listener)

        listener.handle = Subscription(_cancel)
        listeners.append(listener)
        try:
            await listener.deliver(await self.query(query))
        except BaseException:
            listener.handle.unsubscribe()
            raise
        return listener.handle

    def subscriber_count(self, collection: str) -> int:
        return len(self._listeners.get(collection, ()))

    async def _publish(self, collection: str) -> None:
        """Re-run every live query on ``collection`` and push the results."""
        for listener in list(self._listeners.get(collection, ())):
            if not listener.handle.active:
                continue
            try:
                snapshot = await self.query(listener.query)
                await listener.deliver(snapshot)
            except Exception:
                # One broken listener must not starve the others or fail the writer.
                logger.exception("Change listener on %s failed", collection)


class ObjectStorage(ABC):
    """Blob storage used for avatars."""

    @abstractmethod
    async def upload(self, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Store ``data`` and return a URL that can be saved on a profile."""
