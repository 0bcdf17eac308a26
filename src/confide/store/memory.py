"""In-process document store used for development and tests."""

from __future__ import annotations

import asyncio
import copy
import uuid
from collections.abc import Mapping
from typing import Any

from confide.core.errors import DocumentExistsError, NotFoundError
from confide.store.base import Document, DocumentStore, ObjectStorage, Query
from confide.store.query import apply_query


class MemoryDocumentStore(DocumentStore):
    """Dictionary-backed store with the same semantics as the SQL backend."""

    def __init__(self) -> None:
        super().__init__()
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    async def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        doc_id: str | None = None,
    ) -> str:
        async with self._lock:
            documents = self._collection(collection)
            new_id = doc_id or uuid.uuid4().hex
            if new_id in documents:
                raise DocumentExistsError(collection, new_id)
            documents[new_id] = copy.deepcopy(dict(data))
        await self._publish(collection)
        return new_id

    async def find(self, collection: str, doc_id: str) -> Document | None:
        async with self._lock:
            data = self._collection(collection).get(doc_id)
            if data is None:
                return None
            return Document(id=doc_id, data=copy.deepcopy(data))

    async def query(self, query: Query) -> list[Document]:
        async with self._lock:
            snapshot = [
                Document(id=doc_id, data=copy.deepcopy(data))
                for doc_id, data in self._collection(query.collection).items()
            ]
        return apply_query(snapshot, query)

    async def update(self, collection: str, doc_id: str, partial: Mapping[str, Any]) -> None:
        async with self._lock:
            documents = self._collection(collection)
            if doc_id not in documents:
                raise NotFoundError(collection, doc_id)
            documents[doc_id].update(copy.deepcopy(dict(partial)))
        await self._publish(collection)

    async def delete(self, collection: str, doc_id: str) -> bool:
        async with self._lock:
            removed = self._collection(collection).pop(doc_id, None) is not None
        if removed:
            await self._publish(collection)
        return removed

    async def atomic_increment(
        self,
        collection: str,
        doc_id: str,
        field: str,
        delta: int,
        floor: int | None = None,
    ) -> int:
        async with self._lock:
            data = self._collection(collection).get(doc_id)
            if data is None:
                raise NotFoundError(collection, doc_id)
            value = int(data.get(field) or 0) + delta
            if floor is not None:
                value = max(value, floor)
            data[field] = value
        await self._publish(collection)
        return value


class MemoryObjectStorage(ObjectStorage):
    """Keeps uploaded blobs in memory and hands out ``memory://`` URLs."""

    def __init__(self, base_url: str = "memory://objects") -> None:
        self.base_url = base_url.rstrip("/")
        self.objects: dict[str, tuple[bytes, str]] = {}

    async def upload(self, data: bytes, content_type: str = "application/octet-stream") -> str:
        key = uuid.uuid4().hex
        self.objects[key] = (bytes(data), content_type)
        return f"{self.base_url}/{key}"
