"""Document store persisted through SQLAlchemy's async ORM.

Documents are JSON rows; integer fields also get a row in the counter table
and are only changed with ``SET value = value + :delta`` so that concurrent
writers cannot lose updates. Only SQLite (through aiosqlite) is supported.
"""

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
import uuid
from collections.abc import AsyncIterator, Mapping
from typing import Any

from sqlalchemy import case, delete, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from confide.core.errors import DocumentExistsError, NotFoundError, TransientStoreError
from confide.db.session import create_tables, get_engine, get_sessionmaker
from confide.models import DocumentCounter, StoredDocument
from confide.store.base import Document, DocumentStore, Query
from confide.store.query import apply_query

logger = logging.getLogger(__name__)


class SqlDocumentStore(DocumentStore):
    """Document store over the ``document`` and ``document_counter`` tables."""

    def __init__(self, engine: AsyncEngine) -> None:
        super().__init__()
        self.engine = engine
        self._sessionmaker: async_sessionmaker[AsyncSession] = get_sessionmaker(engine)
        # SQLite has a single writer and tests share one connection.
        self._lock = asyncio.Lock()

    @classmethod
    async def connect(cls, url: str | None = None) -> SqlDocumentStore:
        """Build a store for ``url`` (or the configured database) and ensure tables exist."""
        engine = get_engine(url)
        await create_tables(engine)
        return cls(engine)

    async def close(self) -> None:
        await self.engine.dispose()

    @contextlib.asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._lock:
            try:
                async with self._sessionmaker() as session, session.begin():
                    yield session
            except IntegrityError:
                raise
            except DBAPIError as err:
                logger.warning("Document store operation failed: %s", err)
                raise TransientStoreError("The document store is unavailable, try again") from err

    async def _counters(
        self,
        session: AsyncSession,
        collection: str,
        doc_id: str | None = None,
    ) -> dict[str, dict[str, int]]:
        stmt = select(DocumentCounter).where(DocumentCounter.collection == collection)
        if doc_id is not None:
            stmt = stmt.where(DocumentCounter.doc_id == doc_id)
        result = await session.execute(stmt)
        counters: dict[str, dict[str, int]] = {}
        for row in result.scalars():
            counters.setdefault(row.doc_id, {})[row.field] = int(row.value)
        return counters

    @staticmethod
    def _to_document(row: StoredDocument, counters: Mapping[str, int] | None) -> Document:
        data = copy.deepcopy(row.data or {})
        if counters:
            data.update(counters)
        return Document(id=row.doc_id, data=data)

    async def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        doc_id: str | None = None,
    ) -> str:
        new_id = doc_id or uuid.uuid4().hex
        try:
            async with self._session() as session:
                session.add(
                    StoredDocument(collection=collection, doc_id=new_id, data=copy.deepcopy(dict(data)))
                )
                session.add_all(
                    DocumentCounter(collection=collection, doc_id=new_id, field=field, value=value)
                    for field, value in data.items()
                    if isinstance(value, int) and not isinstance(value, bool)
                )
                await session.flush()
        except IntegrityError as err:
            raise DocumentExistsError(collection, new_id) from err
        await self._publish(collection)
        return new_id

    async def find(self, collection: str, doc_id: str) -> Document | None:
        async with self._session() as session:
            row = await session.get(StoredDocument, (collection, doc_id))
            if row is None:
                return None
            counters = await self._counters(session, collection, doc_id)
            return self._to_document(row, counters.get(doc_id))

    async def query(self, query: Query) -> list[Document]:
        async with self._session() as session:
            result = await session.execute(
                select(StoredDocument).where(StoredDocument.collection == query.collection)
            )
            rows = list(result.scalars())
            counters = await self._counters(session, query.collection)
        documents = [self._to_document(row, counters.get(row.doc_id)) for row in rows]
        return apply_query(documents, query)

    async def update(self, collection: str, doc_id: str, partial: Mapping[str, Any]) -> None:
        async with self._session() as session:
            row = await session.get(StoredDocument, (collection, doc_id))
            if row is None:
                raise NotFoundError(collection, doc_id)
            merged = dict(row.data or {})
            merged.update(copy.deepcopy(dict(partial)))
            # Reassign so the JSON column is flagged dirty.
            row.data = merged
            for field, value in partial.items():
                if isinstance(value, int) and not isinstance(value, bool):
                    await session.execute(
                        update(DocumentCounter)
                        .where(
                            DocumentCounter.collection == collection,
                            DocumentCounter.doc_id == doc_id,
                            DocumentCounter.field == field,
                        )
                        .values(value=value)
                    )
        await self._publish(collection)

    async def delete(self, collection: str, doc_id: str) -> bool:
        async with self._session() as session:
            result = await session.execute(
                delete(StoredDocument).where(
                    StoredDocument.collection == collection,
                    StoredDocument.doc_id == doc_id,
                )
            )
            await session.execute(
                delete(DocumentCounter).where(
                    DocumentCounter.collection == collection,
                    DocumentCounter.doc_id == doc_id,
                )
            )
            removed = bool(result.rowcount)
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
        try:
            async with self._session() as session:
                value = await self._increment_counter(session, collection, doc_id, field, delta, floor)
        except IntegrityError as err:
            # Another process seeded the same counter first.
            raise TransientStoreError("Counter changed concurrently, try again") from err
        await self._publish(collection)
        return value

    async def _increment_counter(
        self,
        session: AsyncSession,
        collection: str,
        doc_id: str,
        field: str,
        delta: int,
        floor: int | None,
    ) -> int:
        where = (
            DocumentCounter.collection == collection,
            DocumentCounter.doc_id == doc_id,
            DocumentCounter.field == field,
        )
        new_value: Any = DocumentCounter.value + delta
        if floor is not None:
            new_value = case((DocumentCounter.value + delta < floor, floor), else_=new_value)

        result = await session.execute(update(DocumentCounter).where(*where).values(value=new_value))
        if not result.rowcount:
            row = await session.get(StoredDocument, (collection, doc_id))
            if row is None:
                raise NotFoundError(collection, doc_id)
            # First increment of this field: seed the counter from the document body.
            initial = int((row.data or {}).get(field) or 0) + delta
            if floor is not None:
                initial = max(initial, floor)
            session.add(DocumentCounter(collection=collection, doc_id=doc_id, field=field, value=initial))
            await session.flush()
            return initial

        result = await session.execute(select(DocumentCounter.value).where(*where))
        return int(result.scalar_one())
