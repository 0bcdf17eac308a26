# tests/test_store_sql.py
"""SQLite specifics of the SQL document store."""

from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from confide.core.errors import TransientStoreError
from confide.db.session import get_engine
from confide.models import DocumentCounter
from confide.store import SqlDocumentStore


@pytest_asyncio.fixture()
async def sql_store():
    store = await SqlDocumentStore.connect("sqlite+aiosqlite://")
    try:
        yield store
    finally:
        await store.close()


@pytest.mark.asyncio
async def test_create_seeds_counter_rows(sql_store) -> None:
    doc_id = await sql_store.create(
        "posts",
        {"content": "hi", "like_count": 0, "comment_count": 2, "is_anonymous": True},
    )

    async with sql_store._sessionmaker() as session:
        result = await session.execute(select(DocumentCounter).where(DocumentCounter.doc_id == doc_id))
        counters = {row.field: row.value for row in result.scalars()}

    assert counters == {"like_count": 0, "comment_count": 2}


@pytest.mark.asyncio
async def test_concurrent_seed_is_reported_as_retryable(sql_store) -> None:
    doc_id = await sql_store.create("posts", {"content": "hi"})
    racing = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed")))

    with patch.object(sql_store, "_increment_counter", racing):
        with pytest.raises(TransientStoreError):
            await sql_store.atomic_increment("posts", doc_id, "share_count", 1)


@pytest.mark.parametrize(
    "url",
    ["postgresql+asyncpg://confide@localhost/confide", "mysql+aiomysql://confide@localhost/confide"],
)
def test_only_sqlite_urls_are_accepted(url) -> None:
    with pytest.raises(ValueError, match="only sqlite"):
        get_engine(url)
