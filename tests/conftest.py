# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import AsyncIterator, Callable, Iterator
from datetime import UTC, datetime, timedelta
from itertools import count

import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient

os.environ.setdefault("STORE_BACKEND", "memory")

from confide.core.security import create_access_token
from confide.db.time import MonotonicClock
from confide.main import app as fastapi_app
from confide.repositories import Repositories, build_repositories
from confide.schemas.post import Category, PostCreate
from confide.services.identity import Identity
from confide.store import DocumentStore, MemoryDocumentStore, MemoryObjectStorage, SqlDocumentStore

TEST_DB_URL = "sqlite+aiosqlite://"

_EPOCH = datetime(2024, 1, 1, tzinfo=UTC)


def stepping_source(step: timedelta = timedelta(seconds=1)) -> Callable[[], datetime]:
    """Clock source that moves forward by ``step`` on every reading."""
    ticks = count()
    return lambda: _EPOCH + step * next(ticks)


@pytest_asyncio.fixture(params=["memory", "sql"])
async def store(request: pytest.FixtureRequest) -> AsyncIterator[DocumentStore]:
    """Every repository test runs against both backends."""
    if request.param == "memory":
        yield MemoryDocumentStore()
        return
    sql_store = await SqlDocumentStore.connect(TEST_DB_URL)
    try:
        yield sql_store
    finally:
        await sql_store.close()


@pytest.fixture()
def memory_store() -> MemoryDocumentStore:
    return MemoryDocumentStore()


@pytest.fixture()
def clock() -> MonotonicClock:
    return MonotonicClock(source=stepping_source())


@pytest.fixture()
def storage() -> MemoryObjectStorage:
    return MemoryObjectStorage()


@pytest.fixture()
def repos(store: DocumentStore, clock: MonotonicClock, storage: MemoryObjectStorage) -> Repositories:
    return build_repositories(store, clock=clock, storage=storage)


@pytest.fixture()
def alice() -> Identity:
    return Identity(user_id="user-alice", display_name="Alice")


@pytest.fixture()
def bob() -> Identity:
    return Identity(user_id="user-bob", display_name="Bob")


@pytest.fixture()
def anon() -> Identity:
    return Identity(user_id="anon-7f3a", is_anonymous=True)


def _post_data(
    content: str = "I sleep in the library",
    category: Category = Category.CAMPUS_LIFE,
    is_anonymous: bool = False,
    **extra: object,
) -> PostCreate:
    return PostCreate(content=content, category=category, is_anonymous=is_anonymous, **extra)


@pytest.fixture()
def post_data() -> Callable[..., PostCreate]:
    """Factory for valid post payloads; keyword arguments override the defaults."""
    return _post_data


@pytest_asyncio.fixture()
async def post_id(repos: Repositories, alice: Identity) -> str:
    """A post authored by alice."""
    return await repos.posts.create_post(_post_data(), alice)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def app_store(app: FastAPI) -> Iterator[MemoryDocumentStore]:
    """Install a fresh in-memory store before the app starts up."""
    app_store = MemoryDocumentStore()
    app.state.store = app_store
    try:
        yield app_store
    finally:
        app.state.store = None


@pytest.fixture()
def client(app: FastAPI, app_store: MemoryDocumentStore) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def auth_headers() -> Callable[[Identity], dict[str, str]]:
    """Build bearer headers for any identity."""

    def _headers(identity: Identity) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(identity)}"}

    return _headers


@pytest.fixture()
def alice_headers(auth_headers, alice: Identity) -> dict[str, str]:
    return auth_headers(alice)


@pytest.fixture()
def bob_headers(auth_headers, bob: Identity) -> dict[str, str]:
    return auth_headers(bob)
