"""Async database engine and session configuration."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from confide.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


_engine: AsyncEngine | None = None


def get_engine(url: str | None = None) -> AsyncEngine:
    """Return the process-wide engine, creating it on first use.

    Passing ``url`` always builds a fresh engine (tests use ``sqlite+aiosqlite://``).
    """
    global _engine
    if url is None and _engine is not None:
        return _engine

    database_url = url or settings.database_url
    if not database_url.startswith("sqlite"):
        raise ValueError(f"Unsupported database URL {database_url!r}: only sqlite+aiosqlite is supported")
    kwargs: dict[str, object] = {
        "echo": settings.sql_debug,
        "connect_args": {"check_same_thread": False},
    }
    if database_url.rstrip("/").endswith(":memory:") or database_url.endswith("://"):
        # One shared connection, otherwise every checkout sees an empty database.
        kwargs["poolclass"] = StaticPool

    engine = create_async_engine(database_url, **kwargs)
    if url is None:
        _engine = engine
    return engine


def get_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to ``engine``."""
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


async def create_tables(engine: AsyncEngine) -> None:
    """Create all document tables."""
    # Ensure model modules are imported so that metadata is populated.
    import confide.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables(engine: AsyncEngine) -> None:
    """Drop all document tables."""
    import confide.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
