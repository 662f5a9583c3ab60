"""
Async PostgreSQL access for courses, registrations, responses and the
notification log (SQLAlchemy Core over asyncpg).

One engine per process, created lazily. The sync URL variant is shared by
Alembic and the APScheduler job store.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

_engine: AsyncEngine | None = None

# Hosting providers still hand out the legacy "postgres://" scheme
_PLAIN_SCHEMES = ("postgresql://", "postgres://")
_ASYNC_SCHEME = "postgresql+asyncpg://"


def _raw_database_url() -> str:
    return os.environ.get("DATABASE_URL", "").strip()


def _with_scheme(database_url: str, scheme: str) -> str:
    for prefix in (_ASYNC_SCHEME, *_PLAIN_SCHEMES):
        if database_url.startswith(prefix):
            return scheme + database_url[len(prefix) :]
    return database_url


def get_async_database_url() -> str:
    """DATABASE_URL rewritten for the asyncpg driver."""
    database_url = _raw_database_url()
    if not database_url:
        raise ValueError("DATABASE_URL environment variable must be set.")
    return _with_scheme(database_url, _ASYNC_SCHEME)


def get_sync_database_url(required: bool = True) -> str:
    """
    DATABASE_URL for synchronous clients (Alembic, APScheduler job store).

    Returns "" when unset and not required.
    """
    database_url = _raw_database_url()
    if not database_url:
        if required:
            raise ValueError("DATABASE_URL must be set for migrations")
        return ""
    return _with_scheme(database_url, "postgresql://")


def get_engine() -> AsyncEngine:
    """Get or create the async SQLAlchemy engine singleton."""
    global _engine
    if _engine is None:
        _engine = create_async_engine(
            get_async_database_url(),
            echo=os.environ.get("SQL_ECHO", "").lower() == "true",
            pool_size=int(os.environ.get("DB_POOL_SIZE", "5")),
            max_overflow=10,
            pool_timeout=30,
            pool_recycle=1800,
            pool_pre_ping=True,
        )
    return _engine


@asynccontextmanager
async def get_connection() -> AsyncGenerator[AsyncConnection, None]:
    """
    Read-only style access. Nothing is committed.

    Usage:
        async with get_connection() as conn:
            rows = await get_finished_courses(conn)
    """
    async with get_engine().connect() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncGenerator[AsyncConnection, None]:
    """Connection inside a transaction: commit on success, rollback on exception."""
    async with get_engine().begin() as conn:
        yield conn


async def close_engine() -> None:
    """Dispose of the pool. Called from the FastAPI lifespan on shutdown."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None


def is_configured() -> bool:
    return bool(_raw_database_url())
