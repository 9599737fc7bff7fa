"""
TravelStory Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
How:   `Database` owns one async engine with connection pooling and hands
       out sessions that auto-commit on success and auto-roll-back on error.
       It is constructed by the service context at app creation and
       disposed at shutdown; nothing here is created at import time.
Who:   Route handlers receive sessions via `Depends(get_db_session)`.

Connection Pooling Strategy (PostgreSQL):
    pool_size / max_overflow from settings, pool_pre_ping on,
    pool_recycle=3600. SQLite URLs (tests, local runs) use SQLAlchemy's
    default pool for the driver and ignore the sizing options.
"""

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Dict

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from travelstory.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models share this metadata; Alembic and `Database.create_all()` read it.
    """
    pass


def _json_serializer(value: Any) -> str:
    # Keep non-ASCII place names readable in the stored JSON so that
    # substring search over visible_location matches them.
    return json.dumps(value, ensure_ascii=False)


class Database:
    """
    Store handle: one engine plus the session factory bound to it.

    Lifecycle:
        database = Database(settings)     # no connection is opened yet
        await database.create_all()       # optional, dev/test only
        async with database.session() as session: ...
        await database.dispose()          # closes pooled connections
    """

    def __init__(self, settings: Settings):
        engine_kwargs: Dict[str, Any] = {
            "echo": settings.log_level == "DEBUG",
            "json_serializer": _json_serializer,
        }
        if not settings.is_sqlite:
            engine_kwargs.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_pre_ping=settings.db_pool_pre_ping,
                pool_recycle=3600,
            )

        self.engine: AsyncEngine = create_async_engine(settings.database_url, **engine_kwargs)

        # expire_on_commit=False: attributes stay loaded after commit so
        # handlers can serialize ORM objects outside the transaction.
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provides a session that commits on success and rolls back on any error.

        The exception is re-raised after rollback so the global handlers
        can respond.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_all(self) -> None:
        """Creates every table known to `Base.metadata` (idempotent)."""
        # Import registers the models with Base.metadata
        from travelstory import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def ping(self) -> bool:
        """Runs SELECT 1; used by the health check."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    async def dispose(self) -> None:
        """Gracefully closes all connections in the pool."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    The session comes from the `Database` of the service context attached
    to the running app, so each app instance (and each test) has its own
    engine.

    Example usage in a route:
        @router.get("/get-all-stories")
        async def get_all_stories(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.context.database
    async with database.session() as session:
        yield session
