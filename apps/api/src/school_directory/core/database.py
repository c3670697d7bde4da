"""
Database Configuration

Async SQLAlchemy engine and session factory.

The engine and session factory are created by the application lifespan and
stored on ``app.state``; request handlers receive sessions through the
``get_db`` dependency rather than a module-level global.
"""

import logging
from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from school_directory.core.config import settings
from school_directory.core.exceptions import SystemFailureError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def create_engine(database_url: str | None = None, *, echo: bool | None = None) -> AsyncEngine:
    """Create the async engine for the configured database."""
    url = database_url or settings.database_url
    kwargs: dict = {
        "echo": settings.database_echo if echo is None else echo,
        "pool_pre_ping": True,
    }
    # SQLite (used for local experiments) does not accept pool sizing
    if not url.startswith("sqlite"):
        kwargs["pool_size"] = settings.database_pool_size
    return create_async_engine(url, **kwargs)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the engine."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """
    Verify the database is reachable.

    Call this on application startup. Schema creation is handled by Alembic.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db(engine: AsyncEngine) -> None:
    """Dispose of the engine's connection pool."""
    await engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency yielding a database session.

    Usage:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    session_maker: async_sessionmaker[AsyncSession] | None = getattr(
        request.app.state, "session_maker", None
    )
    if session_maker is None:
        logger.error("Database session requested before the database was initialized")
        raise SystemFailureError(
            "The service is temporarily unavailable. Please try again later."
        )

    async with session_maker() as session:
        yield session
