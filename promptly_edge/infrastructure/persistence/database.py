"""Persistence: async engine, session factory, and Base for SQLAlchemy ORM.

The engine and session factory are built by create_session_factory() and
owned by the application lifespan; nothing here is created at import time.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from promptly_edge.core.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy declarative models."""


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine for settings.database_url.

    In-memory SQLite URLs use a StaticPool so every session shares one database.
    """
    kwargs: dict[str, Any] = {"echo": settings.database_echo}
    url = settings.database_url
    if url.startswith("sqlite"):
        if ":memory:" in url:
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
    else:
        kwargs.update(pool_pre_ping=True, pool_size=10, max_overflow=20, pool_recycle=3600)
    engine = create_async_engine(url, **kwargs)
    logger.info("Database engine created (dialect=%s)", engine.dialect.name)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Return a session factory bound to engine."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def create_all(engine: AsyncEngine) -> None:
    """Create every table (local bootstrap and tests)."""
    from promptly_edge.infrastructure.persistence import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
