"""Async SQLAlchemy engine and session factory.

When DATABASE_URL is configured, provides:
- an async engine for PostgreSQL via asyncpg
- an async session factory; ``repos.factory.open_repos`` opens one session
  per API request or worker task and hands it to the Pg repositories
- a FastAPI lifespan hook for startup/shutdown

When DATABASE_URL is None (local dev, tests), both exports are None and
the service runs on the in-memory repositories.

Sessions are not committed here: ``PgProgressRepo.upsert`` commits each
write itself, so the lesson record of a cascade stays stored even if the
path or class-instance write after it fails.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from progress_service.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


# --- Engine and session factory (None when no DATABASE_URL) ---

if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev,  # log SQL in dev only
        pool_size=5,
        max_overflow=10,
    )
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        # Records returned from upsert are read after commit (events, responses).
        expire_on_commit=False,
    )
else:
    engine = None
    async_session_factory = None


@asynccontextmanager
async def lifespan_db():
    """Startup/shutdown hook for the database engine.

    Call from FastAPI's lifespan context manager.  The engine connects
    lazily; this hook only logs which backend is in use and disposes the
    pool on shutdown so no connections leak across reloads.
    """
    if engine is None:
        logger.info("No DATABASE_URL configured; using in-memory repositories")
        yield
        return

    logger.info("Database engine created: %s", engine.url)
    yield
    await engine.dispose()
    logger.info("Database engine disposed")
