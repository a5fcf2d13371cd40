"""Database connection management for Progresstrack.

This module provides factory functions for creating SQLAlchemy async engines
and session factories, configured from the application's DatabaseConfig, and
the ``transaction`` helper every mutating operation runs inside.

Example usage:
    >>> from progresstrack.config import DatabaseConfig
    >>> from progresstrack.database.connection import get_engine, get_session_factory
    >>>
    >>> config = DatabaseConfig(url="postgresql+asyncpg://localhost/progresstrack")
    >>> engine = get_engine(config)
    >>> SessionFactory = get_session_factory(engine)
    >>>
    >>> async with SessionFactory() as session:
    ...     budget = await get_active_budget(session, project_id)
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from progresstrack.config import DatabaseConfig


def get_engine(config: DatabaseConfig) -> AsyncEngine:
    """Create an async SQLAlchemy engine from database configuration.

    Configures connection pooling using the pool_size and max_overflow
    settings from DatabaseConfig. SQLite URLs (local evaluation, tests) do
    not take pool sizing arguments.

    Args:
        config: Database configuration containing URL, pool settings,
                and SQL echo preference.

    Returns:
        Configured AsyncEngine instance.
    """
    if config.url.startswith("sqlite"):
        return create_async_engine(config.url, echo=config.echo)

    return create_async_engine(
        config.url,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
        echo=config.echo,
    )


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the given engine.

    The returned factory produces AsyncSession instances configured with
    expire_on_commit=False so attributes stay readable after commit without
    triggering lazy loads.

    Args:
        engine: AsyncEngine to bind sessions to.

    Returns:
        Configured async_sessionmaker that produces AsyncSession instances.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Run a unit of work that commits on success and rolls back on error.

    When the session already has a transaction open (reads autobegin one),
    the work joins it and the whole transaction is committed at the end.
    Otherwise a new transaction is started.

    Args:
        session: Active async database session.

    Yields:
        The same session.
    """
    if not session.in_transaction():
        async with session.begin():
            yield session
        return

    try:
        yield session
    except Exception:
        await session.rollback()
        raise
    await session.commit()
