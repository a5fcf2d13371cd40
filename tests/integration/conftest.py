"""Pytest fixtures for integration tests.

Provides async database fixtures for exercising the services and query
functions against an in-memory SQLite database. Production runs on
PostgreSQL; row locks (FOR UPDATE) are ignored by SQLite, so true
concurrency is not reproduced here.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from progresstrack.database.models import Base, Component, MilestoneTemplate, Project
from progresstrack.database.queries.component import create_component
from progresstrack.database.queries.project import create_project
from progresstrack.services.templates import seed_default_templates
from progresstrack.web.app import create_app

ComponentFactory = Callable[..., Awaitable[Component]]


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite async engine with all tables."""
    test_engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create a session for one test; uncommitted work is rolled back."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def project(db_session: AsyncSession) -> Project:
    return await create_project(db_session, name="Unit 4 Revamp", code="P-104")


@pytest_asyncio.fixture
async def other_project(db_session: AsyncSession) -> Project:
    return await create_project(db_session, name="Tank Farm", code="P-220")


@pytest_asyncio.fixture
async def templates(db_session: AsyncSession) -> dict[str, MilestoneTemplate]:
    """Seed the default templates, keyed by category."""
    return {t.category: t for t in await seed_default_templates(db_session)}


@pytest.fixture
def make_component(
    db_session: AsyncSession,
    project: Project,
    templates: dict[str, MilestoneTemplate],
) -> ComponentFactory:
    """Factory for components of ``project`` linked to the seeded template."""

    async def _make(category: str = "valve", size: Any = None, **kwargs: Any) -> Component:
        identity_key = kwargs.pop("identity_key", None)
        if identity_key is None:
            identity_key = {} if size is None else {"size": size}
        template = templates.get(category)
        return await create_component(
            db_session,
            kwargs.pop("project_id", project.id),
            category,
            identity_key=identity_key,
            template_id=template.id if template is not None else None,
            **kwargs,
        )

    return _make


@pytest_asyncio.fixture
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the app, wired to the test database."""
    app = create_app()
    app.state.session_factory = session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
