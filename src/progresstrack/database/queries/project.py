"""Project query functions for Progresstrack.

Projects are administered elsewhere; the engine creates rows only for
seeding and tests, and locks them to serialize budget revisions.
"""

from __future__ import annotations

from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from progresstrack.database.connection import transaction
from progresstrack.database.models.project import Project

logger = structlog.get_logger(__name__)


async def create_project(
    session: AsyncSession,
    name: str,
    code: str | None = None,
) -> Project:
    """Create a new project.

    Args:
        session: Active async database session.
        name: Human-readable project name.
        code: Optional short project number.

    Returns:
        The newly created Project instance.
    """
    project = Project(name=name, code=code)

    async with transaction(session):
        session.add(project)
        await session.flush()
        await session.refresh(project)

    logger.info("project_created", project_id=str(project.id), name=name)

    return project


async def lock_project(
    session: AsyncSession,
    project_id: UUID,
) -> Project | None:
    """Select a project row FOR UPDATE within the current transaction.

    Concurrent callers locking the same project block until the holder
    commits or rolls back. Dialects without row locks (SQLite) ignore the
    clause.

    Args:
        session: Async session with an open transaction.
        project_id: UUID of the project to lock.

    Returns:
        The locked Project, or None if it does not exist.
    """
    stmt = select(Project).where(Project.id == project_id).with_for_update()
    result = await session.execute(stmt)
    return result.scalar_one_or_none()
