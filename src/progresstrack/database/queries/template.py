"""Milestone template query functions for Progresstrack.

Templates are append-only; there is no update or delete here.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from progresstrack.database.models.template import MilestoneTemplate


async def get_template_version(
    session: AsyncSession,
    category: str,
    version: int | None = None,
) -> MilestoneTemplate | None:
    """Return a category's template at ``version``, or its latest version.

    Args:
        session: Active async database session.
        category: Component category.
        version: Specific version number; None selects the latest.

    Returns:
        The MilestoneTemplate, or None if none matches.
    """
    stmt = select(MilestoneTemplate).where(MilestoneTemplate.category == category)

    if version is not None:
        stmt = stmt.where(MilestoneTemplate.version == version)
    else:
        stmt = stmt.order_by(MilestoneTemplate.version.desc()).limit(1)

    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_latest_version_number(
    session: AsyncSession,
    category: str,
) -> int:
    """Return the highest version number for a category (0 if none)."""
    stmt = select(func.max(MilestoneTemplate.version)).where(
        MilestoneTemplate.category == category
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none() or 0


async def insert_template(
    session: AsyncSession,
    category: str,
    version: int,
    milestones: list[dict[str, Any]],
    created_by: str | None = None,
) -> MilestoneTemplate:
    """Add a template version to the session and flush it.

    The caller owns the transaction.
    """
    template = MilestoneTemplate(
        category=category,
        version=version,
        milestones=milestones,
        created_by=created_by,
    )
    session.add(template)
    await session.flush()
    await session.refresh(template)
    return template


async def list_latest_templates(session: AsyncSession) -> list[MilestoneTemplate]:
    """Return the latest version of every category, ordered by category."""
    latest = (
        select(
            MilestoneTemplate.category,
            func.max(MilestoneTemplate.version).label("version"),
        )
        .group_by(MilestoneTemplate.category)
        .subquery()
    )
    stmt = (
        select(MilestoneTemplate)
        .join(
            latest,
            (MilestoneTemplate.category == latest.c.category)
            & (MilestoneTemplate.version == latest.c.version),
        )
        .order_by(MilestoneTemplate.category)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def list_template_versions(
    session: AsyncSession,
    category: str,
) -> list[MilestoneTemplate]:
    """Return every version of a category's template, newest first."""
    stmt = (
        select(MilestoneTemplate)
        .where(MilestoneTemplate.category == category)
        .order_by(MilestoneTemplate.version.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())
