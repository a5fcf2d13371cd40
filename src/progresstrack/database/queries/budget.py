"""Manhour budget query functions for Progresstrack.

Budget rows are append-only. The only mutation of an existing row is
clearing ``is_active`` when a newer version supersedes it.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from progresstrack.database.models.budget import ManhourBudget


async def get_active_budget(
    session: AsyncSession,
    project_id: UUID,
) -> ManhourBudget | None:
    """Return the project's active budget version, or None.

    Args:
        session: Active async database session.
        project_id: Project to look up.

    Returns:
        The active ManhourBudget, or None when the project has not opted
        into manhour tracking.
    """
    stmt = select(ManhourBudget).where(
        ManhourBudget.project_id == project_id,
        ManhourBudget.is_active.is_(True),
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def list_budgets(
    session: AsyncSession,
    project_id: UUID,
) -> list[ManhourBudget]:
    """Return every budget version of a project, newest first."""
    stmt = (
        select(ManhourBudget)
        .where(ManhourBudget.project_id == project_id)
        .order_by(ManhourBudget.version_number.desc())
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_max_version_number(
    session: AsyncSession,
    project_id: UUID,
) -> int:
    """Return the highest version number of a project's budgets (0 if none)."""
    stmt = select(func.max(ManhourBudget.version_number)).where(
        ManhourBudget.project_id == project_id
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none() or 0


async def count_active_budgets(
    session: AsyncSession,
    project_id: UUID,
) -> int:
    """Count active budget rows for a project (1 or 0 when consistent)."""
    stmt = select(func.count(ManhourBudget.id)).where(
        ManhourBudget.project_id == project_id,
        ManhourBudget.is_active.is_(True),
    )
    result = await session.execute(stmt)
    return result.scalar_one()


async def deactivate_budgets(
    session: AsyncSession,
    project_id: UUID,
) -> int:
    """Clear ``is_active`` on all of a project's budgets.

    The caller owns the transaction.

    Returns:
        Number of rows deactivated.
    """
    stmt = (
        update(ManhourBudget)
        .where(
            ManhourBudget.project_id == project_id,
            ManhourBudget.is_active.is_(True),
        )
        .values(is_active=False)
        .execution_options(synchronize_session="fetch")
    )
    result = await session.execute(stmt)
    return result.rowcount or 0


async def insert_budget(
    session: AsyncSession,
    project_id: UUID,
    version_number: int,
    total_budgeted_manhours: Decimal,
    revision_reason: str,
    effective_date: date,
    created_by: str | None = None,
) -> ManhourBudget:
    """Add an active budget version to the session and flush it.

    The caller owns the transaction.
    """
    budget = ManhourBudget(
        project_id=project_id,
        version_number=version_number,
        total_budgeted_manhours=total_budgeted_manhours,
        revision_reason=revision_reason,
        effective_date=effective_date,
        is_active=True,
        created_by=created_by,
    )
    session.add(budget)
    await session.flush()
    await session.refresh(budget)
    return budget
