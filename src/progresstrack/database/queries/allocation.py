"""Component manhour allocation query functions for Progresstrack.

Allocations are written in bulk when a budget version is distributed and
only their earned hours change afterwards.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from progresstrack.database.models.allocation import ComponentManhourAllocation
from progresstrack.database.models.budget import ManhourBudget
from progresstrack.database.models.component import Component
from progresstrack.earned_value.distributor import ComponentAllocation


ZERO_HOURS = Decimal("0.00")


async def bulk_insert_allocations(
    session: AsyncSession,
    budget_id: UUID,
    allocations: Iterable[ComponentAllocation],
    earned: Mapping[UUID, Decimal] | None = None,
    recalculated_at: datetime | None = None,
) -> int:
    """Insert one allocation row per distributed component in a single statement.

    The caller owns the transaction.

    Args:
        session: Async session with an open transaction.
        budget_id: Budget version the allocations belong to.
        allocations: Distributor output.
        earned: Initial earned hours per component id (0 when absent).
        recalculated_at: Timestamp recorded with the initial earned hours.

    Returns:
        Number of rows inserted.
    """
    earned = earned or {}
    rows = [
        {
            "id": uuid.uuid4(),
            "component_id": allocation.component_id,
            "budget_id": budget_id,
            "budgeted_manhours": allocation.budgeted_hours,
            "earned_manhours": earned.get(allocation.component_id, ZERO_HOURS),
            "weight": allocation.weight,
            "calculation_basis": allocation.basis,
            "calculation_trace": allocation.trace,
            "last_recalculated_at": recalculated_at,
        }
        for allocation in allocations
    ]
    if not rows:
        return 0

    await session.execute(insert(ComponentManhourAllocation), rows)
    return len(rows)


async def get_allocation(
    session: AsyncSession,
    component_id: UUID,
    budget_id: UUID,
) -> ComponentManhourAllocation | None:
    """Return a component's allocation under one budget version, or None."""
    stmt = select(ComponentManhourAllocation).where(
        ComponentManhourAllocation.component_id == component_id,
        ComponentManhourAllocation.budget_id == budget_id,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def lock_allocation(
    session: AsyncSession,
    component_id: UUID,
    budget_id: UUID,
) -> ComponentManhourAllocation | None:
    """Like :func:`get_allocation` but selects the row FOR UPDATE."""
    stmt = (
        select(ComponentManhourAllocation)
        .where(
            ComponentManhourAllocation.component_id == component_id,
            ComponentManhourAllocation.budget_id == budget_id,
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_allocations_with_components(
    session: AsyncSession,
    budget_id: UUID,
) -> list[tuple[ComponentManhourAllocation, Component]]:
    """Return ``(allocation, component)`` pairs for one budget version."""
    stmt = (
        select(ComponentManhourAllocation, Component)
        .join(Component, Component.id == ComponentManhourAllocation.component_id)
        .where(ComponentManhourAllocation.budget_id == budget_id)
        .order_by(Component.created_at, Component.id)
    )
    result = await session.execute(stmt)
    return [(row[0], row[1]) for row in result.all()]


async def find_cross_project_allocations(
    session: AsyncSession,
    project_id: UUID,
) -> list[dict[str, Any]]:
    """Find allocations of a project's components under another project's budget.

    Returns:
        One dict per offending row; empty when consistent.
    """
    stmt = (
        select(
            ComponentManhourAllocation.id,
            ComponentManhourAllocation.component_id,
            ComponentManhourAllocation.budget_id,
            ManhourBudget.project_id,
        )
        .join(Component, Component.id == ComponentManhourAllocation.component_id)
        .join(ManhourBudget, ManhourBudget.id == ComponentManhourAllocation.budget_id)
        .where(
            Component.project_id == project_id,
            ManhourBudget.project_id != project_id,
        )
    )
    result = await session.execute(stmt)
    return [
        {
            "problem": "budget_project_mismatch",
            "allocation_id": str(row[0]),
            "component_id": str(row[1]),
            "budget_id": str(row[2]),
            "budget_project_id": str(row[3]),
        }
        for row in result.all()
    ]
