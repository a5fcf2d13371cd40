"""Earned-hours recalculation.

``on_component_milestones_changed`` is the hook invoked after a component's
milestones are persisted. It reads the active budget inside its own
transaction, so a revision that commits concurrently is always respected:
the hook recomputes against whichever version is active when it runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from progresstrack.database.connection import transaction
from progresstrack.database.queries import allocation as allocation_queries
from progresstrack.database.queries import budget as budget_queries
from progresstrack.database.queries import component as component_queries
from progresstrack.earned_value.earned import compute_earned_hours
from progresstrack.earned_value.progress import compute_percent_complete
from progresstrack.exceptions import ComponentNotFoundError

logger = structlog.get_logger(__name__)


async def on_component_milestones_changed(
    session: AsyncSession,
    component_id: UUID,
) -> Decimal | None:
    """Refresh a component's cached percent and its earned hours.

    Percent complete is always recomputed. Earned hours are skipped
    (returns None) when the project has no active budget or the component
    has no allocation under it. Re-running with unchanged inputs writes the
    same values.

    Args:
        session: Active async database session.
        component_id: Component whose milestones changed.

    Returns:
        The new earned hours, or None when nothing was recomputed.

    Raises:
        ComponentNotFoundError: If the component does not exist.
    """
    async with transaction(session):
        component = await component_queries.lock_component(session, component_id)
        if component is None:
            raise ComponentNotFoundError(component_id)

        percent = compute_percent_complete(component.template, component.current_milestones)
        if component.percent_complete != percent:
            component.percent_complete = percent

        budget = await budget_queries.get_active_budget(session, component.project_id)
        if budget is None:
            logger.debug("recalculation_skipped", component_id=str(component_id), reason="no_active_budget")
            return None

        allocation = await allocation_queries.lock_allocation(session, component_id, budget.id)
        if allocation is None:
            logger.debug(
                "recalculation_skipped",
                component_id=str(component_id),
                budget_id=str(budget.id),
                reason="no_allocation",
            )
            return None

        earned = compute_earned_hours(
            allocation.budgeted_manhours,
            component.template,
            component.current_milestones,
        )
        allocation.earned_manhours = earned
        allocation.last_recalculated_at = datetime.now(timezone.utc)
        await session.flush()

    logger.info(
        "earned_hours_recalculated",
        component_id=str(component_id),
        budget_id=str(budget.id),
        earned_manhours=str(earned),
    )

    return earned


@dataclass
class RecalculationSummary:
    """Counts from :func:`recalculate_project`."""

    components_refreshed: int = 0
    allocations_recalculated: int = 0
    allocations_changed: int = 0
    budget_id: UUID | None = None


async def recalculate_project(
    session: AsyncSession,
    project_id: UUID,
) -> RecalculationSummary:
    """Recompute cached percent complete and earned hours for a whole project.

    Used after template changes. Only the active version's allocations are
    touched; archived versions stay frozen.
    """
    summary = RecalculationSummary()
    now = datetime.now(timezone.utc)

    async with transaction(session):
        components = await component_queries.list_components(
            session, project_id, include_retired=True
        )
        for component in components:
            percent = compute_percent_complete(component.template, component.current_milestones)
            if component.percent_complete != percent:
                component.percent_complete = percent
            summary.components_refreshed += 1

        budget = await budget_queries.get_active_budget(session, project_id)
        if budget is not None:
            summary.budget_id = budget.id
            pairs = await allocation_queries.list_allocations_with_components(session, budget.id)
            for allocation, component in pairs:
                earned = compute_earned_hours(
                    allocation.budgeted_manhours,
                    component.template,
                    component.current_milestones,
                )
                if allocation.earned_manhours != earned:
                    allocation.earned_manhours = earned
                    summary.allocations_changed += 1
                allocation.last_recalculated_at = now
                summary.allocations_recalculated += 1

        await session.flush()

    logger.info(
        "project_recalculated",
        project_id=str(project_id),
        budget_id=str(summary.budget_id) if summary.budget_id else None,
        components_refreshed=summary.components_refreshed,
        allocations_recalculated=summary.allocations_recalculated,
        allocations_changed=summary.allocations_changed,
    )

    return summary
