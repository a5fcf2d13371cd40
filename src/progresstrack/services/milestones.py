"""Component milestone updates.

Writes one milestone value, refreshes the cached percent complete, appends a
MilestoneEvent carrying the earned-hours delta, commits, and then runs the
recalculation hook in its own transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from progresstrack.database.connection import transaction
from progresstrack.database.models.component import Component
from progresstrack.database.models.milestone_event import MilestoneEvent
from progresstrack.database.queries import allocation as allocation_queries
from progresstrack.database.queries import budget as budget_queries
from progresstrack.database.queries import component as component_queries
from progresstrack.earned_value.progress import (
    HUNDRED,
    ZERO,
    completion_fraction,
    compute_percent_complete,
    normalize_milestone_value,
    stored_milestone_value,
)
from progresstrack.exceptions import ComponentNotFoundError, MilestoneValueError
from progresstrack.logging import bind_component_context, bind_project_context
from progresstrack.services.recalculation import on_component_milestones_changed

logger = structlog.get_logger(__name__)

DELTA_QUANTUM = Decimal("0.0001")


@dataclass
class MilestoneUpdateResult:
    """Outcome of :func:`update_component_milestone`."""

    component: Component
    event: MilestoneEvent
    earned_manhours: Decimal | None


async def update_component_milestone(
    session: AsyncSession,
    component_id: UUID,
    milestone_name: str,
    value: Any,
    user_id: str | None = None,
) -> MilestoneUpdateResult:
    """Set one milestone value on a component.

    Args:
        session: Active async database session.
        component_id: Component to update.
        milestone_name: Milestone name as defined by the component's template.
        value: Boolean or number; discrete milestones take true/false (or
            0, 1, 100), partial milestones take 0-100.
        user_id: Actor making the change.

    Returns:
        MilestoneUpdateResult with the component, the event, and the earned
        hours after recalculation (None when no allocation applies).

    Raises:
        ComponentNotFoundError: If the component does not exist.
        MilestoneValueError: If the component has no template, the milestone
            is not in it, or the value does not fit the milestone's kind.
    """
    async with transaction(session):
        component = await component_queries.lock_component(session, component_id)
        if component is None:
            raise ComponentNotFoundError(component_id)
        bind_project_context(component.project_id)
        bind_component_context(component_id)

        template = component.template
        if template is None:
            raise MilestoneValueError(f"Component {component_id} has no milestone template")
        definition = template.definition(milestone_name)
        if definition is None:
            raise MilestoneValueError(
                f"Milestone {milestone_name!r} is not defined for category {template.category!r}"
            )

        new_value = normalize_milestone_value(definition, value)
        previous_raw = (component.current_milestones or {}).get(milestone_name)
        previous_value = (
            None if previous_raw is None else completion_fraction(definition, previous_raw) * HUNDRED
        )

        delta = ZERO
        budget = await budget_queries.get_active_budget(session, component.project_id)
        if budget is not None:
            allocation = await allocation_queries.get_allocation(session, component_id, budget.id)
            if allocation is not None:
                delta = (
                    allocation.budgeted_manhours
                    * definition.weight
                    / HUNDRED
                    * (new_value - (previous_value or ZERO))
                    / HUNDRED
                ).quantize(DELTA_QUANTUM)

        milestones = dict(component.current_milestones or {})
        milestones[milestone_name] = stored_milestone_value(new_value)
        component.current_milestones = milestones
        component.percent_complete = compute_percent_complete(template, milestones)

        event = MilestoneEvent(
            component_id=component_id,
            milestone_name=milestone_name,
            previous_value=previous_value,
            value=new_value,
            delta_manhours=delta,
            budget_id=budget.id if budget is not None else None,
            user_id=user_id,
        )
        session.add(event)
        await session.flush()

    logger.info(
        "milestone_updated",
        component_id=str(component_id),
        milestone=milestone_name,
        previous_value=str(previous_value) if previous_value is not None else None,
        value=str(new_value),
        delta_manhours=str(delta),
        percent_complete=str(component.percent_complete),
        user_id=user_id,
    )

    earned = await on_component_milestones_changed(session, component_id)

    return MilestoneUpdateResult(component=component, event=event, earned_manhours=earned)
