"""Budget version manager.

Budgets move through ``None -> v1 (active) -> v2 (active, v1 archived) -> ...``.
Creating a version locks the project row, assigns the next version number
under that lock, deactivates the previous version, inserts the new one, and
bulk-writes the distributed allocations, all in one transaction. Either the
whole revision commits or none of it does.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from progresstrack.database.connection import transaction
from progresstrack.database.models.budget import ManhourBudget
from progresstrack.database.queries import allocation as allocation_queries
from progresstrack.database.queries import budget as budget_queries
from progresstrack.database.queries import component as component_queries
from progresstrack.database.queries import project as project_queries
from progresstrack.earned_value.distributor import DistributionWarning, distribute
from progresstrack.earned_value.earned import compute_earned_hours
from progresstrack.earned_value.progress import round_half_up, to_decimal
from progresstrack.earned_value.weights import DEFAULT_POLICY, WeightPolicy
from progresstrack.exceptions import (
    BudgetConflictError,
    InvalidBudgetError,
    ProjectNotFoundError,
)
from progresstrack.logging import bind_project_context

logger = structlog.get_logger(__name__)


@dataclass
class BudgetCreationResult:
    """Outcome of :func:`create_budget`.

    Attributes:
        budget: The new, active budget version.
        components_processed: Number of allocation rows written.
        total_allocated: Sum of the distributed hours (may drift from the
            budget total by rounding).
        warnings: Components that fell back to the baseline weight or had
            suspect size/length data.
    """

    budget: ManhourBudget
    components_processed: int
    total_allocated: Decimal
    warnings: list[DistributionWarning] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "budget_id": str(self.budget.id),
            "version_number": self.budget.version_number,
            "components_processed": self.components_processed,
            "total_allocated": str(self.total_allocated),
            "warnings": [w.to_dict() for w in self.warnings],
        }


async def _next_version_number(session: AsyncSession, project_id: UUID) -> int:
    return await budget_queries.get_max_version_number(session, project_id) + 1


async def create_budget(
    session: AsyncSession,
    project_id: UUID,
    total_budgeted_manhours: Decimal | float | int | str,
    revision_reason: str = "",
    effective_date: date | None = None,
    created_by: str | None = None,
    policy: WeightPolicy = DEFAULT_POLICY,
) -> BudgetCreationResult:
    """Create and activate a new budget version, distributing it to components.

    The caller is responsible for having authorized the actor.

    Args:
        session: Active async database session.
        project_id: Project to budget.
        total_budgeted_manhours: Total hours (> 0).
        revision_reason: Free-text reason, e.g. a change order number.
        effective_date: Date the version takes effect (defaults to today).
        created_by: Actor creating the version.
        policy: Weighting constants for the distribution.

    Returns:
        BudgetCreationResult with the new version and distribution feedback.

    Raises:
        InvalidBudgetError: If the total is not positive.
        ProjectNotFoundError: If the project does not exist.
        ZeroWeightError: If the project has no in-scope components.
        BudgetConflictError: If a concurrent revision won the race (retry).
    """
    total = to_decimal(total_budgeted_manhours)
    if total is None or total <= 0:
        raise InvalidBudgetError(
            f"Total budgeted manhours must be greater than 0, got {total_budgeted_manhours}"
        )
    total = round_half_up(total)
    bind_project_context(str(project_id))

    try:
        async with transaction(session):
            project = await project_queries.lock_project(session, project_id)
            if project is None:
                raise ProjectNotFoundError(project_id)

            components = await component_queries.list_components(session, project_id)
            distribution = distribute(total, components, policy)

            now = datetime.now(timezone.utc)
            by_id = {c.id: c for c in components}
            earned = {
                a.component_id: compute_earned_hours(
                    a.budgeted_hours,
                    by_id[a.component_id].template,
                    by_id[a.component_id].current_milestones,
                )
                for a in distribution.allocations
            }

            version_number = await _next_version_number(session, project_id)
            deactivated = await budget_queries.deactivate_budgets(session, project_id)
            budget = await budget_queries.insert_budget(
                session,
                project_id=project_id,
                version_number=version_number,
                total_budgeted_manhours=total,
                revision_reason=revision_reason,
                effective_date=effective_date or now.date(),
                created_by=created_by,
            )
            written = await allocation_queries.bulk_insert_allocations(
                session,
                budget.id,
                distribution.allocations,
                earned=earned,
                recalculated_at=now,
            )
    except IntegrityError as exc:
        logger.warning(
            "budget_conflict",
            project_id=str(project_id),
            error=str(exc.orig),
        )
        raise BudgetConflictError(project_id) from exc

    if distribution.warnings:
        logger.warning(
            "distribution_fallback_weights",
            project_id=str(project_id),
            count=len(distribution.warnings),
            components=[str(w.component_id) for w in distribution.warnings[:20]],
        )

    logger.info(
        "budget_created",
        project_id=str(project_id),
        budget_id=str(budget.id),
        version_number=version_number,
        total_budgeted_manhours=str(total),
        deactivated=deactivated,
        created_by=created_by,
    )
    logger.info(
        "budget_distributed",
        budget_id=str(budget.id),
        components_processed=written,
        total_allocated=str(distribution.total_allocated),
        drift=str(distribution.drift),
    )

    return BudgetCreationResult(
        budget=budget,
        components_processed=written,
        total_allocated=distribution.total_allocated,
        warnings=distribution.warnings,
    )


async def get_active_budget(
    session: AsyncSession,
    project_id: UUID,
) -> ManhourBudget | None:
    """Return the project's active budget, or None if it has none.

    None is the normal state for projects that do not track manhours.
    """
    return await budget_queries.get_active_budget(session, project_id)


async def list_budget_versions(
    session: AsyncSession,
    project_id: UUID,
) -> list[ManhourBudget]:
    """Return the project's budget history, newest version first."""
    return await budget_queries.list_budgets(session, project_id)
