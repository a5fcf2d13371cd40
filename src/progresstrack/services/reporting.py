"""Manhour reporting read views.

Everything here is derived from the allocation table of the active budget
version and can be recomputed at any time. A project without an active
budget reports ``has_budget=False`` instead of raising.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from progresstrack.database.queries import allocation as allocation_queries
from progresstrack.database.queries import budget as budget_queries
from progresstrack.earned_value.earned import compute_earned_by_bucket
from progresstrack.earned_value.progress import HUNDRED, ZERO, round_half_up
from progresstrack.earned_value.templates import MilestoneBucket
from progresstrack.exceptions import AllocationIntegrityError

logger = structlog.get_logger(__name__)


class GroupBy(str, enum.Enum):
    """Component grouping keys available to :func:`summarize_by`."""

    area = "area"
    system = "system"
    test_package = "test_package"


def _percent(earned: Decimal, budgeted: Decimal) -> Decimal:
    if budgeted <= 0:
        return round_half_up(ZERO)
    return round_half_up(earned / budgeted * HUNDRED)


@dataclass
class BucketTotals:
    """Budgeted and earned hours of one reporting bucket."""

    budgeted: Decimal = ZERO
    earned: Decimal = ZERO

    def to_dict(self) -> dict[str, str]:
        return {
            "budgeted": str(round_half_up(self.budgeted)),
            "earned": str(round_half_up(self.earned)),
        }


@dataclass
class ManhourSummary:
    """Project-level manhour totals under the active budget.

    ``remaining`` and ``percent_complete`` are measured against the budget
    record's total. The ``allocated_*`` figures are measured against the sum
    of allocations, the same basis the grouped views use; the two differ by
    the distribution's rounding drift.
    """

    project_id: UUID
    has_budget: bool
    budget_id: UUID | None = None
    version_number: int | None = None
    total_budgeted: Decimal = ZERO
    allocated: Decimal = ZERO
    earned: Decimal = ZERO
    remaining: Decimal = ZERO
    percent_complete: Decimal = ZERO
    allocated_remaining: Decimal = ZERO
    allocated_percent_complete: Decimal = ZERO
    component_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        if not self.has_budget:
            return {"project_id": str(self.project_id), "has_budget": False}
        return {
            "project_id": str(self.project_id),
            "has_budget": True,
            "budget_id": str(self.budget_id),
            "version_number": self.version_number,
            "total_budgeted": str(self.total_budgeted),
            "allocated": str(self.allocated),
            "earned": str(self.earned),
            "remaining": str(self.remaining),
            "percent_complete": str(self.percent_complete),
            "allocated_remaining": str(self.allocated_remaining),
            "allocated_percent_complete": str(self.allocated_percent_complete),
            "component_count": self.component_count,
        }


@dataclass
class GroupSummary:
    """Manhour totals for one grouping value (None means unassigned)."""

    group: str | None
    budgeted: Decimal = ZERO
    earned: Decimal = ZERO
    component_count: int = 0
    buckets: dict[MilestoneBucket, BucketTotals] = field(default_factory=dict)

    @property
    def remaining(self) -> Decimal:
        return self.budgeted - self.earned

    @property
    def percent_complete(self) -> Decimal:
        return _percent(self.earned, self.budgeted)

    def to_dict(self) -> dict[str, Any]:
        return {
            "group": self.group,
            "budgeted": str(self.budgeted),
            "earned": str(self.earned),
            "remaining": str(self.remaining),
            "percent_complete": str(self.percent_complete),
            "component_count": self.component_count,
            "buckets": {b.value: t.to_dict() for b, t in self.buckets.items()},
        }


async def get_project_manhour_summary(
    session: AsyncSession,
    project_id: UUID,
) -> ManhourSummary:
    """Summarize budgeted and earned hours for a project.

    Remaining hours and percent complete are reported both against the
    budget record's total and against the (rounded) sum of allocations.
    """
    budget = await budget_queries.get_active_budget(session, project_id)
    if budget is None:
        return ManhourSummary(project_id=project_id, has_budget=False)

    pairs = await allocation_queries.list_allocations_with_components(session, budget.id)
    allocated = sum((a.budgeted_manhours for a, _ in pairs), ZERO)
    earned = sum((a.earned_manhours for a, _ in pairs), ZERO)
    total = budget.total_budgeted_manhours

    return ManhourSummary(
        project_id=project_id,
        has_budget=True,
        budget_id=budget.id,
        version_number=budget.version_number,
        total_budgeted=total,
        allocated=allocated,
        earned=earned,
        remaining=total - earned,
        percent_complete=_percent(earned, total),
        allocated_remaining=allocated - earned,
        allocated_percent_complete=_percent(earned, allocated),
        component_count=len(pairs),
    )


async def summarize_by(
    session: AsyncSession,
    project_id: UUID,
    group_by: GroupBy | str,
) -> list[GroupSummary] | None:
    """Group the active version's allocations by area, system or test package.

    Returns:
        One GroupSummary per grouping value, ordered with unassigned last,
        or None when the project has no active budget.

    Raises:
        ValueError: If ``group_by`` is not a known grouping key.
    """
    key = GroupBy(group_by)
    budget = await budget_queries.get_active_budget(session, project_id)
    if budget is None:
        return None

    groups: dict[str | None, GroupSummary] = {}
    pairs = await allocation_queries.list_allocations_with_components(session, budget.id)
    for allocation, component in pairs:
        value = getattr(component, key.value)
        summary = groups.setdefault(value, GroupSummary(group=value))
        summary.budgeted += allocation.budgeted_manhours
        summary.earned += allocation.earned_manhours
        summary.component_count += 1

        by_bucket = compute_earned_by_bucket(
            allocation.budgeted_manhours,
            component.template,
            component.current_milestones,
        )
        for bucket, (budgeted, earned) in by_bucket.items():
            totals = summary.buckets.setdefault(bucket, BucketTotals())
            totals.budgeted += budgeted
            totals.earned += earned

    return sorted(groups.values(), key=lambda g: (g.group is None, g.group or ""))


async def verify_allocations(
    session: AsyncSession,
    project_id: UUID,
) -> None:
    """Check a project's allocation rows against the versioning rules.

    Raises:
        AllocationIntegrityError: If a component is allocated under another
            project's budget or the project has more than one active budget.
    """
    problems = await allocation_queries.find_cross_project_allocations(session, project_id)

    active = await budget_queries.count_active_budgets(session, project_id)
    if active > 1:
        problems.append({"problem": "multiple_active_budgets", "active_count": active})

    if problems:
        logger.error(
            "allocation_integrity_violated",
            project_id=str(project_id),
            problems=problems,
        )
        raise AllocationIntegrityError(project_id, problems)

    logger.debug("allocations_verified", project_id=str(project_id))
