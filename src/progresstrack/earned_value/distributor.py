"""Manhour distributor.

Splits a total labor-hour budget across components in proportion to their
dimension weights. The whole set is processed in one in-memory pass so that
callers can bulk-write the resulting allocations.

Each share is rounded half-up to two decimals independently. The rounded
shares may drift from the total by up to a cent per component; no residual
is redistributed.
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol

import structlog

from progresstrack.earned_value.progress import ZERO, round_half_up
from progresstrack.earned_value.weights import (
    DEFAULT_POLICY,
    CalculationBasis,
    WeightPolicy,
    compute_weight,
)
from progresstrack.exceptions import InvalidBudgetError, ZeroWeightError

logger = structlog.get_logger(__name__)


class WeighableComponent(Protocol):
    """Fields the distributor reads from a component (ORM row or snapshot)."""

    id: uuid.UUID
    category: str
    identity_key: Mapping[str, Any] | None
    attributes: Mapping[str, Any] | None
    is_retired: bool


@dataclass(frozen=True)
class ComponentSnapshot:
    """Plain-data stand-in for a component row."""

    id: uuid.UUID
    category: str
    identity_key: Mapping[str, Any] | None = None
    attributes: Mapping[str, Any] | None = None
    is_retired: bool = False


@dataclass(frozen=True)
class ComponentAllocation:
    """One component's share of a budget.

    Attributes:
        component_id: Component the hours are allocated to.
        weight: Dimension weight used.
        budgeted_hours: Share of the total, rounded to two decimals.
        basis: Rule that produced the weight.
        trace: Audit payload (parsed size, weight, total weight).
    """

    component_id: uuid.UUID
    weight: float
    budgeted_hours: Decimal
    basis: CalculationBasis
    trace: dict[str, Any]


@dataclass(frozen=True)
class DistributionWarning:
    """A component that needed the baseline fallback or had suspect input."""

    component_id: uuid.UUID
    category: str
    identity_key: dict[str, Any]
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "component_id": str(self.component_id),
            "category": self.category,
            "identity_key": self.identity_key,
            "reason": self.reason,
        }


@dataclass
class DistributionResult:
    """Result of :func:`distribute`."""

    budget_total: Decimal
    total_weight: float
    allocations: list[ComponentAllocation] = field(default_factory=list)
    warnings: list[DistributionWarning] = field(default_factory=list)
    drift_tolerance: Decimal = ZERO

    @property
    def components_processed(self) -> int:
        return len(self.allocations)

    @property
    def total_allocated(self) -> Decimal:
        return sum((a.budgeted_hours for a in self.allocations), ZERO)

    @property
    def drift(self) -> Decimal:
        """Allocated minus requested total (rounding residue)."""
        return self.total_allocated - self.budget_total

    @property
    def within_tolerance(self) -> bool:
        """Whether the rounding drift stays within ``drift_tolerance``."""
        return abs(self.drift) <= self.drift_tolerance


def _as_decimal(value: Decimal | float | int | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value))


def distribute(
    budget_total: Decimal | float | int | str,
    components: Iterable[WeighableComponent],
    policy: WeightPolicy = DEFAULT_POLICY,
) -> DistributionResult:
    """Distribute a budget across components proportionally to their weight.

    Retired components are skipped.

    Args:
        budget_total: Total labor hours to distribute (> 0).
        components: Components in scope.
        policy: Weighting constants.

    Returns:
        DistributionResult with one allocation per non-retired component and a
        warning per fallback weight.

    Raises:
        InvalidBudgetError: If ``budget_total`` is not positive.
        ZeroWeightError: If there are no in-scope components or all weights are 0.
    """
    total = _as_decimal(budget_total)
    if not total.is_finite() or total <= 0:
        raise InvalidBudgetError(f"Total budgeted manhours must be greater than 0, got {budget_total}")

    weighed = []
    warnings: list[DistributionWarning] = []
    for component in components:
        if component.is_retired:
            continue
        result = compute_weight(
            component.category,
            component.identity_key,
            component.attributes,
            policy,
        )
        weighed.append((component, result))
        if result.used_fallback or result.warning:
            reason = result.warning or (
                f"No usable size ({result.trace.get('reason')}); "
                f"baseline weight {policy.baseline_weight} used"
            )
            warnings.append(
                DistributionWarning(
                    component_id=component.id,
                    category=component.category,
                    identity_key=dict(component.identity_key or {}),
                    reason=reason,
                )
            )

    total_weight = math.fsum(r.weight for _, r in weighed)
    if not weighed or total_weight <= 0:
        raise ZeroWeightError(len(weighed))

    total_weight_dec = Decimal(total_weight)
    allocations = []
    for component, result in weighed:
        share = total * Decimal(result.weight) / total_weight_dec
        allocations.append(
            ComponentAllocation(
                component_id=component.id,
                weight=result.weight,
                budgeted_hours=round_half_up(share),
                basis=result.basis,
                trace={
                    **result.trace,
                    "weight": result.weight,
                    "total_weight": total_weight,
                },
            )
        )

    distribution = DistributionResult(
        budget_total=total,
        total_weight=total_weight,
        allocations=allocations,
        warnings=warnings,
        drift_tolerance=_as_decimal(policy.conservation_tolerance_per_component) * len(allocations),
    )

    if not distribution.within_tolerance:
        logger.warning(
            "budget_distribution_drift_exceeded",
            drift=str(distribution.drift),
            tolerance=str(distribution.drift_tolerance),
            components=distribution.components_processed,
        )

    logger.debug(
        "budget_distribution_computed",
        components=distribution.components_processed,
        total_weight=total_weight,
        drift=str(distribution.drift),
        fallback_count=len(warnings),
    )

    return distribution
