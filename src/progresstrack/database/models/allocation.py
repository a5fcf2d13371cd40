"""Component manhour allocation model for Progresstrack.

Join rows between a component and one budget version. Budgeted hours are set
once when the version is distributed; earned hours are recomputed whenever
the component's milestones change. Rows are never shared across versions, so
a superseded version stays a frozen snapshot.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from progresstrack.database.models.base import Base, JSONType, TimestampMixin
from progresstrack.earned_value.weights import CalculationBasis


class ComponentManhourAllocation(TimestampMixin, Base):
    """A component's share of one budget version.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        component_id: Component the hours belong to.
        budget_id: Budget version the hours were distributed from.
        budgeted_manhours: Distributed hours (>= 0).
        earned_manhours: Earned hours (>= 0, <= budgeted).
        weight: Dimension weight used at distribution time.
        calculation_basis: Rule that produced the weight.
        calculation_trace: Inputs used (size, weight, total weight).
        last_recalculated_at: When earned hours were last computed.
        component: Relationship to the Component.
    """

    __tablename__ = "component_manhour_allocations"
    __table_args__ = (
        UniqueConstraint("component_id", "budget_id", name="uq_allocations_component_budget"),
        CheckConstraint("budgeted_manhours >= 0", name="ck_allocations_budgeted_non_negative"),
        CheckConstraint("earned_manhours >= 0", name="ck_allocations_earned_non_negative"),
    )

    component_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("components.id"),
        nullable=False,
        index=True,
    )
    budget_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("manhour_budgets.id"),
        nullable=False,
        index=True,
    )
    budgeted_manhours: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    earned_manhours: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    weight: Mapped[float] = mapped_column(Float, nullable=False)
    calculation_basis: Mapped[CalculationBasis] = mapped_column(nullable=False)
    calculation_trace: Mapped[dict[str, Any]] = mapped_column(JSONType, nullable=False, default=dict)
    last_recalculated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    component: Mapped["Component"] = relationship(  # noqa: F821
        "Component",
        lazy="selectin",
    )
