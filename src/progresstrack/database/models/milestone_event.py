"""Milestone event model for Progresstrack.

Append-only history of milestone value changes, with the manhour delta each
change earned under the budget that was active at the time.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column

from progresstrack.database.models.base import Base, TimestampMixin


class MilestoneEvent(TimestampMixin, Base):
    """A single milestone value change on a component.

    Attributes:
        component_id: Component that changed.
        milestone_name: Milestone that changed.
        previous_value: Value before the change (0-100, None if unset).
        value: Value after the change (0-100).
        delta_manhours: Earned-hours change attributable to this event.
        budget_id: Active budget version when the event was recorded.
        user_id: Actor who made the change.
    """

    __tablename__ = "milestone_events"

    component_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("components.id"),
        nullable=False,
        index=True,
    )
    milestone_name: Mapped[str] = mapped_column(Text, nullable=False)
    previous_value: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    value: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    delta_manhours: Mapped[Decimal] = mapped_column(
        Numeric(12, 4),
        nullable=False,
        default=Decimal("0"),
    )
    budget_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("manhour_budgets.id"),
        nullable=True,
    )
    user_id: Mapped[str | None] = mapped_column(Text, nullable=True)
