"""Manhour budget model for Progresstrack.

Each row is one version of a project's total labor-hour budget. Versions are
append-only; exactly one version per project is active at a time. Superseded
versions are kept as the change-order audit trail.
"""

from __future__ import annotations

import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from progresstrack.database.models.base import Base, TimestampMixin


class ManhourBudget(TimestampMixin, Base):
    """A versioned project labor-hour budget.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        project_id: Owning project.
        version_number: Monotonically increasing per project, starting at 1.
        total_budgeted_manhours: Total hours distributed across components.
        revision_reason: Free-text reason (e.g. change order reference).
        effective_date: Date the budget takes effect.
        is_active: True for the single current version of the project.
        created_by: Identifier of the actor who created the version.
        created_at: Creation timestamp (from TimestampMixin).
    """

    __tablename__ = "manhour_budgets"
    __table_args__ = (
        UniqueConstraint("project_id", "version_number", name="uq_manhour_budgets_project_version"),
        CheckConstraint("total_budgeted_manhours > 0", name="ck_manhour_budgets_total_positive"),
        Index(
            "uq_manhour_budgets_one_active",
            "project_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        index=True,
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    total_budgeted_manhours: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    revision_reason: Mapped[str] = mapped_column(Text, nullable=False, default="")
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_by: Mapped[str | None] = mapped_column(Text, nullable=True)
