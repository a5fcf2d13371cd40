"""Component model for Progresstrack.

A component is a physical trackable unit (spool, valve, field weld, ...).
Identity, category, and grouping data are maintained by external
collaborators; the engine reads them and maintains the cached
``percent_complete`` whenever ``current_milestones`` changes.
"""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy import Boolean, ForeignKey, Numeric, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from progresstrack.database.models.base import Base, JSONType, TimestampMixin


class Component(TimestampMixin, Base):
    """A trackable construction item within a project.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        project_id: Owning project.
        category: Component category (matches MilestoneTemplate.category).
        identity_key: Structured identity; carries ``size`` and, for
            linear-run categories, ``linear_feet``.
        attributes: Free-form attributes (aggregate pipe keeps size and
            ``total_linear_feet`` here).
        template_id: Milestone template version in effect.
        current_milestones: Milestone name to value (bool or 0-100).
        percent_complete: Cached weighted percent complete.
        is_retired: Retired components are excluded from distribution.
        area: Area grouping key for reports.
        system: System grouping key for reports.
        test_package: Test package grouping key for reports.
        template: Relationship to the MilestoneTemplate in effect.
    """

    __tablename__ = "components"

    project_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("projects.id"),
        nullable=False,
        index=True,
    )
    category: Mapped[str] = mapped_column(Text, nullable=False)
    identity_key: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )
    attributes: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    template_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("milestone_templates.id"),
        nullable=True,
    )
    current_milestones: Mapped[dict[str, Any]] = mapped_column(
        JSONType,
        nullable=False,
        default=dict,
    )
    percent_complete: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    is_retired: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    area: Mapped[str | None] = mapped_column(Text, nullable=True)
    system: Mapped[str | None] = mapped_column(Text, nullable=True)
    test_package: Mapped[str | None] = mapped_column(Text, nullable=True)

    template: Mapped["MilestoneTemplate | None"] = relationship(  # noqa: F821
        "MilestoneTemplate",
        lazy="selectin",
    )
