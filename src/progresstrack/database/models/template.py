"""Milestone template model for Progresstrack.

Templates are append-only: a change to a category's milestones creates a new
version row, so components that reference an older version keep their
historical earned-value figures.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from progresstrack.database.models.base import Base, JSONType, TimestampMixin
from progresstrack.earned_value.templates import MilestoneDefinition, parse_milestones


class MilestoneTemplate(TimestampMixin, Base):
    """One version of the milestone list for a component category.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        category: Component category the template applies to.
        version: Version number, unique per category, starting at 1.
        milestones: Ordered milestone definitions as JSON.
        created_by: Identifier of the administrator who created the version.
    """

    __tablename__ = "milestone_templates"
    __table_args__ = (
        UniqueConstraint("category", "version", name="uq_milestone_templates_category_version"),
    )

    category: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    milestones: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, nullable=False)
    created_by: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def definitions(self) -> list[MilestoneDefinition]:
        """Milestone definitions parsed from the JSON column, in order."""
        return sorted(parse_milestones(self.milestones or []), key=lambda d: d.order)

    def definition(self, name: str) -> MilestoneDefinition | None:
        """Return the definition with the given name, if any."""
        for item in self.definitions:
            if item.name == name:
                return item
        return None
