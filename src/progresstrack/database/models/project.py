"""Project model for Progresstrack.

Projects are owned by an external collaborator (organization/project
administration). The engine only needs a row to scope components and budgets
and to serialize budget revisions on.
"""

from __future__ import annotations

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column

from progresstrack.database.models.base import Base, TimestampMixin


class Project(TimestampMixin, Base):
    """A construction project whose components are tracked.

    Attributes:
        id: UUID primary key (from TimestampMixin).
        name: Human-readable project name.
        code: Optional short project number.
    """

    __tablename__ = "projects"

    name: Mapped[str] = mapped_column(Text, nullable=False)
    code: Mapped[str | None] = mapped_column(Text, nullable=True)
