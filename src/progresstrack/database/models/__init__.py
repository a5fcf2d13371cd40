"""SQLAlchemy ORM models for Progresstrack.

This module defines the database schema: projects, milestone templates,
components, manhour budgets, component allocations, and milestone events.

All models use SQLAlchemy 2.0 declarative style with Mapped[] type annotations.
"""

from progresstrack.database.models.allocation import ComponentManhourAllocation
from progresstrack.database.models.base import Base, JSONType, TimestampMixin
from progresstrack.database.models.budget import ManhourBudget
from progresstrack.database.models.component import Component
from progresstrack.database.models.milestone_event import MilestoneEvent
from progresstrack.database.models.project import Project
from progresstrack.database.models.template import MilestoneTemplate

__all__ = [
    "Base",
    "JSONType",
    "TimestampMixin",
    "Project",
    "MilestoneTemplate",
    "Component",
    "ManhourBudget",
    "ComponentManhourAllocation",
    "MilestoneEvent",
]
