"""Database layer for Progresstrack.

This module handles database connections, session management, and provides
the SQLAlchemy async engine configuration for PostgreSQL.

Public API:
    get_engine: Create an AsyncEngine from DatabaseConfig.
    get_session_factory: Create an async_sessionmaker from an engine.
    transaction: Commit-or-rollback unit of work around a session.
    Base: SQLAlchemy declarative base for all models.
"""

from progresstrack.database.connection import get_engine, get_session_factory, transaction
from progresstrack.database.models import (
    Base,
    Component,
    ComponentManhourAllocation,
    ManhourBudget,
    MilestoneEvent,
    MilestoneTemplate,
    Project,
    TimestampMixin,
)

__all__ = [
    "get_engine",
    "get_session_factory",
    "transaction",
    "Base",
    "TimestampMixin",
    "Project",
    "MilestoneTemplate",
    "Component",
    "ManhourBudget",
    "ComponentManhourAllocation",
    "MilestoneEvent",
]
