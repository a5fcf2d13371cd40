"""Exception hierarchy for Progresstrack.

Validation and conflict errors propagate to the caller of a mutating
operation. Soft conditions (no active budget, no allocation row, unparsable
size) are never raised; they surface as None, zero, or a collected warning.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any


class ProgressTrackError(Exception):
    """Base class for all Progresstrack errors."""


class TemplateWeightError(ProgressTrackError):
    """Raised when a milestone template fails validation.

    Attributes:
        total: Sum of the submitted weights (None when the list was empty).
        reason: Short machine-readable reason code.
    """

    def __init__(self, message: str, total: Decimal | None = None, reason: str = "weight_sum"):
        self.total = total
        self.reason = reason
        super().__init__(message)


class TemplateNotFoundError(ProgressTrackError):
    """Raised when no template exists for a category (and version)."""

    def __init__(self, category: str, version: int | None = None):
        self.category = category
        self.version = version
        msg = f"No milestone template for category {category!r}"
        if version is not None:
            msg += f" version {version}"
        super().__init__(msg)


class InvalidBudgetError(ProgressTrackError):
    """Raised when a budget total is not strictly positive."""


class ZeroWeightError(ProgressTrackError):
    """Raised when there is nothing to distribute a budget across."""

    def __init__(self, component_count: int):
        self.component_count = component_count
        super().__init__(
            f"Cannot distribute budget: total weight is zero across "
            f"{component_count} in-scope components"
        )


class BudgetConflictError(ProgressTrackError):
    """Raised when a concurrent budget activation wins the race.

    The caller should retry; the version number is reassigned under lock on
    the next attempt.
    """

    retryable = True

    def __init__(self, project_id: Any):
        self.project_id = project_id
        super().__init__(
            f"Concurrent budget revision detected for project {project_id}; retry"
        )


class AllocationIntegrityError(ProgressTrackError):
    """Raised when allocation rows contradict the budget versioning rules.

    This indicates a transaction bug and is never corrected silently.
    """

    def __init__(self, project_id: Any, details: list[dict[str, Any]]):
        self.project_id = project_id
        self.details = details
        super().__init__(
            f"Allocation integrity violated for project {project_id}: "
            f"{len(details)} problem(s)"
        )


class ComponentNotFoundError(ProgressTrackError):
    """Raised when a referenced component does not exist."""

    def __init__(self, component_id: Any):
        self.component_id = component_id
        super().__init__(f"Component {component_id} not found")


class MilestoneValueError(ProgressTrackError):
    """Raised when a milestone update does not match the template definition."""


class ProjectNotFoundError(ProgressTrackError):
    """Raised when a referenced project does not exist."""

    def __init__(self, project_id: Any):
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found")
