"""FastAPI route definitions for the Progresstrack web API.

This module contains route handlers for health checks, milestone templates,
budget versions, milestone updates, and manhour reports.
"""

from __future__ import annotations

from progresstrack.web.routes.budgets import (
    BudgetCreate,
    BudgetCreatedResponse,
    BudgetResponse,
    create_budgets_router,
)
from progresstrack.web.routes.health import (
    HealthResponse,
    ReadinessResponse,
    create_health_router,
)
from progresstrack.web.routes.milestones import (
    MilestoneUpdate,
    MilestoneUpdateResponse,
    create_milestones_router,
)
from progresstrack.web.routes.reports import (
    GroupedReportResponse,
    RecalculationResponse,
    create_reports_router,
)
from progresstrack.web.routes.templates import (
    MilestoneSchema,
    TemplateCreate,
    TemplateResponse,
    create_templates_router,
)

__all__ = [
    # Budgets
    "BudgetCreate",
    "BudgetCreatedResponse",
    "BudgetResponse",
    "create_budgets_router",
    # Health
    "HealthResponse",
    "ReadinessResponse",
    "create_health_router",
    # Milestones
    "MilestoneUpdate",
    "MilestoneUpdateResponse",
    "create_milestones_router",
    # Reports
    "GroupedReportResponse",
    "RecalculationResponse",
    "create_reports_router",
    # Templates
    "MilestoneSchema",
    "TemplateCreate",
    "TemplateResponse",
    "create_templates_router",
]
