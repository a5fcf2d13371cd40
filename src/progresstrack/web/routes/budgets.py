"""Manhour budget endpoints for Progresstrack.

This module provides REST API endpoints for a project's budget versions:
- List budget history
- Get the active budget (null when none is configured)
- Create a new budget version

Callers must have authorized the actor before creating a budget; the API
performs no role checks of its own.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request
from fastapi import status as http_status
from pydantic import BaseModel, Field

from progresstrack.earned_value.weights import DEFAULT_POLICY, WeightPolicy
from progresstrack.exceptions import ProgressTrackError
from progresstrack.logging import get_logger
from progresstrack.services import budgets as budget_service
from progresstrack.web.dependencies import get_session_factory, http_error

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class BudgetCreate(BaseModel):
    """Request schema for creating a budget version.

    Attributes:
        total_budgeted_manhours: Total hours to distribute (> 0)
        revision_reason: Free-text reason, e.g. a change order number
        effective_date: Date the version takes effect (defaults to today)
        created_by: Actor creating the version
    """

    total_budgeted_manhours: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    revision_reason: str = ""
    effective_date: date | None = None
    created_by: str | None = None


class BudgetResponse(BaseModel):
    """Response schema for a budget version."""

    id: UUID
    project_id: UUID
    version_number: int
    total_budgeted_manhours: Decimal
    revision_reason: str
    effective_date: date
    is_active: bool
    created_by: str | None
    created_at: Any  # datetime serialized by Pydantic

    model_config = {"from_attributes": True}


class DistributionWarningResponse(BaseModel):
    """A component that used the baseline weight or had suspect input."""

    component_id: UUID
    category: str
    identity_key: dict[str, Any]
    reason: str


class BudgetCreatedResponse(BaseModel):
    """Response schema for budget creation.

    Attributes:
        budget: The new active version
        components_processed: Allocation rows written
        total_allocated: Sum of distributed hours
        warnings: Components that need data attention
    """

    budget: BudgetResponse
    components_processed: int
    total_allocated: Decimal
    warnings: list[DistributionWarningResponse] = Field(default_factory=list)


def _policy(request: Request) -> WeightPolicy:
    return getattr(request.app.state, "weight_policy", DEFAULT_POLICY)


def create_budgets_router() -> APIRouter:
    """Create budget router.

    Routes:
        GET /projects/{project_id}/budgets - Budget history, newest first
        GET /projects/{project_id}/budgets/active - Active version or null
        POST /projects/{project_id}/budgets - Create and activate a version
    """
    router = APIRouter(prefix="/projects/{project_id}/budgets", tags=["budgets"])

    @router.get("", response_model=list[BudgetResponse])
    async def list_budgets(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[BudgetResponse]:
        """List a project's budget versions."""
        async with session_factory() as session:
            budgets = await budget_service.list_budget_versions(session, project_id)

        return [BudgetResponse.model_validate(b) for b in budgets]

    @router.get("/active", response_model=BudgetResponse | None)
    async def get_active_budget(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> BudgetResponse | None:
        """Get the active budget; null when the project has none."""
        async with session_factory() as session:
            budget = await budget_service.get_active_budget(session, project_id)

        return BudgetResponse.model_validate(budget) if budget is not None else None

    @router.post(
        "",
        response_model=BudgetCreatedResponse,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def create_budget(
        project_id: UUID,
        body: BudgetCreate,
        request: Request,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> BudgetCreatedResponse:
        """Create a budget version and distribute it across components.

        Raises:
            HTTPException: 422 for a non-positive total or no components,
                404 for an unknown project, 409 when a concurrent revision won
        """
        try:
            async with session_factory() as session:
                result = await budget_service.create_budget(
                    session,
                    project_id,
                    body.total_budgeted_manhours,
                    revision_reason=body.revision_reason,
                    effective_date=body.effective_date,
                    created_by=body.created_by,
                    policy=_policy(request),
                )
        except ProgressTrackError as exc:
            logger.warning("budget_rejected", project_id=str(project_id), error=str(exc))
            raise http_error(exc) from exc

        return BudgetCreatedResponse(
            budget=BudgetResponse.model_validate(result.budget),
            components_processed=result.components_processed,
            total_allocated=result.total_allocated,
            warnings=[
                DistributionWarningResponse(
                    component_id=w.component_id,
                    category=w.category,
                    identity_key=w.identity_key,
                    reason=w.reason,
                )
                for w in result.warnings
            ],
        )

    return router
