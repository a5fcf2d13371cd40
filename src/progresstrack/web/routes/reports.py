"""Manhour report endpoints for Progresstrack.

All reports read the active budget version only. A project without an active
budget reports ``has_budget: false`` instead of an error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from progresstrack.exceptions import AllocationIntegrityError
from progresstrack.logging import get_logger
from progresstrack.services.recalculation import recalculate_project
from progresstrack.services.reporting import (
    GroupBy,
    get_project_manhour_summary,
    summarize_by,
    verify_allocations,
)
from progresstrack.web.dependencies import get_session_factory, http_error

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class GroupedReportResponse(BaseModel):
    """Response schema for a grouped manhour report."""

    project_id: UUID
    group_by: str
    has_budget: bool
    groups: list[dict[str, Any]]


class RecalculationResponse(BaseModel):
    """Response schema for a project recalculation."""

    components_refreshed: int
    allocations_recalculated: int
    allocations_changed: int
    budget_id: UUID | None


def create_reports_router() -> APIRouter:
    """Create manhour report router.

    Routes:
        GET /projects/{project_id}/manhours - Project totals
        GET /projects/{project_id}/manhours/by/{group_by} - Grouped totals
        POST /projects/{project_id}/manhours/recalculate - Recompute earned hours
        GET /projects/{project_id}/manhours/verify - Allocation integrity check
    """
    router = APIRouter(prefix="/projects/{project_id}/manhours", tags=["reports"])

    @router.get("")
    async def project_summary(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        """Budgeted, earned, and remaining hours for a project."""
        async with session_factory() as session:
            summary = await get_project_manhour_summary(session, project_id)

        return summary.to_dict()

    @router.get("/by/{group_by}", response_model=GroupedReportResponse)
    async def grouped_summary(
        project_id: UUID,
        group_by: GroupBy,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> GroupedReportResponse:
        """Hours grouped by area, system, or test package."""
        async with session_factory() as session:
            rows = await summarize_by(session, project_id, group_by)

        return GroupedReportResponse(
            project_id=project_id,
            group_by=group_by.value,
            has_budget=rows is not None,
            groups=[r.to_dict() for r in rows or []],
        )

    @router.post("/recalculate", response_model=RecalculationResponse)
    async def recalculate(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> RecalculationResponse:
        """Recompute percent complete and earned hours for the whole project."""
        async with session_factory() as session:
            result = await recalculate_project(session, project_id)

        return RecalculationResponse(
            components_refreshed=result.components_refreshed,
            allocations_recalculated=result.allocations_recalculated,
            allocations_changed=result.allocations_changed,
            budget_id=result.budget_id,
        )

    @router.get("/verify")
    async def verify(
        project_id: UUID,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        """Check allocation rows against the budget versioning rules.

        Raises:
            HTTPException: 500 when allocations contradict the versioning rules
        """
        try:
            async with session_factory() as session:
                await verify_allocations(session, project_id)
        except AllocationIntegrityError as exc:
            raise http_error(exc) from exc

        return {"project_id": str(project_id), "status": "ok"}

    return router
