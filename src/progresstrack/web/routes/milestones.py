"""Component milestone endpoints for Progresstrack.

Records a milestone value on a component. The write refreshes the cached
percent complete and then recomputes the component's earned hours under the
active budget.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, StrictBool

from progresstrack.exceptions import ProgressTrackError
from progresstrack.logging import get_logger
from progresstrack.services.milestones import update_component_milestone
from progresstrack.web.dependencies import get_session_factory, http_error

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class MilestoneUpdate(BaseModel):
    """Request schema for a milestone update.

    Attributes:
        value: true/false for discrete milestones, 0-100 for partial ones
        user_id: Actor making the change
    """

    value: StrictBool | Decimal
    user_id: str | None = None


class MilestoneUpdateResponse(BaseModel):
    """Response schema for a milestone update."""

    component_id: UUID
    milestone: str
    value: Decimal
    previous_value: Decimal | None
    percent_complete: Decimal
    current_milestones: dict[str, Any]
    delta_manhours: Decimal
    earned_manhours: Decimal | None


def create_milestones_router() -> APIRouter:
    """Create milestone update router.

    Routes:
        PUT /components/{component_id}/milestones/{milestone_name}
    """
    router = APIRouter(prefix="/components", tags=["milestones"])

    @router.put(
        "/{component_id}/milestones/{milestone_name}",
        response_model=MilestoneUpdateResponse,
    )
    async def update_milestone(
        component_id: UUID,
        milestone_name: str,
        body: MilestoneUpdate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> MilestoneUpdateResponse:
        """Set one milestone value on a component.

        Raises:
            HTTPException: 404 for an unknown component, 422 for a milestone
                not in the component's template or a value of the wrong kind
        """
        try:
            async with session_factory() as session:
                result = await update_component_milestone(
                    session,
                    component_id,
                    milestone_name,
                    body.value,
                    user_id=body.user_id,
                )
        except ProgressTrackError as exc:
            logger.warning(
                "milestone_update_rejected",
                component_id=str(component_id),
                milestone=milestone_name,
                error=str(exc),
            )
            raise http_error(exc) from exc

        return MilestoneUpdateResponse(
            component_id=component_id,
            milestone=milestone_name,
            value=result.event.value,
            previous_value=result.event.previous_value,
            percent_complete=result.component.percent_complete,
            current_milestones=dict(result.component.current_milestones),
            delta_manhours=result.event.delta_manhours,
            earned_manhours=result.earned_manhours,
        )

    return router
