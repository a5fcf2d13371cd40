"""Milestone template endpoints for Progresstrack.

This module provides REST API endpoints for milestone templates:
- List the latest template of every category
- Get a category's template (latest or a specific version)
- List a category's version history
- Create a new template version
- Seed the default templates

Templates are append-only; there are no update or delete endpoints.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi import status as http_status
from pydantic import BaseModel, Field

from progresstrack.exceptions import ProgressTrackError
from progresstrack.logging import get_logger
from progresstrack.services import templates as template_service
from progresstrack.web.dependencies import get_session_factory, http_error

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from progresstrack.database.models.template import MilestoneTemplate

logger = get_logger(__name__)


class MilestoneSchema(BaseModel):
    """One milestone definition as exchanged over the API."""

    name: str = Field(..., min_length=1, max_length=100)
    weight: Decimal = Field(..., ge=0, le=100, decimal_places=2)
    order: int = Field(..., ge=0)
    is_partial: bool = False
    requires_secondary_approval: bool = False


class TemplateCreate(BaseModel):
    """Request schema for creating a template version.

    Attributes:
        milestones: Ordered milestone definitions; weights must sum to 100
        created_by: Administrator creating the version
    """

    milestones: list[MilestoneSchema] = Field(..., min_length=1)
    created_by: str | None = None


class TemplateResponse(BaseModel):
    """Response schema for a template version."""

    id: UUID
    category: str
    version: int
    milestones: list[MilestoneSchema]
    created_by: str | None
    created_at: Any  # datetime serialized by Pydantic


def _to_response(template: MilestoneTemplate) -> TemplateResponse:
    return TemplateResponse(
        id=template.id,
        category=template.category,
        version=template.version,
        milestones=[MilestoneSchema(**d.model_dump()) for d in template.definitions],
        created_by=template.created_by,
        created_at=template.created_at,
    )


def create_templates_router() -> APIRouter:
    """Create milestone template router.

    Routes:
        GET /templates/ - Latest version of every category
        POST /templates/seed - Insert missing default templates
        GET /templates/{category} - Latest (or ?version=N) template
        GET /templates/{category}/versions - Every version, newest first
        POST /templates/{category} - Create the next version
    """
    router = APIRouter(prefix="/templates", tags=["templates"])

    @router.get("/", response_model=list[TemplateResponse])
    async def list_templates(
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[TemplateResponse]:
        """List the latest template version of every category."""
        async with session_factory() as session:
            templates = await template_service.list_templates(session)

        return [_to_response(t) for t in templates]

    @router.post(
        "/seed",
        response_model=list[TemplateResponse],
        status_code=http_status.HTTP_201_CREATED,
    )
    async def seed_templates(
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[TemplateResponse]:
        """Insert the default templates for categories that have none."""
        async with session_factory() as session:
            created = await template_service.seed_default_templates(session)

        return [_to_response(t) for t in created]

    @router.get("/{category}", response_model=TemplateResponse)
    async def get_template(
        category: str,
        version: int | None = None,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> TemplateResponse:
        """Get a category's template.

        Raises:
            HTTPException: 404 if the category or version does not exist
        """
        try:
            async with session_factory() as session:
                template = await template_service.get_template(session, category, version)
        except ProgressTrackError as exc:
            raise http_error(exc) from exc

        return _to_response(template)

    @router.get("/{category}/versions", response_model=list[TemplateResponse])
    async def list_template_versions(
        category: str,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> list[TemplateResponse]:
        """Version history of a category's template."""
        try:
            async with session_factory() as session:
                versions = await template_service.list_template_history(session, category)
        except ProgressTrackError as exc:
            raise http_error(exc) from exc

        return [_to_response(t) for t in versions]

    @router.post(
        "/{category}",
        response_model=TemplateResponse,
        status_code=http_status.HTTP_201_CREATED,
    )
    async def create_template_version(
        category: str,
        body: TemplateCreate,
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> TemplateResponse:
        """Create the next template version for a category.

        Raises:
            HTTPException: 422 if the weights do not sum to 100 or names repeat
        """
        try:
            async with session_factory() as session:
                template = await template_service.create_template_version(
                    session,
                    category,
                    [m.model_dump() for m in body.milestones],
                    created_by=body.created_by,
                )
        except ProgressTrackError as exc:
            logger.warning("template_rejected", category=category, error=str(exc))
            raise http_error(exc) from exc

        return _to_response(template)

    return router
