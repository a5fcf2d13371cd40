"""Health check endpoints for Progresstrack.

- ``/health/`` is a liveness check and never touches the database.
- ``/health/ready`` checks that the database answers, that the schema has
  been migrated, and that every default component category has a milestone
  template. Without templates no component can show progress, so a
  reachable database with missing templates reports ``degraded``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from progresstrack import __version__
from progresstrack.database.queries import template as template_queries
from progresstrack.earned_value.templates import DEFAULT_TEMPLATES
from progresstrack.logging import get_logger
from progresstrack.web.dependencies import get_session_factory

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = get_logger(__name__)


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness response.

    Attributes:
        status: "ok", "degraded" (default templates missing) or "unhealthy"
        database: "connected" or "disconnected"
        schema_ready: Whether the template table could be queried
        template_categories: Categories with at least one template version
        missing_templates: Default categories with no template yet
    """

    status: str
    database: str
    schema_ready: bool = False
    template_categories: int = 0
    missing_templates: list[str] = Field(default_factory=list)


def create_health_router() -> APIRouter:
    """Create health check router.

    Routes:
        GET /health/ - Liveness
        GET /health/ready - Database, schema and template readiness
    """
    router = APIRouter(prefix="/health", tags=["health"])

    @router.get("/", response_model=HealthResponse)
    async def health() -> dict[str, Any]:
        return {"status": "ok", "version": __version__}

    @router.get("/ready", response_model=ReadinessResponse)
    async def readiness(
        session_factory: async_sessionmaker[AsyncSession] = Depends(  # noqa: B008
            get_session_factory
        ),
    ) -> dict[str, Any]:
        """Report whether the engine can serve progress and manhour requests."""
        try:
            async with session_factory() as session:
                await session.execute(text("SELECT 1"))
                try:
                    templates = await template_queries.list_latest_templates(session)
                except SQLAlchemyError as exc:
                    logger.warning("readiness_schema_missing", error=str(exc))
                    return {"status": "unhealthy", "database": "connected", "schema_ready": False}
        except (SQLAlchemyError, OSError) as exc:
            logger.warning("readiness_check_failed", database="disconnected", error=str(exc))
            return {"status": "unhealthy", "database": "disconnected"}

        categories = {t.category for t in templates}
        missing = sorted(set(DEFAULT_TEMPLATES) - categories)
        if missing:
            logger.warning("readiness_templates_missing", missing=missing)

        return {
            "status": "degraded" if missing else "ok",
            "database": "connected",
            "schema_ready": True,
            "template_categories": len(categories),
            "missing_templates": missing,
        }

    return router
