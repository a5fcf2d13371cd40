"""FastAPI application factory for Progresstrack.

``create_app`` wires the routers (health, templates, budgets, milestones,
reports) to one configuration object. The database engine is opened in the
lifespan handler; the weighting policy used when distributing budgets is
derived from ``config.manhour`` once and kept on ``app.state``.

Routes translate service errors themselves; the application-level handler
below only catches engine errors that escape a route, so that they still
map to the documented status codes instead of a bare 500.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from progresstrack import __version__
from progresstrack.config import ProgresstrackConfig
from progresstrack.database.connection import get_engine, get_session_factory
from progresstrack.earned_value.weights import WeightPolicy
from progresstrack.exceptions import ProgressTrackError
from progresstrack.logging import get_logger
from progresstrack.web.dependencies import http_error
from progresstrack.web.middleware import RequestLoggingMiddleware
from progresstrack.web.routes.budgets import create_budgets_router
from progresstrack.web.routes.health import create_health_router
from progresstrack.web.routes.milestones import create_milestones_router
from progresstrack.web.routes.reports import create_reports_router
from progresstrack.web.routes.templates import create_templates_router

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the database engine for the lifetime of the application."""
    config: ProgresstrackConfig = app.state.config

    engine = get_engine(config.database)
    app.state.engine = engine
    app.state.session_factory = get_session_factory(engine)
    logger.info(
        "app_started",
        host=config.web.host,
        port=config.web.port,
        pool_size=config.database.pool_size,
        length_factor=config.manhour.length_factor,
        size_exponent=config.manhour.size_exponent,
    )

    yield

    await engine.dispose()
    logger.info("app_stopped")


async def handle_progresstrack_error(request: Request, exc: ProgressTrackError) -> JSONResponse:
    """Render an escaped engine error with the same mapping routes use."""
    http_exc = http_error(exc)
    logger.warning(
        "unhandled_engine_error",
        path=request.url.path,
        error_type=type(exc).__name__,
        status_code=http_exc.status_code,
    )
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"detail": http_exc.detail},
        headers=http_exc.headers,
    )


def create_app(config: ProgresstrackConfig | None = None) -> FastAPI:
    """Create the Progresstrack API.

    Args:
        config: Application configuration; defaults are used when omitted.

    Returns:
        Configured FastAPI application. ``app.state`` carries ``config`` and
        ``weight_policy``; ``session_factory`` is set on startup (tests may
        set it directly).
    """
    if config is None:
        config = ProgresstrackConfig()

    app = FastAPI(
        title="Progresstrack",
        version=__version__,
        description="Milestone progress and earned manhour tracking",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.weight_policy = WeightPolicy.from_config(config.manhour)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(ProgressTrackError, handle_progresstrack_error)

    for router in (
        create_health_router(),
        create_templates_router(),
        create_budgets_router(),
        create_milestones_router(),
        create_reports_router(),
    ):
        app.include_router(router)

    return app
