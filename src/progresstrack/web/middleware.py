"""Request logging middleware for Progresstrack.

Every request gets a correlation id (taken from ``X-Correlation-ID`` or
generated) that is echoed on the response. Requests addressed to a project
or component (``/projects/{id}/...``, ``/components/{id}/...``) also have
that id bound to the logging context, so budget, recalculation and report
events emitted while handling the request can be traced back to it.
"""

from __future__ import annotations

import re
import time
import uuid
from typing import TYPE_CHECKING

from starlette.middleware.base import BaseHTTPMiddleware

from progresstrack.logging import (
    bind_component_context,
    bind_project_context,
    clear_request_context,
    get_logger,
    set_correlation_id,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

logger = get_logger(__name__)

_UUID = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
_PROJECT_PATH = re.compile(rf"^/projects/(?P<id>{_UUID})(?:/|$)")
_COMPONENT_PATH = re.compile(rf"^/components/(?P<id>{_UUID})(?:/|$)")


def bind_path_context(path: str) -> dict[str, str]:
    """Bind the project or component id addressed by ``path``.

    Returns:
        The identifiers that were bound (empty for other paths).
    """
    bound: dict[str, str] = {}
    project = _PROJECT_PATH.match(path)
    if project:
        bound["project_id"] = project["id"].lower()
        bind_project_context(bound["project_id"])
    component = _COMPONENT_PATH.match(path)
    if component:
        bound["component_id"] = component["id"].lower()
        bind_component_context(bound["component_id"])
    return bound


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its duration, status and correlation id.

    Client errors (rejected templates, invalid budgets, lost budget races)
    are logged at warning, server errors at error.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        set_correlation_id(correlation_id)
        path = request.url.path
        bind_path_context(path)

        start_time = time.perf_counter()
        logger.info("request_started", method=request.method, path=path)

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                method=request.method,
                path=path,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                error=str(exc),
                exc_info=True,
            )
            raise
        else:
            status_code = response.status_code
            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            else:
                log = logger.info
            log(
                "request_completed",
                method=request.method,
                path=path,
                status_code=status_code,
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            clear_request_context()
