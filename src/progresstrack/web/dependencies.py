"""Shared FastAPI dependencies and error translation for Progresstrack routes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, Request
from fastapi import status as http_status

from progresstrack.exceptions import (
    AllocationIntegrityError,
    BudgetConflictError,
    ComponentNotFoundError,
    InvalidBudgetError,
    MilestoneValueError,
    ProgressTrackError,
    ProjectNotFoundError,
    TemplateNotFoundError,
    TemplateWeightError,
    ZeroWeightError,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Named HTTP_422_UNPROCESSABLE_CONTENT in newer Starlette releases
UNPROCESSABLE = 422

STATUS_BY_ERROR: dict[type[ProgressTrackError], int] = {
    TemplateWeightError: UNPROCESSABLE,
    InvalidBudgetError: UNPROCESSABLE,
    ZeroWeightError: UNPROCESSABLE,
    MilestoneValueError: UNPROCESSABLE,
    BudgetConflictError: http_status.HTTP_409_CONFLICT,
    TemplateNotFoundError: http_status.HTTP_404_NOT_FOUND,
    ComponentNotFoundError: http_status.HTTP_404_NOT_FOUND,
    ProjectNotFoundError: http_status.HTTP_404_NOT_FOUND,
    AllocationIntegrityError: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    """Dependency that retrieves session factory from app state.

    Args:
        request: FastAPI request object

    Returns:
        Session factory from app.state
    """
    return request.app.state.session_factory  # type: ignore[return-value]


def http_error(exc: ProgressTrackError) -> HTTPException:
    """Translate a service error into an HTTPException.

    Validation errors become 422, lost budget races 409 (with a
    ``Retry-After`` header), and missing entities 404.
    """
    status_code = http_status.HTTP_400_BAD_REQUEST
    for error_type, code in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            status_code = code
            break

    headers = {"Retry-After": "1"} if isinstance(exc, BudgetConflictError) else None
    return HTTPException(status_code=status_code, detail=str(exc), headers=headers)
