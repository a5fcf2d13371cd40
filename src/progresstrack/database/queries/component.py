"""Component query functions for Progresstrack.

Component identity and grouping data belong to external collaborators. These
functions cover the reads the engine needs plus creation for seeding/tests.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from progresstrack.database.connection import transaction
from progresstrack.database.models.component import Component

logger = structlog.get_logger(__name__)


async def create_component(
    session: AsyncSession,
    project_id: UUID,
    category: str,
    identity_key: Mapping[str, Any] | None = None,
    template_id: UUID | None = None,
    attributes: Mapping[str, Any] | None = None,
    area: str | None = None,
    system: str | None = None,
    test_package: str | None = None,
    is_retired: bool = False,
) -> Component:
    """Create a new component.

    Args:
        session: Active async database session.
        project_id: Owning project.
        category: Component category.
        identity_key: Identity mapping (size, linear_feet, ...).
        template_id: Milestone template version in effect.
        attributes: Optional attribute mapping.
        area: Area grouping key.
        system: System grouping key.
        test_package: Test package grouping key.
        is_retired: Whether the component is retired.

    Returns:
        The newly created Component instance.
    """
    component = Component(
        project_id=project_id,
        category=category,
        identity_key=dict(identity_key or {}),
        attributes=dict(attributes) if attributes is not None else None,
        template_id=template_id,
        current_milestones={},
        area=area,
        system=system,
        test_package=test_package,
        is_retired=is_retired,
    )

    async with transaction(session):
        session.add(component)
        await session.flush()
        await session.refresh(component)

    logger.info(
        "component_created",
        component_id=str(component.id),
        project_id=str(project_id),
        category=category,
    )

    return component


async def get_component(
    session: AsyncSession,
    component_id: UUID,
) -> Component | None:
    """Retrieve a component by ID (template loaded eagerly)."""
    stmt = select(Component).where(Component.id == component_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def lock_component(
    session: AsyncSession,
    component_id: UUID,
) -> Component | None:
    """Select a component row FOR UPDATE within the current transaction."""
    stmt = select(Component).where(Component.id == component_id).with_for_update()
    stmt = stmt.execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_components(
    session: AsyncSession,
    project_id: UUID,
    include_retired: bool = False,
) -> list[Component]:
    """List a project's components.

    Args:
        session: Active async database session.
        project_id: Project to list components for.
        include_retired: Include retired components when True.

    Returns:
        Components ordered by creation time.
    """
    stmt = select(Component).where(Component.project_id == project_id)

    if not include_retired:
        stmt = stmt.where(Component.is_retired.is_(False))

    stmt = stmt.order_by(Component.created_at, Component.id)
    result = await session.execute(stmt)
    return list(result.scalars().all())
