"""Milestone template store.

Templates are global per component category and versioned: creating a
template for a category that already has one appends version ``latest + 1``.
Existing versions are never modified, so earned-value figures recorded
against them stay reproducible.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from progresstrack.database.connection import transaction
from progresstrack.database.models.template import MilestoneTemplate
from progresstrack.database.queries import template as template_queries
from progresstrack.earned_value.progress import stored_milestone_value
from progresstrack.earned_value.templates import (
    DEFAULT_TEMPLATES,
    MilestoneDefinition,
    validate_template,
)
from progresstrack.exceptions import TemplateNotFoundError

logger = structlog.get_logger(__name__)


def _to_json(definitions: Iterable[MilestoneDefinition]) -> list[dict[str, Any]]:
    return [
        {**d.model_dump(), "weight": stored_milestone_value(d.weight)}
        for d in definitions
    ]


async def get_template(
    session: AsyncSession,
    category: str,
    version: int | None = None,
) -> MilestoneTemplate:
    """Return a category's template, the latest version unless one is given.

    Raises:
        TemplateNotFoundError: If the category (or version) does not exist.
    """
    template = await template_queries.get_template_version(session, category, version)
    if template is None:
        raise TemplateNotFoundError(category, version)
    return template


async def create_template_version(
    session: AsyncSession,
    category: str,
    milestones: Iterable[Mapping[str, Any] | MilestoneDefinition],
    created_by: str | None = None,
) -> MilestoneTemplate:
    """Validate milestones and append them as the category's next version.

    Args:
        session: Active async database session.
        category: Component category.
        milestones: Milestone definitions or equivalent dicts.
        created_by: Administrator creating the version.

    Returns:
        The new MilestoneTemplate row.

    Raises:
        TemplateWeightError: If the milestones fail validation. Nothing is
            written in that case.
    """
    definitions = validate_template(list(milestones))

    async with transaction(session):
        version = await template_queries.get_latest_version_number(session, category) + 1
        template = await template_queries.insert_template(
            session,
            category=category,
            version=version,
            milestones=_to_json(definitions),
            created_by=created_by,
        )

    logger.info(
        "template_version_created",
        template_id=str(template.id),
        category=category,
        version=version,
        milestone_count=len(definitions),
    )

    return template


async def list_templates(session: AsyncSession) -> list[MilestoneTemplate]:
    """Return the latest template version of every category."""
    return await template_queries.list_latest_templates(session)


async def list_template_history(
    session: AsyncSession,
    category: str,
) -> list[MilestoneTemplate]:
    """Return every version of a category's template, newest first.

    Raises:
        TemplateNotFoundError: If the category has no template at all.
    """
    versions = await template_queries.list_template_versions(session, category)
    if not versions:
        raise TemplateNotFoundError(category)
    return versions


async def seed_default_templates(
    session: AsyncSession,
    created_by: str | None = "system",
) -> list[MilestoneTemplate]:
    """Insert version 1 of each default template whose category is missing.

    Safe to run repeatedly; categories that already have any version are
    left alone.

    Returns:
        The templates that were created.
    """
    created: list[MilestoneTemplate] = []

    async with transaction(session):
        for category, milestones in DEFAULT_TEMPLATES.items():
            if await template_queries.get_latest_version_number(session, category):
                continue
            definitions = validate_template(milestones)
            template = await template_queries.insert_template(
                session,
                category=category,
                version=1,
                milestones=_to_json(definitions),
                created_by=created_by,
            )
            created.append(template)

    logger.info(
        "default_templates_seeded",
        created=[t.category for t in created],
        skipped=len(DEFAULT_TEMPLATES) - len(created),
    )

    return created
