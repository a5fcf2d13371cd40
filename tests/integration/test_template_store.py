"""Integration tests for the milestone template store."""

from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from progresstrack.database.queries.template import list_template_versions
from progresstrack.earned_value.templates import DEFAULT_TEMPLATES
from progresstrack.exceptions import TemplateNotFoundError, TemplateWeightError
from progresstrack.services.templates import (
    create_template_version,
    get_template,
    list_template_history,
    list_templates,
    seed_default_templates,
)

WELD_V2 = [
    {"name": "Fit-Up", "weight": 15, "order": 1},
    {"name": "Weld Made", "weight": 55, "order": 2, "requires_secondary_approval": True},
    {"name": "Punch", "weight": 10, "order": 3},
    {"name": "Test", "weight": 15, "order": 4},
    {"name": "Restore", "weight": 5, "order": 5},
]


@pytest.mark.asyncio
async def test_seed_creates_every_default(db_session: AsyncSession) -> None:
    created = await seed_default_templates(db_session)

    assert {t.category for t in created} == set(DEFAULT_TEMPLATES)
    assert all(t.version == 1 for t in created)
    assert all(t.created_by == "system" for t in created)


@pytest.mark.asyncio
async def test_seed_is_idempotent(db_session: AsyncSession) -> None:
    await seed_default_templates(db_session)

    assert await seed_default_templates(db_session) == []
    assert len(await list_templates(db_session)) == len(DEFAULT_TEMPLATES)


@pytest.mark.asyncio
async def test_seeded_definitions_round_trip(db_session: AsyncSession) -> None:
    """Test that stored JSON parses back into the same weights and flags."""
    await seed_default_templates(db_session)

    weld = await get_template(db_session, "field_weld")

    names = [d.name for d in weld.definitions]
    assert names == ["Fit-Up", "Weld Made", "Punch", "Test", "Restore"]
    assert sum(d.weight for d in weld.definitions) == Decimal("100")
    assert weld.definition("Weld Made").requires_secondary_approval is True
    assert weld.definition("Nope") is None


@pytest.mark.asyncio
async def test_new_version_keeps_old(db_session: AsyncSession, templates) -> None:
    """Test that a change appends version 2 and leaves version 1 readable."""
    v2 = await create_template_version(db_session, "field_weld", WELD_V2, created_by="admin")

    assert v2.version == 2
    assert v2.created_by == "admin"
    assert (await get_template(db_session, "field_weld")).id == v2.id

    v1 = await get_template(db_session, "field_weld", version=1)
    assert v1.id == templates["field_weld"].id
    assert v1.definition("Fit-Up").weight == Decimal("10")

    versions = await list_template_history(db_session, "field_weld")
    assert [t.version for t in versions] == [2, 1]


@pytest.mark.asyncio
async def test_first_version_of_new_category(db_session: AsyncSession) -> None:
    template = await create_template_version(
        db_session,
        "heat_trace",
        [{"name": "Install", "weight": "62.5", "order": 1}, {"name": "Test", "weight": "37.5", "order": 2}],
    )

    assert template.version == 1
    assert template.definition("Install").weight == Decimal("62.5")


@pytest.mark.asyncio
async def test_invalid_weights_write_nothing(db_session: AsyncSession) -> None:
    bad = [{"name": "Receive", "weight": 50, "order": 1}, {"name": "Install", "weight": 49, "order": 2}]

    with pytest.raises(TemplateWeightError) as exc_info:
        await create_template_version(db_session, "valve", bad)

    assert exc_info.value.total == Decimal("99")
    assert await list_template_versions(db_session, "valve") == []


@pytest.mark.asyncio
async def test_missing_template(db_session: AsyncSession, templates) -> None:
    with pytest.raises(TemplateNotFoundError):
        await get_template(db_session, "unobtainium")
    with pytest.raises(TemplateNotFoundError):
        await get_template(db_session, "valve", version=9)
    with pytest.raises(TemplateNotFoundError):
        await list_template_history(db_session, "unobtainium")


@pytest.mark.asyncio
async def test_list_templates_returns_latest_versions(db_session: AsyncSession, templates) -> None:
    await create_template_version(db_session, "field_weld", WELD_V2)

    latest = {t.category: t.version for t in await list_templates(db_session)}

    assert latest["field_weld"] == 2
    assert latest["valve"] == 1
