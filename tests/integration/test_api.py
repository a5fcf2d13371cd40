"""Integration tests for the HTTP API against a real (SQLite) database."""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from httpx import AsyncClient

WELD_V2 = [
    {"name": "Fit-Up", "weight": 15, "order": 1},
    {"name": "Weld Made", "weight": 55, "order": 2},
    {"name": "Punch", "weight": 10, "order": 3},
    {"name": "Test", "weight": 15, "order": 4},
    {"name": "Restore", "weight": 5, "order": 5},
]


class TestTemplateEndpoints:
    """Tests for /templates."""

    @pytest.mark.asyncio
    async def test_seed_then_list(self, async_client: AsyncClient) -> None:
        seeded = await async_client.post("/templates/seed")
        assert seeded.status_code == 201
        assert len(seeded.json()) > 0

        again = await async_client.post("/templates/seed")
        assert again.json() == []

        listed = await async_client.get("/templates/")
        categories = {t["category"] for t in listed.json()}
        assert {"field_weld", "spool", "valve"} <= categories

    @pytest.mark.asyncio
    async def test_create_version(self, async_client: AsyncClient) -> None:
        await async_client.post("/templates/seed")

        response = await async_client.post(
            "/templates/field_weld", json={"milestones": WELD_V2, "created_by": "admin"}
        )

        assert response.status_code == 201
        assert response.json()["version"] == 2
        v1 = await async_client.get("/templates/field_weld", params={"version": 1})
        assert v1.json()["version"] == 1
        assert Decimal(v1.json()["milestones"][0]["weight"]) == Decimal("10")

        history = await async_client.get("/templates/field_weld/versions")
        assert [t["version"] for t in history.json()] == [2, 1]
        assert (await async_client.get("/templates/unobtainium/versions")).status_code == 404

    @pytest.mark.asyncio
    async def test_weights_must_sum_to_100(self, async_client: AsyncClient) -> None:
        bad = [{"name": "Install", "weight": 60, "order": 1}, {"name": "Test", "weight": 30, "order": 2}]

        response = await async_client.post("/templates/valve", json={"milestones": bad})

        assert response.status_code == 422
        assert "100" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_three_decimal_weights_rejected(self, async_client: AsyncClient) -> None:
        thirds = [
            {"name": "Install", "weight": "33.333", "order": 1},
            {"name": "Test", "weight": "33.333", "order": 2},
            {"name": "Restore", "weight": "33.334", "order": 3},
        ]

        response = await async_client.post("/templates/valve", json={"milestones": thirds})

        assert response.status_code == 422
        missing = await async_client.get("/templates/valve")
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_unknown_category(self, async_client: AsyncClient) -> None:
        response = await async_client.get("/templates/unobtainium")
        assert response.status_code == 404


class TestBudgetEndpoints:
    """Tests for /projects/{id}/budgets."""

    @pytest.mark.asyncio
    async def test_no_active_budget_is_null(self, async_client: AsyncClient, project) -> None:
        response = await async_client.get(f"/projects/{project.id}/budgets/active")

        assert response.status_code == 200
        assert response.json() is None

    @pytest.mark.asyncio
    async def test_create_and_revise(self, async_client: AsyncClient, project, make_component) -> None:
        await make_component(size="4")
        await make_component("support")

        first = await async_client.post(
            f"/projects/{project.id}/budgets",
            json={"total_budgeted_manhours": "900", "revision_reason": "Original", "created_by": "pm"},
        )
        assert first.status_code == 201
        body = first.json()
        assert body["budget"]["version_number"] == 1
        assert body["components_processed"] == 2
        assert len(body["warnings"]) == 1

        second = await async_client.post(
            f"/projects/{project.id}/budgets",
            json={"total_budgeted_manhours": 1200, "revision_reason": "CO-002", "effective_date": "2026-05-01"},
        )
        assert second.status_code == 201
        assert second.json()["budget"]["effective_date"] == "2026-05-01"

        active = await async_client.get(f"/projects/{project.id}/budgets/active")
        assert active.json()["version_number"] == 2

        history = await async_client.get(f"/projects/{project.id}/budgets")
        assert [b["version_number"] for b in history.json()] == [2, 1]
        assert [b["is_active"] for b in history.json()] == [True, False]

    @pytest.mark.asyncio
    async def test_non_positive_total(self, async_client: AsyncClient, project, make_component) -> None:
        await make_component(size="2")

        response = await async_client.post(
            f"/projects/{project.id}/budgets", json={"total_budgeted_manhours": "0"}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    @pytest.mark.parametrize("total", ["123456789012", "10.005"])
    async def test_total_must_fit_hours_column(
        self, async_client: AsyncClient, project, make_component, total: str
    ) -> None:
        await make_component(size="2")

        response = await async_client.post(
            f"/projects/{project.id}/budgets", json={"total_budgeted_manhours": total}
        )

        assert response.status_code == 422
        active = await async_client.get(f"/projects/{project.id}/budgets/active")
        assert active.json() is None

    @pytest.mark.asyncio
    async def test_project_without_components(self, async_client: AsyncClient, project) -> None:
        response = await async_client.post(
            f"/projects/{project.id}/budgets", json={"total_budgeted_manhours": "10"}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_project(self, async_client: AsyncClient) -> None:
        response = await async_client.post(
            f"/projects/{uuid.uuid4()}/budgets", json={"total_budgeted_manhours": "10"}
        )

        assert response.status_code == 404


class TestMilestoneEndpoint:
    """Tests for PUT /components/{id}/milestones/{name}."""

    @pytest.mark.asyncio
    async def test_update_recomputes_earned(self, async_client: AsyncClient, project, make_component) -> None:
        weld = await make_component("field_weld", size="2")
        await async_client.post(f"/projects/{project.id}/budgets", json={"total_budgeted_manhours": "10"})

        await async_client.put(f"/components/{weld.id}/milestones/Fit-Up", json={"value": True})
        response = await async_client.put(
            f"/components/{weld.id}/milestones/Weld Made", json={"value": True, "user_id": "welder-7"}
        )

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["earned_manhours"]) == Decimal("7.00")
        assert Decimal(body["percent_complete"]) == Decimal("70.00")
        assert Decimal(body["delta_manhours"]) == Decimal("6")
        assert body["previous_value"] is None

        summary = await async_client.get(f"/projects/{project.id}/manhours")
        assert Decimal(summary.json()["earned"]) == Decimal("7.00")

    @pytest.mark.asyncio
    async def test_partial_value_of_one_percent(self, async_client: AsyncClient, make_component) -> None:
        """Test that a numeric 1 on a partial milestone stays 1 percent."""
        pipe = await make_component("threaded_pipe", size="1")

        response = await async_client.put(f"/components/{pipe.id}/milestones/Fabricate", json={"value": 1})

        assert response.status_code == 200
        assert Decimal(response.json()["value"]) == Decimal("1")
        assert Decimal(response.json()["percent_complete"]) == Decimal("0.16")

    @pytest.mark.asyncio
    async def test_invalid_value(self, async_client: AsyncClient, make_component) -> None:
        valve = await make_component(size="2")

        response = await async_client.put(f"/components/{valve.id}/milestones/Receive", json={"value": 50})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_component(self, async_client: AsyncClient) -> None:
        response = await async_client.put(f"/components/{uuid.uuid4()}/milestones/Receive", json={"value": True})
        assert response.status_code == 404


class TestReportEndpoints:
    """Tests for /projects/{id}/manhours."""

    @pytest.mark.asyncio
    async def test_without_budget(self, async_client: AsyncClient, project) -> None:
        summary = await async_client.get(f"/projects/{project.id}/manhours")
        assert summary.json() == {"project_id": str(project.id), "has_budget": False}

        grouped = await async_client.get(f"/projects/{project.id}/manhours/by/system")
        assert grouped.json()["has_budget"] is False

    @pytest.mark.asyncio
    async def test_grouped_and_verified(self, async_client: AsyncClient, project, make_component) -> None:
        await make_component("support", system="S-10")
        await make_component("support", system="S-20")
        await async_client.post(f"/projects/{project.id}/budgets", json={"total_budgeted_manhours": "50"})

        grouped = await async_client.get(f"/projects/{project.id}/manhours/by/system")
        assert [g["group"] for g in grouped.json()["groups"]] == ["S-10", "S-20"]

        recalculated = await async_client.post(f"/projects/{project.id}/manhours/recalculate")
        assert recalculated.json()["allocations_recalculated"] == 2

        verified = await async_client.get(f"/projects/{project.id}/manhours/verify")
        assert verified.json()["status"] == "ok"
