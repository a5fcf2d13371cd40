"""Integration tests for CLI commands.

Services are replaced with mocks so the commands' own argument parsing,
error handling, and rendering are exercised without a database.
"""

from __future__ import annotations

import json
import uuid
from datetime import date
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

import progresstrack.main as main_module
from progresstrack.config import ProgresstrackConfig
from progresstrack.earned_value.distributor import DistributionWarning
from progresstrack.earned_value.templates import DEFAULT_TEMPLATES, parse_milestones
from progresstrack.exceptions import (
    AllocationIntegrityError,
    InvalidBudgetError,
    TemplateNotFoundError,
    TemplateWeightError,
)
from progresstrack.main import app
from progresstrack.services.budgets import BudgetCreationResult
from progresstrack.services.recalculation import RecalculationSummary
from progresstrack.services.reporting import GroupSummary, ManhourSummary


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cli_context(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    """Install an application context whose sessions are mocks."""
    monkeypatch.chdir(tmp_path)
    session = AsyncMock()
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=None)

    ctx = SimpleNamespace(config=ProgresstrackConfig(), session_factory=factory)
    monkeypatch.setattr(main_module, "_app_context", ctx)
    monkeypatch.setattr(main_module, "initialize_context", lambda config: ctx)
    monkeypatch.setattr(main_module, "setup_logging", lambda config: None)
    return ctx


def _template(category: str = "field_weld", version: int = 1) -> SimpleNamespace:
    return SimpleNamespace(
        category=category,
        version=version,
        definitions=parse_milestones(DEFAULT_TEMPLATES[category]),
    )


def _budget(version_number: int = 1, is_active: bool = True) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid.uuid4(),
        version_number=version_number,
        total_budgeted_manhours=Decimal("1000.00"),
        revision_reason="CO-014",
        effective_date=date(2026, 3, 1),
        is_active=is_active,
        created_by="pm",
    )


class TestTemplateCLI:
    """Tests for template commands."""

    def test_seed(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        with patch(
            "progresstrack.cli.template.seed_default_templates",
            AsyncMock(return_value=[_template("valve"), _template("spool")]),
        ):
            result = cli_runner.invoke(app, ["template", "seed"])

        assert result.exit_code == 0
        assert "Seeded 2 templates" in result.stdout

    def test_seed_when_present(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        with patch("progresstrack.cli.template.seed_default_templates", AsyncMock(return_value=[])):
            result = cli_runner.invoke(app, ["template", "seed"])

        assert result.exit_code == 0
        assert "already present" in result.stdout

    def test_show(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        with patch("progresstrack.cli.template.get_template", AsyncMock(return_value=_template())):
            result = cli_runner.invoke(app, ["template", "show", "field_weld"])

        assert result.exit_code == 0
        assert "Weld Made" in result.stdout

    def test_show_missing(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        with patch(
            "progresstrack.cli.template.get_template",
            AsyncMock(side_effect=TemplateNotFoundError("heat_trace")),
        ):
            result = cli_runner.invoke(app, ["template", "show", "heat_trace"])

        assert result.exit_code == 1

    def test_create_from_file(
        self, cli_runner: CliRunner, cli_context: SimpleNamespace, tmp_path: Path
    ) -> None:
        milestones_file = tmp_path / "valve.json"
        milestones_file.write_text(json.dumps(DEFAULT_TEMPLATES["valve"]))
        create = AsyncMock(return_value=_template("valve", version=2))

        with patch("progresstrack.cli.template.create_template_version", create):
            result = cli_runner.invoke(
                app, ["template", "create", "valve", "--file", str(milestones_file), "--created-by", "admin"]
            )

        assert result.exit_code == 0
        assert "version 2" in result.stdout
        assert create.await_args.kwargs["created_by"] == "admin"

    def test_create_rejected(
        self, cli_runner: CliRunner, cli_context: SimpleNamespace, tmp_path: Path
    ) -> None:
        milestones_file = tmp_path / "bad.json"
        milestones_file.write_text(json.dumps([{"name": "Install", "weight": 90, "order": 1}]))

        with patch(
            "progresstrack.cli.template.create_template_version",
            AsyncMock(side_effect=TemplateWeightError("Milestone weights must sum to 100, got 90")),
        ):
            result = cli_runner.invoke(app, ["template", "create", "valve", "--file", str(milestones_file)])

        assert result.exit_code == 1
        assert "Template rejected" in result.stdout


class TestBudgetCLI:
    """Tests for budget commands."""

    def test_create_json(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        project_id = uuid.uuid4()
        budget = _budget()
        warning = DistributionWarning(
            component_id=uuid.uuid4(), category="support", identity_key={}, reason="No usable size"
        )
        create = AsyncMock(
            return_value=BudgetCreationResult(
                budget=budget,
                components_processed=12,
                total_allocated=Decimal("999.99"),
                warnings=[warning],
            )
        )

        with patch("progresstrack.cli.budget.create_budget", create):
            result = cli_runner.invoke(
                app,
                ["budget", "create", str(project_id), "1000", "-r", "CO-014", "-d", "2026-03-01", "-f", "json"],
            )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["version_number"] == 1
        assert data["components_processed"] == 12
        assert len(data["warnings"]) == 1

        args = create.await_args
        assert args.args[1] == project_id
        assert args.args[2] == Decimal("1000")
        assert args.kwargs["revision_reason"] == "CO-014"
        assert str(args.kwargs["effective_date"]) == "2026-03-01"

    def test_create_invalid_arguments(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        result = cli_runner.invoke(app, ["budget", "create", "not-a-uuid", "1000"])
        assert result.exit_code == 1
        assert "Invalid argument" in result.stdout

    def test_create_rejected_by_service(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        with patch(
            "progresstrack.cli.budget.create_budget",
            AsyncMock(side_effect=InvalidBudgetError("Total budgeted manhours must be greater than 0")),
        ):
            result = cli_runner.invoke(app, ["budget", "create", str(uuid.uuid4()), "0"])

        assert result.exit_code == 1
        assert "Budget not created" in result.stdout

    def test_list(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        budgets = [_budget(2), _budget(1, is_active=False)]
        with patch("progresstrack.cli.budget.list_budget_versions", AsyncMock(return_value=budgets)):
            result = cli_runner.invoke(app, ["budget", "list", str(uuid.uuid4())])

        assert result.exit_code == 0
        assert "Budget Versions" in result.stdout
        assert "CO-014" in result.stdout

    def test_list_empty(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        with patch("progresstrack.cli.budget.list_budget_versions", AsyncMock(return_value=[])):
            result = cli_runner.invoke(app, ["budget", "list", str(uuid.uuid4())])

        assert result.exit_code == 0
        assert "No budget configured" in result.stdout


class TestReportCLI:
    """Tests for report commands."""

    def test_summary_without_budget(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        project_id = uuid.uuid4()
        with patch(
            "progresstrack.cli.report.get_project_manhour_summary",
            AsyncMock(return_value=ManhourSummary(project_id=project_id, has_budget=False)),
        ):
            result = cli_runner.invoke(app, ["report", "summary", str(project_id)])

        assert result.exit_code == 0
        assert "No budget configured" in result.stdout

    def test_summary_json(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        project_id = uuid.uuid4()
        summary = ManhourSummary(
            project_id=project_id,
            has_budget=True,
            budget_id=uuid.uuid4(),
            version_number=3,
            total_budgeted=Decimal("100.00"),
            allocated=Decimal("100.00"),
            earned=Decimal("25.00"),
            remaining=Decimal("75.00"),
            percent_complete=Decimal("25.00"),
            component_count=4,
        )
        with patch("progresstrack.cli.report.get_project_manhour_summary", AsyncMock(return_value=summary)):
            result = cli_runner.invoke(app, ["report", "summary", str(project_id), "--format", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["remaining"] == "75.00"
        assert data["version_number"] == 3

    def test_group_by_system(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        rows = [
            GroupSummary(group="S-10", budgeted=Decimal("60.00"), earned=Decimal("30.00"), component_count=2),
            GroupSummary(group=None, budgeted=Decimal("40.00"), component_count=1),
        ]
        summarize = AsyncMock(return_value=rows)
        with patch("progresstrack.cli.report.summarize_by", summarize):
            result = cli_runner.invoke(app, ["report", "group", str(uuid.uuid4()), "--by", "system"])

        assert result.exit_code == 0
        assert "S-10" in result.stdout
        assert "unassigned" in result.stdout
        assert summarize.await_args.args[2].value == "system"

    def test_group_rejects_unknown_key(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        result = cli_runner.invoke(app, ["report", "group", str(uuid.uuid4()), "--by", "colour"])
        assert result.exit_code != 0

    def test_recalculate(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        summary = RecalculationSummary(components_refreshed=5, allocations_recalculated=4, allocations_changed=2)
        with patch("progresstrack.cli.report.recalculate_project", AsyncMock(return_value=summary)):
            result = cli_runner.invoke(app, ["report", "recalculate", str(uuid.uuid4())])

        assert result.exit_code == 0
        assert "5 components" in result.stdout

    def test_verify_ok(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        with patch("progresstrack.cli.report.verify_allocations", AsyncMock(return_value=None)):
            result = cli_runner.invoke(app, ["report", "verify", str(uuid.uuid4())])

        assert result.exit_code == 0
        assert "consistent" in result.stdout

    def test_verify_violation(self, cli_runner: CliRunner, cli_context: SimpleNamespace) -> None:
        project_id = uuid.uuid4()
        error = AllocationIntegrityError(project_id, [{"problem": "budget_project_mismatch"}])
        with patch("progresstrack.cli.report.verify_allocations", AsyncMock(side_effect=error)):
            result = cli_runner.invoke(app, ["report", "verify", str(project_id)])

        assert result.exit_code == 2
        assert "budget_project_mismatch" in result.stdout
