"""Manhour budget CLI commands.

This module provides CLI commands for creating budget versions and viewing a
project's budget history.
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from progresstrack.earned_value.weights import WeightPolicy
from progresstrack.exceptions import ProgressTrackError
from progresstrack.services.budgets import create_budget, list_budget_versions

app = typer.Typer(help="Manhour budget commands")
console = Console()


@app.command()
def create(
    project_id: Annotated[str, typer.Argument(help="Project UUID")],
    total: Annotated[str, typer.Argument(help="Total budgeted manhours")],
    reason: Annotated[
        str,
        typer.Option("--reason", "-r", help="Revision reason (e.g. change order number)"),
    ] = "",
    effective_date: Annotated[
        Optional[str],
        typer.Option("--effective-date", "-d", help="Effective date (YYYY-MM-DD)"),
    ] = None,
    created_by: Annotated[
        Optional[str],
        typer.Option("--created-by", help="Actor creating the version"),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """Create a new budget version and distribute it across components."""
    from progresstrack.main import get_app_context

    ctx = get_app_context()

    try:
        project_uuid = UUID(project_id)
        total_hours = Decimal(total)
        effective = datetime.strptime(effective_date, "%Y-%m-%d").date() if effective_date else None
    except (ValueError, InvalidOperation) as e:
        console.print(f"[red]Invalid argument:[/red] {e}")
        raise typer.Exit(code=1)

    policy = WeightPolicy.from_config(ctx.config.manhour)

    async def _create():
        async with ctx.session_factory() as session:
            return await create_budget(
                session,
                project_uuid,
                total_hours,
                revision_reason=reason,
                effective_date=effective,
                created_by=created_by,
                policy=policy,
            )

    try:
        result = asyncio.run(_create())
    except ProgressTrackError as e:
        console.print(f"[red]Budget not created:[/red] {e}")
        raise typer.Exit(code=1)

    if format == "json":
        console.print(json.dumps(result.to_dict(), indent=2))
        return

    panel = Panel(
        f"[green]Budget version {result.budget.version_number} is now active[/green]\n\n"
        f"[bold]ID:[/bold] {result.budget.id}\n"
        f"[bold]Total:[/bold] {result.budget.total_budgeted_manhours}\n"
        f"[bold]Components:[/bold] {result.components_processed}\n"
        f"[bold]Allocated:[/bold] {result.total_allocated}\n"
        f"[bold]Warnings:[/bold] {len(result.warnings)}",
        title="Budget Created",
        border_style="green",
    )
    console.print(panel)

    if result.warnings:
        table = Table(title="Baseline weight used")
        table.add_column("Component", style="cyan", no_wrap=True)
        table.add_column("Category")
        table.add_column("Reason", style="yellow")
        for w in result.warnings:
            table.add_row(str(w.component_id), w.category, w.reason)
        console.print(table)


@app.command("list")
def list_command(
    project_id: Annotated[str, typer.Argument(help="Project UUID")],
) -> None:
    """List a project's budget versions, newest first."""
    from progresstrack.main import get_app_context

    ctx = get_app_context()

    try:
        project_uuid = UUID(project_id)
    except ValueError as e:
        console.print(f"[red]Invalid project id:[/red] {e}")
        raise typer.Exit(code=1)

    async def _list():
        async with ctx.session_factory() as session:
            return await list_budget_versions(session, project_uuid)

    budgets = asyncio.run(_list())

    if not budgets:
        console.print("[yellow]No budget configured[/yellow]")
        return

    table = Table(title="Budget Versions")
    table.add_column("Version", justify="right")
    table.add_column("Active")
    table.add_column("Total", justify="right")
    table.add_column("Effective")
    table.add_column("Reason")
    table.add_column("Created By", style="dim")

    for b in budgets:
        table.add_row(
            str(b.version_number),
            "[green]yes[/green]" if b.is_active else "",
            str(b.total_budgeted_manhours),
            b.effective_date.isoformat(),
            b.revision_reason,
            b.created_by or "",
        )

    console.print(table)
