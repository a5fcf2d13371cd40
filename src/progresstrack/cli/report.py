"""Manhour report CLI commands."""

from __future__ import annotations

import asyncio
import json
from typing import Annotated
from uuid import UUID

import typer
from rich.console import Console
from rich.table import Table

from progresstrack.exceptions import AllocationIntegrityError
from progresstrack.services.recalculation import recalculate_project
from progresstrack.services.reporting import (
    GroupBy,
    get_project_manhour_summary,
    summarize_by,
    verify_allocations,
)

app = typer.Typer(help="Manhour report commands")
console = Console()


def _parse_project_id(project_id: str) -> UUID:
    try:
        return UUID(project_id)
    except ValueError as e:
        console.print(f"[red]Invalid project id:[/red] {e}")
        raise typer.Exit(code=1)


@app.command()
def summary(
    project_id: Annotated[str, typer.Argument(help="Project UUID")],
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """Show budgeted, earned, and remaining hours for a project."""
    from progresstrack.main import get_app_context

    ctx = get_app_context()
    project_uuid = _parse_project_id(project_id)

    async def _summary():
        async with ctx.session_factory() as session:
            return await get_project_manhour_summary(session, project_uuid)

    result = asyncio.run(_summary())

    if format == "json":
        console.print(json.dumps(result.to_dict(), indent=2))
        return

    if not result.has_budget:
        console.print("[yellow]No budget configured[/yellow]")
        return

    table = Table(title=f"Manhours (budget v{result.version_number})")
    table.add_column("Budgeted", justify="right")
    table.add_column("Allocated", justify="right")
    table.add_column("Earned", justify="right", style="green")
    table.add_column("Remaining", justify="right")
    table.add_column("% Complete", justify="right", style="bold")
    table.add_row(
        str(result.total_budgeted),
        str(result.allocated),
        str(result.earned),
        str(result.remaining),
        str(result.percent_complete),
    )
    console.print(table)


@app.command()
def group(
    project_id: Annotated[str, typer.Argument(help="Project UUID")],
    by: Annotated[
        GroupBy,
        typer.Option("--by", "-b", help="Grouping key"),
    ] = GroupBy.area,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format (table or json)"),
    ] = "table",
) -> None:
    """Show manhours grouped by area, system, or test package."""
    from progresstrack.main import get_app_context

    ctx = get_app_context()
    project_uuid = _parse_project_id(project_id)

    async def _group():
        async with ctx.session_factory() as session:
            return await summarize_by(session, project_uuid, by)

    rows = asyncio.run(_group())

    if rows is None:
        console.print("[yellow]No budget configured[/yellow]")
        return

    if format == "json":
        console.print(json.dumps([r.to_dict() for r in rows], indent=2))
        return

    table = Table(title=f"Manhours by {by.value}")
    table.add_column(by.value.replace("_", " ").title(), style="cyan")
    table.add_column("Components", justify="right")
    table.add_column("Budgeted", justify="right")
    table.add_column("Earned", justify="right", style="green")
    table.add_column("Remaining", justify="right")
    table.add_column("% Complete", justify="right", style="bold")

    for r in rows:
        table.add_row(
            r.group if r.group is not None else "[dim]unassigned[/dim]",
            str(r.component_count),
            str(r.budgeted),
            str(r.earned),
            str(r.remaining),
            str(r.percent_complete),
        )

    console.print(table)


@app.command()
def recalculate(
    project_id: Annotated[str, typer.Argument(help="Project UUID")],
) -> None:
    """Recompute percent complete and earned hours for every component."""
    from progresstrack.main import get_app_context

    ctx = get_app_context()
    project_uuid = _parse_project_id(project_id)

    async def _recalculate():
        async with ctx.session_factory() as session:
            return await recalculate_project(session, project_uuid)

    result = asyncio.run(_recalculate())

    console.print(
        f"[green]Recalculated[/green] {result.components_refreshed} components, "
        f"{result.allocations_recalculated} allocations "
        f"({result.allocations_changed} changed)"
    )


@app.command()
def verify(
    project_id: Annotated[str, typer.Argument(help="Project UUID")],
) -> None:
    """Check allocation rows against the budget versioning rules."""
    from progresstrack.main import get_app_context

    ctx = get_app_context()
    project_uuid = _parse_project_id(project_id)

    async def _verify():
        async with ctx.session_factory() as session:
            await verify_allocations(session, project_uuid)

    try:
        asyncio.run(_verify())
    except AllocationIntegrityError as e:
        console.print(f"[red]{e}[/red]")
        for detail in e.details:
            console.print(f"  {detail}")
        raise typer.Exit(code=2)

    console.print("[green]Allocations consistent[/green]")
