"""Milestone template CLI commands.

This module provides CLI commands for seeding, listing, showing, and
versioning milestone templates.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from progresstrack.exceptions import ProgressTrackError
from progresstrack.services.templates import (
    create_template_version,
    get_template,
    list_templates,
    seed_default_templates,
)

app = typer.Typer(help="Milestone template commands")
console = Console()


@app.command()
def seed() -> None:
    """Insert the default templates for categories that have none."""
    from progresstrack.main import get_app_context

    ctx = get_app_context()

    async def _seed():
        async with ctx.session_factory() as session:
            return await seed_default_templates(session)

    created = asyncio.run(_seed())

    if not created:
        console.print("[yellow]All default templates already present[/yellow]")
        return
    console.print(
        f"[green]Seeded {len(created)} templates:[/green] "
        + ", ".join(t.category for t in created)
    )


@app.command("list")
def list_command() -> None:
    """List the latest template version of every category."""
    from progresstrack.main import get_app_context

    ctx = get_app_context()

    async def _list():
        async with ctx.session_factory() as session:
            return await list_templates(session)

    templates = asyncio.run(_list())

    if not templates:
        console.print("[yellow]No templates found[/yellow]")
        return

    table = Table(title="Milestone Templates")
    table.add_column("Category", style="cyan")
    table.add_column("Version", justify="right")
    table.add_column("Milestones")

    for t in templates:
        table.add_row(
            t.category,
            str(t.version),
            ", ".join(f"{d.name} ({d.weight})" for d in t.definitions),
        )

    console.print(table)


@app.command()
def show(
    category: Annotated[str, typer.Argument(help="Component category")],
    version: Annotated[
        Optional[int],
        typer.Option("--version", "-V", help="Template version (default: latest)"),
    ] = None,
) -> None:
    """Show one template version."""
    from progresstrack.main import get_app_context

    ctx = get_app_context()

    async def _show():
        async with ctx.session_factory() as session:
            return await get_template(session, category, version)

    try:
        template = asyncio.run(_show())
    except ProgressTrackError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)

    table = Table(title=f"{template.category} v{template.version}")
    table.add_column("Order", justify="right")
    table.add_column("Milestone", style="bold")
    table.add_column("Weight", justify="right")
    table.add_column("Kind")
    table.add_column("Approval")

    for d in template.definitions:
        table.add_row(
            str(d.order),
            d.name,
            str(d.weight),
            "partial" if d.is_partial else "discrete",
            "yes" if d.requires_secondary_approval else "",
        )

    console.print(table)


@app.command()
def create(
    category: Annotated[str, typer.Argument(help="Component category")],
    milestones_file: Annotated[
        Path,
        typer.Option(
            "--file",
            "-f",
            help="JSON file containing the milestone list",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    created_by: Annotated[
        Optional[str],
        typer.Option("--created-by", help="Administrator creating the version"),
    ] = None,
) -> None:
    """Create a new template version from a JSON milestone list."""
    from progresstrack.main import get_app_context

    ctx = get_app_context()

    try:
        milestones = json.loads(milestones_file.read_text())
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in milestone file:[/red] {e}")
        raise typer.Exit(code=1)

    async def _create():
        async with ctx.session_factory() as session:
            return await create_template_version(
                session, category, milestones, created_by=created_by
            )

    try:
        template = asyncio.run(_create())
    except ProgressTrackError as e:
        console.print(f"[red]Template rejected:[/red] {e}")
        raise typer.Exit(code=1)

    console.print(
        f"[green]Created {template.category} version {template.version}[/green] "
        f"({len(template.definitions)} milestones)"
    )
