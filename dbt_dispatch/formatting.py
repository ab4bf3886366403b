"""Rich formatting for CLI output."""

from __future__ import annotations

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from dbt_dispatch.catalog import CatalogEntry, CustomNaming
from dbt_dispatch.plan import BuildPlan


def format_error(message: str, context: str | None = None) -> Panel:
    """Create formatted error panel. Message and context are plain text.

    Args:
        message: Error message
        context: Optional context hint for resolution

    Returns:
        Panel with error formatting
    """
    content = f"[bold red]{escape(message)}[/bold red]"
    if context:
        content += f"\n\n[dim]{escape(context)}[/dim]"

    return Panel(
        content,
        title="[bold red]Error[/bold red]",
        border_style="red",
        width=78,
        expand=False,
    )


def format_success(message: str, details: str | None = None) -> Panel:
    """Create formatted success panel."""
    content = f"[bold green]✓ {escape(message)}[/bold green]"
    if details:
        content += f"\n\n[dim]{escape(details)}[/dim]"

    return Panel(
        content,
        title="[bold green]Success[/bold green]",
        border_style="green",
        width=78,
        expand=False,
    )


def plan_table(plan: BuildPlan) -> Table:
    """Table of template → model pairs for a plan."""
    v = plan.vars
    table = Table(
        title=escape(
            f"{plan.dataset_id} (parent={v.parent}, client={v.client}, project={v.project})"
        )
    )
    table.add_column("#", justify="right", style="dim")
    table.add_column("Template", style="blue")
    table.add_column("Model", style="green")

    for i, spec in enumerate(plan.files, start=1):
        table.add_row(str(i), spec.template, spec.path)

    return table


def entries_table(namespace: str, entries: tuple[CatalogEntry, ...]) -> Table:
    """Table of the catalog entries of one namespace."""
    table = Table(title=namespace)
    table.add_column("Relative path", style="blue")
    table.add_column("Template")
    table.add_column("Output name", style="green")

    for item in entries:
        if isinstance(item.naming, CustomNaming):
            output = f"[yellow]{escape(item.naming.pattern)}[/yellow]"
        else:
            output = "{template}__{tenant}.sql"
        table.add_row(item.rel or "[dim](root)[/dim]", item.template, output)

    return table
