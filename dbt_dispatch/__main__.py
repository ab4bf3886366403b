"""Command-line interface for dbt-dispatch."""

from __future__ import annotations

import json
import sys

import click
from pydantic import ValidationError
from rich.console import Console

from dbt_dispatch.catalog import CatalogError
from dbt_dispatch.config import Settings
from dbt_dispatch.dispatch import GitHubDispatchError, GitHubDispatcher
from dbt_dispatch.formatting import (
    entries_table,
    format_error,
    format_success,
    plan_table,
)
from dbt_dispatch.log import setup_logging
from dbt_dispatch.plan import BuildPlan, PlanResolver

console = Console()


def _load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        console.print(format_error("Invalid settings", str(e)))
        sys.exit(1)


def _resolver(settings: Settings) -> PlanResolver:
    try:
        catalog = settings.load_catalog()
    except (CatalogError, OSError) as e:
        console.print(
            format_error(str(e), context=f"Catalog path: {settings.catalog_path}")
        )
        sys.exit(1)
    return PlanResolver(
        catalog,
        templates_root=settings.templates_root,
        models_root=settings.models_root,
    )


def _resolve_or_exit(settings: Settings, dataset_id: str, project: str | None) -> BuildPlan:
    plan = _resolver(settings).resolve(dataset_id, project or settings.project)
    if plan is None:
        console.print(
            format_error(
                f"No plan for '{dataset_id}'",
                context="Dataset ids must look like <namespace>__<tenant> with a "
                "namespace from the catalog. Run 'dbt-dispatch catalog' to list them.",
            )
        )
        sys.exit(1)
    return plan


@click.group()
@click.version_option(package_name="dbt-dispatch")
def cli() -> None:
    """Dispatch dbt model generation for new BigQuery datasets.

    Run the Pub/Sub push service:

        $ dbt-dispatch serve

    Preview what a dataset would generate:

        $ dbt-dispatch plan shopify__acme
    """
    pass


@cli.command()
@click.option("--host", default=None, help="Bind address (default: settings.host)")
@click.option("--port", type=int, default=None, help="Port (default: $PORT or 8080)")
def serve(host: str | None, port: int | None) -> None:
    """Run the HTTP service receiving Pub/Sub pushes."""
    import uvicorn

    from dbt_dispatch.server import create_app

    settings = _load_settings()
    setup_logging(settings.log_level)

    try:
        app = create_app(settings)
    except (CatalogError, OSError) as e:
        console.print(format_error(f"Cannot start: {e}"))
        sys.exit(1)

    uvicorn.run(
        app,
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


@cli.command()
@click.argument("dataset_id")
@click.option("--project", "-p", default=None, help="Project id for vars.project")
@click.option("--json", "as_json", is_flag=True, help="Print the dispatch payload as JSON")
def plan(dataset_id: str, project: str | None, as_json: bool) -> None:
    """Show the build plan for DATASET_ID without dispatching it."""
    settings = _load_settings()
    build_plan = _resolve_or_exit(settings, dataset_id, project)

    if as_json:
        click.echo(json.dumps(build_plan.to_payload(), indent=2))
    else:
        console.print(plan_table(build_plan))


@cli.command()
@click.argument("namespace", required=False)
def catalog(namespace: str | None) -> None:
    """List catalog namespaces, or the entries of NAMESPACE."""
    settings = _load_settings()
    table = _resolver(settings).catalog

    if namespace is None:
        for name in table:
            entries = table.lookup(name) or ()
            console.print(f"[bold]{name}[/bold] [dim]({len(entries)} templates)[/dim]")
        return

    entries = table.lookup(namespace)
    if entries is None:
        console.print(format_error(f"Unknown namespace '{namespace}'"))
        sys.exit(1)
    console.print(entries_table(namespace, entries))


@cli.command()
@click.argument("dataset_id")
@click.option("--project", "-p", default=None, help="Project id for vars.project")
@click.option("--dry-run", is_flag=True, help="Resolve and report without calling GitHub")
@click.option("--debug", is_flag=True, help="Show debug logging")
def dispatch(dataset_id: str, project: str | None, dry_run: bool, debug: bool) -> None:
    """Resolve DATASET_ID and send its plan to GitHub.

    Useful to replay a dataset whose push event was missed.
    """
    settings = _load_settings()
    setup_logging("DEBUG" if debug else settings.log_level)
    build_plan = _resolve_or_exit(settings, dataset_id, project)

    try:
        result = GitHubDispatcher(settings).dispatch(build_plan, dry_run=dry_run)
    except GitHubDispatchError as e:
        console.print(format_error(str(e)))
        sys.exit(1)

    console.print(plan_table(build_plan))
    console.print(format_success(result.message or "Dispatched"))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
