"""FastAPI application receiving Pub/Sub pushes."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from dbt_dispatch import __version__
from dbt_dispatch.catalog import Catalog
from dbt_dispatch.config import Settings, get_settings
from dbt_dispatch.dispatch import Dispatcher, GitHubDispatcher
from dbt_dispatch.plan import PlanResolver
from dbt_dispatch.server.routes import events_router, plans_router
from dbt_dispatch.server.state import ServiceState


def create_app(
    settings: Settings | None = None,
    dispatcher: Dispatcher | None = None,
    catalog: Catalog | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    The catalog is loaded here so a broken catalog file stops the process
    at startup instead of failing requests.
    """
    if settings is None:
        settings = get_settings()
    if catalog is None:
        catalog = settings.load_catalog()
    if dispatcher is None:
        dispatcher = GitHubDispatcher(settings)

    app = FastAPI(
        title="dbt-dispatch",
        description="Dispatch dbt model generation for new BigQuery datasets",
        version=__version__,
    )
    app.state.service = ServiceState(
        settings=settings,
        resolver=PlanResolver(
            catalog,
            templates_root=settings.templates_root,
            models_root=settings.models_root,
        ),
        dispatcher=dispatcher,
    )

    app.include_router(events_router, tags=["events"])
    app.include_router(plans_router, tags=["plans"])

    @app.get("/healthz", response_class=PlainTextResponse)
    def healthz() -> str:
        return "ok"

    return app
