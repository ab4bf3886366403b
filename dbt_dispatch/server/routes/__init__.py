"""API route modules."""

from dbt_dispatch.server.routes.events import router as events_router
from dbt_dispatch.server.routes.plans import router as plans_router

__all__ = ["events_router", "plans_router"]
