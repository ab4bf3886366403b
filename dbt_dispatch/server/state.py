"""Service state - settings, resolver and dispatcher for one app instance."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fastapi import Request

from dbt_dispatch.config import Settings
from dbt_dispatch.dispatch import Dispatcher
from dbt_dispatch.plan import PlanResolver


@dataclass(frozen=True)
class ServiceState:
    """Everything a request handler needs. Built once in create_app."""

    settings: Settings
    resolver: PlanResolver
    dispatcher: Dispatcher

    def catalog_summary(self) -> list[dict[str, Any]]:
        catalog = self.resolver.catalog
        return [
            {"namespace": namespace, "entries": len(catalog.lookup(namespace) or ())}
            for namespace in catalog
        ]


def get_state(request: Request) -> ServiceState:
    """FastAPI dependency returning the app's service state."""
    state: ServiceState = request.app.state.service
    return state
