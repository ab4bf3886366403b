"""Read-only plan and catalog inspection routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from dbt_dispatch.server.state import ServiceState, get_state

router = APIRouter()


@router.get("/plans/{dataset_id}")
def preview_plan(
    dataset_id: str,
    project: str | None = None,
    service: ServiceState = Depends(get_state),
) -> dict[str, Any]:
    """Resolve a dataset id without dispatching it."""
    plan = service.resolver.resolve(dataset_id, project or service.settings.project)
    if plan is None:
        raise HTTPException(status_code=404, detail=f"No plan for '{dataset_id}'")
    return plan.to_payload()


@router.get("/catalog")
def list_catalog(service: ServiceState = Depends(get_state)) -> list[dict[str, Any]]:
    """List catalog namespaces with their entry counts."""
    return service.catalog_summary()
