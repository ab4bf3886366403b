"""HTTP service for dbt-dispatch."""

from dbt_dispatch.server.main import create_app

__all__ = ["create_app"]
