"""Build plan resolution.

Turns a dataset id into the list of dbt models to generate for it:

    shopify__acme -> (shopify, acme) -> CATALOG["shopify"] -> BuildPlan

Resolution is pure. An unrecognised id or an unknown namespace is not an
error, it simply has no plan.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from dbt_dispatch.catalog import CATALOG, Catalog, CatalogEntry
from dbt_dispatch.identifiers import split_dataset_id

logger = logging.getLogger(__name__)

TEMPLATES_ROOT = "templates"
MODELS_ROOT = "models"


class FileSpec(BaseModel):
    """A template and the model file generated from it."""

    template: str
    path: str

    model_config = {"frozen": True}


class PlanVars(BaseModel):
    """Variables the templates are rendered with."""

    dataset_id: str = Field(alias="datasetId")
    parent: str
    client: str
    project: str

    model_config = {"frozen": True, "populate_by_name": True}


class BuildPlan(BaseModel):
    """Ordered files to generate for one dataset, plus template variables."""

    dataset_id: str = Field(alias="datasetId")
    files: tuple[FileSpec, ...]
    vars: PlanVars

    model_config = {"frozen": True, "populate_by_name": True}

    def to_payload(self) -> dict[str, Any]:
        """Wire form sent as the dispatch ``client_payload``."""
        return self.model_dump(mode="json", by_alias=True)


def _join(*parts: str) -> str:
    return "/".join(part for part in parts if part)


class PlanResolver:
    """Resolve dataset ids against a catalog.

    Example:
        resolver = PlanResolver(CATALOG)
        plan = resolver.resolve("facebook_ads__clientone", "orcaanalytics")
        plan.files[0].path
        # 'models/facebook_ads/campaigns/facebook_ads__clientone.sql'
    """

    def __init__(
        self,
        catalog: Catalog = CATALOG,
        templates_root: str = TEMPLATES_ROOT,
        models_root: str = MODELS_ROOT,
    ) -> None:
        self.catalog = catalog
        self.templates_root = templates_root.strip("/")
        self.models_root = models_root.strip("/")

    def template_path(self, namespace: str, item: CatalogEntry) -> str:
        return _join(self.templates_root, namespace, item.rel, f"{item.template}.sql")

    def output_path(self, namespace: str, item: CatalogEntry, tenant: str) -> str:
        return _join(self.models_root, namespace, item.rel, item.output_name(tenant))

    def resolve(self, dataset_id: str, project: str) -> BuildPlan | None:
        """Resolve a dataset id into a build plan.

        Args:
            dataset_id: Dataset identifier, e.g. ``shopify__acme``
            project: Project id passed through to the template variables

        Returns:
            BuildPlan, or None if the id is unrecognised or its namespace
            is not in the catalog
        """
        parts = split_dataset_id(dataset_id)
        if parts is None:
            logger.debug("Dataset id %r is not <namespace>__<tenant>", dataset_id)
            return None

        entries = self.catalog.lookup(parts.parent)
        if entries is None:
            logger.debug("No catalog namespace %r for %r", parts.parent, dataset_id)
            return None

        files = tuple(
            FileSpec(
                template=self.template_path(parts.parent, item),
                path=self.output_path(parts.parent, item, parts.client),
            )
            for item in entries
        )
        logger.debug("Resolved %d file(s) for %s", len(files), dataset_id)

        return BuildPlan(
            dataset_id=dataset_id,
            files=files,
            vars=PlanVars(
                dataset_id=dataset_id,
                parent=parts.parent,
                client=parts.client,
                project=project,
            ),
        )


def build_plan(
    dataset_id: str, project: str, catalog: Catalog = CATALOG
) -> BuildPlan | None:
    """Resolve a dataset id with default template and model roots."""
    return PlanResolver(catalog).resolve(dataset_id, project)
