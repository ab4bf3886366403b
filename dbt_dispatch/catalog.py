"""Catalog of dbt model templates per data source.

Each namespace (the data source part of a dataset id) maps to an ordered
list of entries. Every entry turns one SQL template into one tenant model:

    templates/<namespace>/<rel>/<template>.sql
        -> models/<namespace>/<rel>/<template>__<tenant>.sql

Entries whose output does not follow that convention carry a
``CustomNaming`` pattern instead.

The built-in table lives at the bottom of this module as ``CATALOG``.
Deployments may load a replacement from YAML:

    shopify:
      - rel: cohort_subscription
        template: shopify_cohort_otptosub
        output: "shopify_cohort__{tenant}_otptosub.sql"
      - rel: orders
        template: shopify_orders
"""

from __future__ import annotations

import string
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path
from types import MappingProxyType
from typing import Annotated, Any, Literal, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from dbt_dispatch.identifiers import SEPARATOR, is_namespace

NAMING_PLACEHOLDERS = frozenset({"template", "tenant"})


class CatalogError(ValueError):
    """The catalog definition itself is malformed."""


class DefaultNaming(BaseModel):
    """Output named ``<template>__<tenant>.sql``."""

    kind: Literal["default"] = "default"

    model_config = {"frozen": True}

    def render(self, template: str, tenant: str) -> str:
        return f"{template}{SEPARATOR}{tenant}.sql"


class CustomNaming(BaseModel):
    """Output named by a format pattern over ``{template}`` and ``{tenant}``."""

    kind: Literal["custom"] = "custom"
    pattern: str

    model_config = {"frozen": True}

    @field_validator("pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:
        """Only known placeholders, tenant required, plain .sql file name."""
        try:
            fields = {
                name for _, name, _, _ in string.Formatter().parse(v) if name is not None
            }
        except ValueError as e:
            raise ValueError(f"Invalid output pattern '{v}': {e}") from e

        unknown = fields - NAMING_PLACEHOLDERS
        if unknown:
            raise ValueError(
                f"Unknown placeholder(s) {sorted(unknown)} in output pattern '{v}'"
            )
        if "tenant" not in fields:
            raise ValueError(f"Output pattern '{v}' must contain {{tenant}}")
        if "/" in v:
            raise ValueError(f"Output pattern '{v}' must be a file name, not a path")
        if not v.endswith(".sql"):
            raise ValueError(f"Output pattern '{v}' must end with .sql")
        return v

    def render(self, template: str, tenant: str) -> str:
        return self.pattern.format(template=template, tenant=tenant)


OutputNaming = Annotated[
    Union[DefaultNaming, CustomNaming], Field(discriminator="kind")
]


class CatalogEntry(BaseModel):
    """One template to instantiate for a namespace."""

    rel: str = ""  # Sub-directory under the namespace, "" for the namespace root
    template: str  # Template name without .sql
    naming: OutputNaming = Field(default_factory=DefaultNaming)

    model_config = {"frozen": True}

    @field_validator("rel")
    @classmethod
    def validate_rel(cls, v: str) -> str:
        """Relative paths are '/'-separated with no empty or dot segments."""
        if not v:
            return v
        for segment in v.split("/"):
            if segment in ("", ".", ".."):
                raise ValueError(f"Invalid relative path '{v}'")
        return v

    @field_validator("template")
    @classmethod
    def validate_template(cls, v: str) -> str:
        if not v or "/" in v:
            raise ValueError(f"Invalid template name '{v}'")
        if v.endswith(".sql"):
            raise ValueError(f"Template name '{v}' must not include the .sql extension")
        return v

    def output_name(self, tenant: str) -> str:
        """File name of the generated model for a tenant."""
        return self.naming.render(self.template, tenant)


def entry(rel: str, template: str, output: str | None = None) -> CatalogEntry:
    """Shorthand for declaring catalog entries.

    Args:
        rel: Relative directory under the namespace ("" for none)
        template: Template name without extension
        output: Optional output-name pattern using {template} and {tenant}
    """
    naming: DefaultNaming | CustomNaming = (
        CustomNaming(pattern=output) if output is not None else DefaultNaming()
    )
    return CatalogEntry(rel=rel, template=template, naming=naming)


class Catalog:
    """Immutable namespace -> entries table, validated on construction."""

    def __init__(self, namespaces: Mapping[str, Sequence[CatalogEntry]]) -> None:
        table: dict[str, tuple[CatalogEntry, ...]] = {}
        for namespace, entries in namespaces.items():
            table[namespace] = tuple(entries)
        self._validate(table)
        self._table = MappingProxyType(table)

    @staticmethod
    def _validate(table: dict[str, tuple[CatalogEntry, ...]]) -> None:
        errors: list[str] = []

        for namespace, entries in table.items():
            if not isinstance(namespace, str) or not is_namespace(namespace):
                errors.append(
                    f"Namespace {namespace!r} must be lowercase letters, digits "
                    "and underscores"
                )
                continue
            # "<key>__<tenant>" must split at len(key): no "__" inside, no "_" at
            # either edge
            if SEPARATOR in namespace:
                errors.append(f"Namespace '{namespace}' must not contain '{SEPARATOR}'")
            if namespace.startswith("_") or namespace.endswith("_"):
                errors.append(f"Namespace '{namespace}' must not start or end with '_'")
            if not entries:
                errors.append(f"Namespace '{namespace}' has no entries")

            seen: dict[tuple[str, str], str] = {}
            for item in entries:
                if not isinstance(item, CatalogEntry):
                    errors.append(
                        f"Namespace '{namespace}' has a non-entry value: {item!r}"
                    )
                    continue
                # Checked for a sample tenant only; patterns that collide for particular
                # tenants (a_{tenant}.sql vs {tenant}_a.sql) are not detected
                key = (item.rel, item.output_name("tenant"))
                if key in seen:
                    errors.append(
                        f"Namespace '{namespace}': templates '{seen[key]}' and "
                        f"'{item.template}' write the same output file"
                    )
                else:
                    seen[key] = item.template

        if errors:
            raise CatalogError("Invalid catalog: " + "; ".join(errors))

    def lookup(self, namespace: str) -> tuple[CatalogEntry, ...] | None:
        """Entries for a namespace in declared order, or None if unknown."""
        return self._table.get(namespace)

    @property
    def namespaces(self) -> tuple[str, ...]:
        return tuple(self._table)

    def __contains__(self, namespace: object) -> bool:
        return namespace in self._table

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"Catalog(namespaces={len(self)})"

    @classmethod
    def from_mapping(cls, data: Any) -> Catalog:
        """Build a catalog from plain data (as parsed from YAML).

        Raises:
            CatalogError: If the data does not describe a valid catalog
        """
        if not isinstance(data, Mapping):
            raise CatalogError(
                f"Catalog must be a mapping of namespace to entries, got {type(data).__name__}"
            )

        namespaces: dict[str, list[CatalogEntry]] = {}
        for namespace, items in data.items():
            if not isinstance(items, list):
                raise CatalogError(f"Entries for '{namespace}' must be a list")
            entries: list[CatalogEntry] = []
            for item in items:
                if not isinstance(item, Mapping):
                    raise CatalogError(f"Entry in '{namespace}' must be a mapping")
                unknown = set(item) - {"rel", "template", "output"}
                if unknown:
                    raise CatalogError(
                        f"Unknown key(s) {sorted(unknown)} in '{namespace}' entry"
                    )
                try:
                    entries.append(
                        entry(
                            rel=item.get("rel") or "",
                            template=item.get("template", ""),
                            output=item.get("output"),
                        )
                    )
                except ValidationError as e:
                    raise CatalogError(f"Invalid entry in '{namespace}': {e}") from e
            namespaces[namespace] = entries

        return cls(namespaces)

    @classmethod
    def from_yaml(cls, content: str) -> Catalog:
        """Parse a catalog from a YAML string."""
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise CatalogError(f"Catalog is not valid YAML: {e}") from e
        return cls.from_mapping(data)

    @classmethod
    def from_file(cls, path: Path | str) -> Catalog:
        """Load a catalog from a YAML file."""
        path = Path(path)
        return cls.from_yaml(path.read_text(encoding="utf-8"))


CATALOG = Catalog(
    {
        "facebook_ads": [
            entry("campaigns", "facebook_ads"),
            entry("creative", "facebook_ads_creative"),
        ],
        "google_ads": [
            entry("campaigns", "google_ads"),
            entry("keywords", "google_ads_keywords"),
            entry("products", "google_ads_products"),
        ],
        "google_analytics_4": [
            entry(
                "sessionscvr",
                "google_analytics_4_sessionscvr",
                output="google_analytics_4__{tenant}_sessionscvr.sql",
            ),
        ],
        "shareasale": [
            entry(
                "shareasale_weeklyprogress",
                "shareasale_weeklyprogressreport",
                output="shareasale__{tenant}_weeklyprogressreport.sql",
            ),
        ],
        "shopify": [
            # Non-standard
            entry(
                "cohort_subscription",
                "shopify_cohort_otptosub",
                output="shopify_cohort__{tenant}_otptosub.sql",
            ),
            entry(
                "cohort_subscription",
                "shopify_cohort_subfirstpurchase",
                output="shopify_cohort__{tenant}_subfirstpurchase.sql",
            ),
            # Standard
            entry("cohort", "shopify_cohort"),
            entry("newreturn", "shopify_newreturn"),
            entry("orders", "shopify_orders"),
            entry("product_firstbasket", "shopify_product_firstbasket"),
            entry("product_firstsecondorder", "shopify_product_firstsecondorder"),
            entry("product_ltr_journey", "shopify_product_ltrjourney"),
            entry("product_ltr", "shopify_product_ltr"),
            entry("product", "shopify_products"),
            entry("refunds", "shopify_refunds"),
            entry("shopify_pixel/base_customervisits", "shopify_customervisits"),
            entry("shopify_pixel/daily_channel", "shopify_pixel_dailychannel"),
            entry("shopify_pixel/extrapolated", "shopify_pixel_extrapolated"),
            entry("shopify_pixel/modeled", "shopify_pixel_modeled"),
            entry("shopify_pixel/percent_of_orders", "shopify_pixel_percentoforders"),
        ],
        "amazon": [
            entry("amazon_ads", "amazon_ads"),
            entry("amazon_sellercentral", "amazon_sellercentral"),
        ],
        "applovin": [entry("", "applovin")],
        "bing_ads": [entry("", "bing_ads")],
        "pinterest_ads": [entry("", "pinterest_ads")],
        "snapchat_ads": [entry("", "snapchat_ads")],
        "tiktok_ads": [
            entry("campaigns", "tiktok_ads"),
            entry("creative", "tiktok_ads_creative"),
        ],
        "hdyhau_fairing": [entry("", "fairing_hdyhau")],
        "hdyhau_knocommerce": [
            entry("all_responses", "knocommerce_allresponses"),
            entry("hdyhau", "knocommerce_hdyhau"),
        ],
        "klaviyo": [
            entry("leadgen_sms", "klaviyo_leadgen_sms"),
            entry("leadgen", "klaviyo_leadgen"),
        ],
        "liveintent": [entry("", "liveintent")],
        "pacing": [entry("", "pacing")],
        "rakuten": [entry("", "rakuten")],
        "twitter_ads": [entry("", "twitter_ads")],
    }
)
