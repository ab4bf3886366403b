"""Dataset identifier parsing.

A dataset that should trigger model generation is named
``<namespace>__<tenant>``, e.g. ``shopify__acmewidgets``. The namespace
selects a catalog bucket; the tenant is the customer the models are
generated for.
"""

from __future__ import annotations

import string
from typing import NamedTuple

SEPARATOR = "__"

NAMESPACE_CHARS = frozenset(string.ascii_lowercase + string.digits + "_")
# BigQuery dataset ids are case-sensitive, so tenants may carry uppercase
TENANT_CHARS = NAMESPACE_CHARS | frozenset(string.ascii_uppercase)


class DatasetParts(NamedTuple):
    """The two halves of a dataset identifier."""

    parent: str
    client: str


def is_namespace(value: str) -> bool:
    """Check that value is a non-empty run of namespace characters."""
    return bool(value) and all(ch in NAMESPACE_CHARS for ch in value)


def is_tenant(value: str) -> bool:
    """Check that value is a non-empty run of tenant characters."""
    return bool(value) and all(ch in TENANT_CHARS for ch in value)


def split_dataset_id(identifier: str) -> DatasetParts | None:
    """Split a dataset identifier into namespace and tenant.

    The separator is the leftmost ``__`` that leaves a valid namespace
    before it and a valid tenant after it, so ``shopify__acme__eu`` splits
    as ``("shopify", "acme__eu")`` and ``___acme`` as ``("_", "acme")``.

    Args:
        identifier: Raw dataset id, usually the last segment of an
            audit-log resource name

    Returns:
        DatasetParts, or None when no such separator exists
    """
    if not isinstance(identifier, str):
        return None

    index = identifier.find(SEPARATOR)
    while index >= 0:
        parent = identifier[:index]
        client = identifier[index + len(SEPARATOR) :]
        if is_namespace(parent) and is_tenant(client):
            return DatasetParts(parent=parent, client=client)
        index = identifier.find(SEPARATOR, index + 1)

    return None
