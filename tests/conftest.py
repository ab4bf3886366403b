"""Shared fixtures."""

import base64
import json
import os
from typing import Any

import pytest

from dbt_dispatch.config import get_settings

ENV_VARS = ("GITHUB_TOKEN", "PORT", "LOG_LEVEL")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of Settings."""
    for name in list(os.environ):
        if name.startswith("DBT_DISPATCH_") or name in ENV_VARS:
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()


def make_push(resource_name: str | None, **proto: Any) -> dict[str, Any]:
    """Build a Pub/Sub push body wrapping an audit-log entry."""
    payload: dict[str, Any] = dict(proto)
    if resource_name is not None:
        payload["resourceName"] = resource_name
    entry = {"protoPayload": payload}
    data = base64.b64encode(json.dumps(entry).encode("utf-8")).decode("ascii")
    return {
        "message": {"data": data, "messageId": "123", "publishTime": "2024-01-01T00:00:00Z"},
        "subscription": "projects/orcaanalytics/subscriptions/dataset-created",
    }


@pytest.fixture
def push_body() -> Any:
    """Factory for Pub/Sub push bodies."""
    return make_push
