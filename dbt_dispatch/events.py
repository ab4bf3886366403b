"""Pub/Sub push decoding for BigQuery audit-log events.

A log sink routes ``datasetservice.insert`` audit entries to a Pub/Sub
topic whose push subscription posts here. The push body wraps the log
entry as base64 JSON:

    {
      "message": {"data": "<base64 LogEntry>", "messageId": "...", ...},
      "subscription": "projects/p/subscriptions/s"
    }
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

from pydantic import BaseModel, Field


class EventDecodeError(ValueError):
    """Push message data could not be decoded into a log entry."""


class PushMessage(BaseModel):
    """The ``message`` object of a Pub/Sub push request."""

    data: str | None = None
    message_id: str | None = Field(default=None, alias="messageId")
    publish_time: str | None = Field(default=None, alias="publishTime")
    attributes: dict[str, str] = Field(default_factory=dict)

    model_config = {"frozen": True, "populate_by_name": True}


class PushEnvelope(BaseModel):
    """Body of a Pub/Sub push request."""

    message: PushMessage | None = None
    subscription: str | None = None

    model_config = {"frozen": True}


class AuditLogEntry(BaseModel):
    """The parts of an audit-log entry the dispatcher cares about."""

    resource_name: str = ""
    principal_email: str | None = None
    locations: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @property
    def dataset_id(self) -> str:
        return dataset_id_from_resource(self.resource_name)

    @classmethod
    def from_log_entry(cls, data: dict[str, Any]) -> AuditLogEntry:
        """Pick fields out of a decoded LogEntry."""
        payload = data.get("protoPayload") or {}
        if not isinstance(payload, dict):
            payload = {}

        auth_info = payload.get("authenticationInfo") or {}
        location = payload.get("resourceLocation") or {}
        locations = location.get("currentLocations") if isinstance(location, dict) else None
        if not isinstance(locations, list):
            locations = []

        return cls(
            resource_name=str(payload.get("resourceName") or ""),
            principal_email=(
                auth_info.get("principalEmail") if isinstance(auth_info, dict) else None
            ),
            locations=[str(loc) for loc in locations],
        )


def dataset_id_from_resource(resource_name: str) -> str:
    """Last path segment of a resource name.

    ``projects/p/datasets/shopify__acme`` -> ``shopify__acme``
    """
    return resource_name.rsplit("/", 1)[-1]


def decode_message_data(data: str) -> dict[str, Any]:
    """Decode base64 JSON message data.

    Raises:
        EventDecodeError: If data is not base64 encoded JSON object
    """
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EventDecodeError(f"Message data is not valid base64: {e}") from e

    try:
        decoded = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise EventDecodeError(f"Message data is not valid JSON: {e}") from e

    if not isinstance(decoded, dict):
        raise EventDecodeError(
            f"Message data must be a JSON object, got {type(decoded).__name__}"
        )
    return decoded


def decode_audit_entry(envelope: PushEnvelope) -> AuditLogEntry:
    """Extract the audit-log entry from a push envelope.

    A push without message data yields an empty entry, whose dataset id is
    ``""`` and therefore never resolves to a plan.
    """
    if envelope.message is None or not envelope.message.data:
        return AuditLogEntry()
    return AuditLogEntry.from_log_entry(decode_message_data(envelope.message.data))
