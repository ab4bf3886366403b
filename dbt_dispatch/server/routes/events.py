"""Pub/Sub push endpoint for new-dataset audit events."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from dbt_dispatch.dispatch import GitHubDispatchError
from dbt_dispatch.events import EventDecodeError, PushEnvelope, decode_audit_entry
from dbt_dispatch.server.state import ServiceState, get_state

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/", status_code=204)
def receive_push(
    envelope: PushEnvelope,
    service: ServiceState = Depends(get_state),
) -> Response:
    """Resolve the created dataset and dispatch its build plan.

    Any 2xx acknowledges the push. A dispatch failure answers 500 so
    Pub/Sub redelivers the message.
    """
    try:
        audit = decode_audit_entry(envelope)
    except EventDecodeError as e:
        logger.warning("Rejected push %s: %s", _message_id(envelope), e)
        raise HTTPException(status_code=400, detail=str(e))

    dataset_id = audit.dataset_id
    logger.info(
        "NEW_DATASET_EVENT dataset_id=%s resource_name=%s who=%s locations=%s",
        dataset_id,
        audit.resource_name,
        audit.principal_email,
        audit.locations,
    )

    plan = service.resolver.resolve(dataset_id, service.settings.project)
    if plan is None:
        logger.info("No matching template plan for: %s", dataset_id)
        return Response(status_code=204)

    try:
        result = service.dispatcher.dispatch(plan)
    except GitHubDispatchError as e:
        logger.error(
            "Dispatch failed for %s (status=%s): %s", dataset_id, e.status_code, e
        )
        raise HTTPException(status_code=500, detail="Dispatch failed")

    logger.info("%s", result.message)
    return Response(status_code=204)


def _message_id(envelope: PushEnvelope) -> str:
    if envelope.message is None or envelope.message.message_id is None:
        return "<no message id>"
    return envelope.message.message_id
