"""Jira webhook receiver.

Accepts either the normalized envelope ``{source, eventType, payload,
receivedAt}`` or a native Jira webhook body, which is wrapped first.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import os

from fastapi import APIRouter, HTTPException, Request

from flowsentry import engine
from flowsentry.defaults import WEBHOOK_MAX_BODY_BYTES
from flowsentry.ingestion import envelope_from_jira

log = logging.getLogger("flowsentry.webhooks")

router = APIRouter(tags=["webhooks"])


def _parse_max_body() -> int:
    """Parse FLOWSENTRY_WEBHOOK_MAX_BODY_BYTES safely; default 1 MiB."""
    raw = os.environ.get("FLOWSENTRY_WEBHOOK_MAX_BODY_BYTES", str(WEBHOOK_MAX_BODY_BYTES))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return WEBHOOK_MAX_BODY_BYTES


_MAX_WEBHOOK_BODY = _parse_max_body()


def verify_signature(secret: str, body: bytes, signature: str) -> bool:
    expected = "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature)


@router.post("/webhooks/jira")
async def jira_webhook(request: Request):
    body = await request.body()
    if len(body) > _MAX_WEBHOOK_BODY:
        raise HTTPException(status_code=413, detail="Payload too large")

    secret = request.app.state.webhook_secret
    if secret and not verify_signature(secret, body, request.headers.get("x-hub-signature", "")):
        raise HTTPException(status_code=401, detail="Invalid signature")

    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Webhook body must be an object")

    raw = data if "source" in data else envelope_from_jira(data)
    return engine.handle_transition_event(raw)
