"""Normalize raw Jira webhook deliveries into ``NormalizedEvent``.

Handles:
  - issue_transitioned → STATUS_CHANGE (states from the changelog)
  - issue_updated      → FIELD_CHANGE
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from flowsentry.errors import InvalidPayload, UnsupportedEventType
from flowsentry.models import EventKind, NormalizedEvent

log = logging.getLogger("flowsentry.ingestion")

SUPPORTED_SOURCE = "jira"

_EVENT_KINDS = {
    "issue_transitioned": EventKind.STATUS_CHANGE,
    "issue_updated": EventKind.FIELD_CHANGE,
}


def _is_iso(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        datetime.fromisoformat(text)
    except ValueError:
        return False
    return True


def _get(d: Any, *path: str) -> Any:
    for key in path:
        if not isinstance(d, Mapping):
            return None
        d = d.get(key)
    return d


def envelope_from_jira(body: Mapping[str, Any], received_at: str | None = None) -> dict[str, Any]:
    """Wrap a native Jira webhook body in the ``{source, eventType, payload,
    receivedAt}`` envelope.

    A changelog item on the ``status`` field makes it a transition; its
    from/to names are lifted onto ``payload.changelog``.
    """
    payload = dict(body)
    items = _get(body, "changelog", "items") or []
    status_item = next(
        (i for i in items if isinstance(i, Mapping) and i.get("field") == "status"), None,
    )
    if status_item is not None:
        event_type = "issue_transitioned"
        payload["changelog"] = {
            "fromString": status_item.get("fromString"),
            "toString": status_item.get("toString"),
        }
    else:
        event_type = "issue_updated"
    if received_at is None:
        ts = body.get("timestamp")
        if isinstance(ts, (int, float)) and not isinstance(ts, bool):
            received_at = datetime.fromtimestamp(ts / 1000, tz=timezone.utc).isoformat()
        else:
            received_at = datetime.now(timezone.utc).isoformat()
    return {"source": SUPPORTED_SOURCE, "eventType": event_type, "payload": payload, "receivedAt": received_at}


def ingest_event(raw: Any) -> NormalizedEvent:
    """Validate and normalize one webhook delivery.

    *raw* has the shape ``{source, eventType, payload, receivedAt}``.  The
    event id is deterministic so redeliveries can be detected downstream.
    """
    if not isinstance(raw, Mapping):
        raise InvalidPayload("Event must be an object")
    if raw.get("source") != SUPPORTED_SOURCE:
        raise InvalidPayload(f"Unsupported source: {raw.get('source')!r}")
    received_at = raw.get("receivedAt")
    if not _is_iso(received_at):
        raise InvalidPayload(f"receivedAt is not ISO-8601: {received_at!r}")

    payload = raw.get("payload")
    issue_id = _get(payload, "issue", "id")
    project_id = _get(payload, "issue", "fields", "project", "id")
    if not issue_id or not project_id:
        raise InvalidPayload("Payload is missing issue or project id")

    event_type = raw.get("eventType")
    kind = _EVENT_KINDS.get(event_type)
    if kind is None:
        raise UnsupportedEventType(f"Unsupported event type: {event_type!r}")

    from_state = to_state = None
    if kind == EventKind.STATUS_CHANGE:
        from_state = _get(payload, "changelog", "fromString")
        to_state = _get(payload, "changelog", "toString")

    event = NormalizedEvent(
        event_id=f"{issue_id}:{kind.value}:{received_at}",
        kind=kind,
        issue_id=str(issue_id),
        project_id=str(project_id),
        timestamp=received_at,
        from_state=from_state,
        to_state=to_state,
    )
    log.debug("Ingested %s", event.event_id, extra={"issue_id": event.issue_id, "project_id": event.project_id})
    return event
