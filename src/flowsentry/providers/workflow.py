"""Resolve a project's workflow into a normalized ``WorkflowGraph``."""

from __future__ import annotations

import logging
from typing import Any

from flowsentry.errors import ProviderUnavailable, WorkflowNotFound
from flowsentry.models import Transition, WorkflowGraph
from flowsentry.providers.port import WorkflowProvider

log = logging.getLogger("flowsentry.providers.workflow")


def normalize_workflow(raw: Any) -> WorkflowGraph:
    """Convert ``{id, statuses: [{name}], transitions: [{from, to}]}``.

    State names are de-duplicated in order.  Transitions are kept only when
    both ends are strings.
    """
    if not isinstance(raw, dict):
        raise WorkflowNotFound("Invalid workflow structure received")
    workflow_id = raw.get("id")
    statuses = raw.get("statuses")
    transitions = raw.get("transitions")
    if not workflow_id or not isinstance(statuses, list) or not isinstance(transitions, list):
        raise WorkflowNotFound("Invalid workflow structure received")

    states: list[str] = []
    for status in statuses:
        name = status.get("name") if isinstance(status, dict) else None
        if isinstance(name, str) and name not in states:
            states.append(name)

    edges = [
        Transition(source=t["from"], target=t["to"])
        for t in transitions
        if isinstance(t, dict) and isinstance(t.get("from"), str) and isinstance(t.get("to"), str)
    ]
    if not states or not edges:
        raise WorkflowNotFound("Workflow has no valid states or transitions")
    return WorkflowGraph(id=str(workflow_id), states=states, transitions=edges)


def resolve_workflow(project_id: str, provider: WorkflowProvider) -> WorkflowGraph:
    if not project_id:
        raise WorkflowNotFound("project_id is required")
    try:
        raw = provider.fetch_workflow(project_id)
    except Exception as e:
        log.warning("Workflow fetch failed for %s: %s", project_id, e, extra={"project_id": project_id})
        raise ProviderUnavailable(f"Failed to fetch workflow for {project_id}") from e
    return normalize_workflow(raw)
