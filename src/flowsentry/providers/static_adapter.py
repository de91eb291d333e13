"""In-memory providers backed by fixed data or JSON files.

Used for demos, CI, and local analysis where no Jira instance is available.
Data is returned as deep copies so callers cannot mutate the source.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

DEMO_WORKFLOW: dict[str, Any] = {
    "id": "WF-DEMO-1",
    "statuses": [
        {"name": "TODO"},
        {"name": "IN_PROGRESS"},
        {"name": "IN_REVIEW"},
        {"name": "DONE"},
    ],
    "transitions": [
        {"from": "TODO", "to": "IN_PROGRESS"},
        {"from": "IN_PROGRESS", "to": "IN_REVIEW"},
        {"from": "IN_REVIEW", "to": "DONE"},
        {"from": "IN_REVIEW", "to": "IN_PROGRESS"},
    ],
}

DEMO_RULES: list[dict[str, Any]] = [
    {"id": "RULE-1", "trigger": "ISSUE_UPDATED", "actions": [{"field": "status", "value": "DONE"}]},
    {"id": "RULE-2", "trigger": "ISSUE_UPDATED", "actions": [{"field": "status", "value": "IN_REVIEW"}]},
]


def _load_json(path: str | Path) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


class StaticWorkflowProvider:
    """Serve workflows per project, falling back to a default workflow."""

    def __init__(
        self,
        workflows: dict[str, Any] | None = None,
        default: Any = None,
    ) -> None:
        self._workflows = workflows or {}
        self._default = default

    @classmethod
    def demo(cls) -> StaticWorkflowProvider:
        return cls(default=DEMO_WORKFLOW)

    @classmethod
    def from_file(cls, path: str | Path) -> StaticWorkflowProvider:
        """Load ``{project_id: workflow}`` or a single workflow used for all projects."""
        data = _load_json(path)
        if isinstance(data, dict) and "statuses" in data:
            return cls(default=data)
        return cls(workflows=data)

    def fetch_workflow(self, project_id: str) -> Any:
        if not project_id:
            raise LookupError("Project not found")
        workflow = self._workflows.get(project_id, self._default)
        if workflow is None:
            raise LookupError(f"No workflow configured for project {project_id}")
        return copy.deepcopy(workflow)


class StaticRuleProvider:
    """Serve automation rules per project, falling back to a default list."""

    def __init__(
        self,
        rules: dict[str, Any] | None = None,
        default: Any = None,
    ) -> None:
        self._rules = rules or {}
        self._default = default if default is not None else []

    @classmethod
    def demo(cls) -> StaticRuleProvider:
        return cls(default=DEMO_RULES)

    @classmethod
    def from_file(cls, path: str | Path) -> StaticRuleProvider:
        """Load ``{project_id: [rules]}`` or a single rule list used for all projects."""
        data = _load_json(path)
        if isinstance(data, list):
            return cls(default=data)
        return cls(rules=data)

    def fetch_rules(self, project_id: str) -> Any:
        if not project_id:
            raise LookupError("Rules unavailable")
        return copy.deepcopy(self._rules.get(project_id, self._default))
