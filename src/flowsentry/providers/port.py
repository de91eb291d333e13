"""Provider ports: protocol definitions for workflow and rule sources."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class WorkflowProvider(Protocol):
    """Returns a raw workflow ``{id, statuses: [{name}], transitions: [{from, to}]}``."""

    def fetch_workflow(self, project_id: str) -> Any: ...


@runtime_checkable
class RuleProvider(Protocol):
    """Returns raw automation rules ``[{id, trigger, actions: [{field, value}]}]``."""

    def fetch_rules(self, project_id: str) -> Any: ...
