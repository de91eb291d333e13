"""Workflow and rule providers, with an env-driven default registry.

``FLOWSENTRY_JIRA_URL`` selects the Jira REST adapters.  Otherwise
``FLOWSENTRY_WORKFLOW_FILE`` / ``FLOWSENTRY_RULES_FILE`` load static JSON,
and with neither set the built-in demo data is served.
"""

from __future__ import annotations

import logging
import os

from flowsentry.providers.port import RuleProvider, WorkflowProvider
from flowsentry.providers.rules import analyze_project_rules, fetch_project_rules
from flowsentry.providers.static_adapter import StaticRuleProvider, StaticWorkflowProvider
from flowsentry.providers.workflow import normalize_workflow, resolve_workflow

log = logging.getLogger("flowsentry.providers")

_workflow_provider: WorkflowProvider | None = None
_rule_provider: RuleProvider | None = None


def get_workflow_provider() -> WorkflowProvider:
    global _workflow_provider
    if _workflow_provider is not None:
        return _workflow_provider
    if os.environ.get("FLOWSENTRY_JIRA_URL"):
        from flowsentry.providers.jira_adapter import JiraWorkflowProvider
        _workflow_provider = JiraWorkflowProvider()
    elif os.environ.get("FLOWSENTRY_WORKFLOW_FILE"):
        _workflow_provider = StaticWorkflowProvider.from_file(os.environ["FLOWSENTRY_WORKFLOW_FILE"])
    else:
        log.info("No workflow source configured; serving demo workflow")
        _workflow_provider = StaticWorkflowProvider.demo()
    return _workflow_provider


def get_rule_provider() -> RuleProvider:
    global _rule_provider
    if _rule_provider is not None:
        return _rule_provider
    if os.environ.get("FLOWSENTRY_JIRA_URL"):
        from flowsentry.providers.jira_adapter import JiraRuleProvider
        _rule_provider = JiraRuleProvider()
    elif os.environ.get("FLOWSENTRY_RULES_FILE"):
        _rule_provider = StaticRuleProvider.from_file(os.environ["FLOWSENTRY_RULES_FILE"])
    else:
        _rule_provider = StaticRuleProvider.demo()
    return _rule_provider


def configure(
    workflow_provider: WorkflowProvider | None = None,
    rule_provider: RuleProvider | None = None,
) -> None:
    """Override the default providers (startup and tests)."""
    global _workflow_provider, _rule_provider
    _workflow_provider = workflow_provider
    _rule_provider = rule_provider


__all__ = [
    "RuleProvider",
    "StaticRuleProvider",
    "StaticWorkflowProvider",
    "WorkflowProvider",
    "analyze_project_rules",
    "configure",
    "fetch_project_rules",
    "get_rule_provider",
    "get_workflow_provider",
    "normalize_workflow",
    "resolve_workflow",
]
