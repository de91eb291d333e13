"""Fetch and analyze a project's automation rules."""

from __future__ import annotations

import logging

from flowsentry.analysis.rules import analyze_rules
from flowsentry.errors import RuleAccessDenied, UnsupportedRuleType
from flowsentry.models import AutomationRule, RuleConflictReport
from flowsentry.providers.port import RuleProvider

log = logging.getLogger("flowsentry.providers.rules")


def fetch_project_rules(project_id: str, provider: RuleProvider) -> list[AutomationRule]:
    if not project_id:
        raise RuleAccessDenied("project_id is required")
    try:
        raw = provider.fetch_rules(project_id)
    except Exception as e:
        log.warning("Rule fetch failed for %s: %s", project_id, e, extra={"project_id": project_id})
        raise RuleAccessDenied(f"Unable to fetch automation rules for {project_id}") from e
    if not isinstance(raw, list):
        raise UnsupportedRuleType("Invalid rule format received")
    return [AutomationRule.from_dict(r) for r in raw]


def analyze_project_rules(project_id: str, provider: RuleProvider) -> RuleConflictReport:
    return analyze_rules(fetch_project_rules(project_id, provider))
