"""Jira Cloud REST providers over httpx.

Requests go through a per-instance circuit breaker and bounded retry, so a
flapping Jira instance fails fast instead of stalling every webhook.

Env vars:
  FLOWSENTRY_JIRA_URL    base URL, e.g. https://acme.atlassian.net
  FLOWSENTRY_JIRA_TOKEN  bearer token (or ``email:api_token`` for basic auth)
"""

from __future__ import annotations

import base64
import os
from typing import Any

import httpx

from flowsentry.defaults import HTTP_TIMEOUT_SECONDS
from flowsentry.resilience import CircuitBreaker, retry

_WORKFLOW_SEARCH_PATH = "/rest/api/3/workflow/search"
_AUTOMATION_RULES_PATH = "/rest/cb-automation/latest/project/{project_id}/rule"


def _auth_header(token: str) -> dict[str, str]:
    if not token:
        return {}
    if ":" in token:
        encoded = base64.b64encode(token.encode()).decode()
        return {"Authorization": f"Basic {encoded}"}
    return {"Authorization": f"Bearer {token}"}


class _JiraClient:
    """Shared HTTP plumbing for the Jira providers."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        client: httpx.Client | None = None,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        self.base_url = (base_url or os.environ.get("FLOWSENTRY_JIRA_URL", "")).rstrip("/")
        self._token = token if token is not None else os.environ.get("FLOWSENTRY_JIRA_TOKEN", "")
        self._client = client
        self._breaker = breaker or CircuitBreaker(name="jira")

    def is_configured(self) -> bool:
        return bool(self.base_url)

    @retry(max_attempts=3, base_delay=0.2, exceptions=(httpx.TransportError,))
    def _request(self, path: str, params: dict[str, Any] | None = None) -> Any:
        headers = {"Accept": "application/json", **_auth_header(self._token)}
        url = f"{self.base_url}{path}"
        if self._client is not None:
            resp = self._client.get(url, params=params, headers=headers)
        else:
            resp = httpx.get(url, params=params, headers=headers, timeout=HTTP_TIMEOUT_SECONDS)
        resp.raise_for_status()
        return resp.json()

    def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        if not self.is_configured():
            raise RuntimeError("FLOWSENTRY_JIRA_URL is not configured")
        return self._breaker(self._request)(path, params)


class JiraWorkflowProvider(_JiraClient):
    """Build the raw workflow for a project from Jira's workflow search.

    *workflow_names* maps a project id to its Jira workflow name; unmapped
    projects search by the project id itself.  Global transitions (empty
    ``from``) are expanded to every status.
    """

    def __init__(self, *args: Any, workflow_names: dict[str, str] | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._workflow_names = workflow_names or {}

    def fetch_workflow(self, project_id: str) -> dict[str, Any]:
        name = self._workflow_names.get(project_id, project_id)
        data = self.get_json(
            _WORKFLOW_SEARCH_PATH,
            {"workflowName": name, "expand": "statuses,transitions"},
        )
        values = data.get("values", []) if isinstance(data, dict) else []
        if not values:
            raise LookupError(f"No Jira workflow named {name!r}")
        return _normalize_workflow(values[0], fallback_id=f"WF-{project_id}")


def _normalize_workflow(raw: dict[str, Any], fallback_id: str) -> dict[str, Any]:
    statuses = raw.get("statuses", [])
    by_id = {str(s.get("id")): s.get("name") for s in statuses}
    all_names = [s.get("name") for s in statuses]
    transitions: list[dict[str, str]] = []
    for t in raw.get("transitions", []):
        target = by_id.get(str(t.get("to")))
        sources = [by_id.get(str(f)) for f in t.get("from", [])] or all_names
        for source in sources:
            if source and target:
                transitions.append({"from": source, "to": target})
    wf_id = raw.get("id", {})
    name = wf_id.get("name") if isinstance(wf_id, dict) else wf_id
    return {
        "id": name or fallback_id,
        "statuses": [{"name": n} for n in all_names],
        "transitions": transitions,
    }


class JiraRuleProvider(_JiraClient):
    """Fetch automation rules for a project from Jira Automation."""

    def fetch_rules(self, project_id: str) -> list[dict[str, Any]]:
        data = self.get_json(_AUTOMATION_RULES_PATH.format(project_id=project_id))
        if isinstance(data, dict):
            data = data.get("values", data.get("rules", []))
        rules = []
        for i, rule in enumerate(data or [], start=1):
            if rule.get("enabled") is False:
                continue
            trigger = rule.get("trigger")
            if isinstance(trigger, dict):
                trigger = trigger.get("type")
            rules.append({
                "id": str(rule.get("id") or f"RULE-{i}"),
                "trigger": trigger or "UNKNOWN_TRIGGER",
                "actions": [
                    {"field": a.get("field", "status"), "value": a.get("value")}
                    for a in rule.get("actions", []) if isinstance(a, dict)
                ],
            })
        return rules
