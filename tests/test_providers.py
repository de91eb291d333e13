"""Tests for workflow/rule providers: static data, Jira REST, resolution errors."""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest

from flowsentry import providers
from flowsentry.errors import ProviderUnavailable, RuleAccessDenied, UnsupportedRuleType, WorkflowNotFound
from flowsentry.models import ConflictKind
from flowsentry.providers import (
    StaticRuleProvider,
    StaticWorkflowProvider,
    analyze_project_rules,
    fetch_project_rules,
    normalize_workflow,
    resolve_workflow,
)
from flowsentry.providers.jira_adapter import JiraRuleProvider, JiraWorkflowProvider, _auth_header
from flowsentry.resilience import CircuitBreaker


class _Failing:
    def fetch_workflow(self, project_id):
        raise ConnectionError("jira down")

    def fetch_rules(self, project_id):
        raise PermissionError("403")


class _Returns:
    def __init__(self, value):
        self.value = value

    def fetch_workflow(self, project_id):
        return self.value

    def fetch_rules(self, project_id):
        return self.value


def _jira_client(routes: dict[str, object], calls: list | None = None) -> httpx.Client:
    """httpx client whose transport answers by path from *routes*."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        body = routes.get(request.url.path)
        if body is None:
            return httpx.Response(404, json={"errorMessages": ["not found"]})
        if isinstance(body, int):
            return httpx.Response(body)
        return httpx.Response(200, json=body)

    return httpx.Client(transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# Static providers
# ---------------------------------------------------------------------------

class TestStaticProviders:
    def test_demo_workflow_resolves(self):
        wf = resolve_workflow("PROJ", StaticWorkflowProvider.demo())
        assert wf.id == "WF-DEMO-1"
        assert wf.states == ["TODO", "IN_PROGRESS", "IN_REVIEW", "DONE"]
        assert len(wf.transitions) == 4

    def test_per_project_workflow(self):
        custom = {"id": "WF-X", "statuses": [{"name": "A"}, {"name": "B"}], "transitions": [{"from": "A", "to": "B"}]}
        provider = StaticWorkflowProvider(workflows={"X": custom}, default=None)
        assert resolve_workflow("X", provider).id == "WF-X"
        with pytest.raises(ProviderUnavailable):
            resolve_workflow("Y", provider)

    def test_returns_copies(self):
        provider = StaticWorkflowProvider.demo()
        provider.fetch_workflow("P")["statuses"].clear()
        assert len(provider.fetch_workflow("P")["statuses"]) == 4

    def test_from_file_single_workflow(self, tmp_path):
        path = tmp_path / "wf.json"
        path.write_text(json.dumps({
            "id": "WF-F", "statuses": [{"name": "A"}, {"name": "B"}], "transitions": [{"from": "A", "to": "B"}],
        }))
        assert resolve_workflow("ANY", StaticWorkflowProvider.from_file(path)).id == "WF-F"

    def test_rules_from_file_per_project(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"OPS": [{"id": "R1", "trigger": "T", "actions": []}]}))
        provider = StaticRuleProvider.from_file(path)
        assert [r.id for r in fetch_project_rules("OPS", provider)] == ["R1"]
        assert fetch_project_rules("OTHER", provider) == []

    def test_demo_rules_conflict(self):
        report = analyze_project_rules("PROJ", StaticRuleProvider.demo())
        assert [c.kind for c in report.conflicts] == [ConflictKind.OVERWRITE]


# ---------------------------------------------------------------------------
# Workflow resolution
# ---------------------------------------------------------------------------

class TestResolveWorkflow:
    def test_empty_project(self):
        with pytest.raises(WorkflowNotFound):
            resolve_workflow("", StaticWorkflowProvider.demo())

    def test_provider_failure(self):
        with pytest.raises(ProviderUnavailable) as exc:
            resolve_workflow("PROJ", _Failing())
        assert exc.value.code == "API_RATE_LIMITED"

    @pytest.mark.parametrize("raw", [
        None,
        [],
        {"statuses": [{"name": "A"}], "transitions": [{"from": "A", "to": "A"}]},
        {"id": "W", "statuses": "A", "transitions": []},
        {"id": "W", "statuses": [{"name": "A"}], "transitions": []},
        {"id": "W", "statuses": [], "transitions": [{"from": "A", "to": "B"}]},
    ])
    def test_invalid_structure(self, raw):
        with pytest.raises(WorkflowNotFound):
            resolve_workflow("PROJ", _Returns(raw))

    def test_normalize_dedupes_and_filters(self):
        wf = normalize_workflow({
            "id": 42,
            "statuses": [{"name": "A"}, {"name": "B"}, {"name": "A"}, {"id": 3}, "C"],
            "transitions": [{"from": "A", "to": "B"}, {"from": None, "to": "A"}, "A->B"],
        })
        assert wf.id == "42"
        assert wf.states == ["A", "B"]
        assert [(t.source, t.target) for t in wf.transitions] == [("A", "B")]


# ---------------------------------------------------------------------------
# Rule fetching
# ---------------------------------------------------------------------------

class TestFetchRules:
    def test_empty_project(self):
        with pytest.raises(RuleAccessDenied):
            fetch_project_rules("", StaticRuleProvider.demo())

    def test_provider_failure(self):
        with pytest.raises(RuleAccessDenied):
            fetch_project_rules("PROJ", _Failing())

    def test_not_a_list(self):
        with pytest.raises(UnsupportedRuleType):
            fetch_project_rules("PROJ", _Returns({"rules": []}))

    def test_malformed_rule(self):
        with pytest.raises(UnsupportedRuleType):
            fetch_project_rules("PROJ", _Returns([{"id": "R1", "actions": [{"value": 1}]}]))


# ---------------------------------------------------------------------------
# Jira REST adapters
# ---------------------------------------------------------------------------

_JIRA_WORKFLOW = {
    "values": [{
        "id": {"name": "Software Simplified"},
        "statuses": [{"id": "1", "name": "TODO"}, {"id": "2", "name": "DOING"}, {"id": "3", "name": "DONE"}],
        "transitions": [
            {"from": ["1"], "to": "2"},
            {"from": ["2"], "to": "3"},
            {"from": [], "to": "1"},
        ],
    }],
}


class TestJiraProviders:
    def test_auth_header(self):
        assert _auth_header("") == {}
        assert _auth_header("tok") == {"Authorization": "Bearer tok"}
        assert _auth_header("me@x.io:key")["Authorization"].startswith("Basic ")

    def test_workflow_search(self):
        calls: list[httpx.Request] = []
        client = _jira_client({"/rest/api/3/workflow/search": _JIRA_WORKFLOW}, calls)
        provider = JiraWorkflowProvider(
            "https://jira.test", "tok", client=client, workflow_names={"OPS": "Software Simplified"},
        )
        wf = resolve_workflow("OPS", provider)
        assert wf.id == "Software Simplified"
        assert wf.states == ["TODO", "DOING", "DONE"]
        assert [(t.source, t.target) for t in wf.transitions] == [
            ("TODO", "DOING"), ("DOING", "DONE"),
            ("TODO", "TODO"), ("DOING", "TODO"), ("DONE", "TODO"),
        ]
        assert calls[0].url.params["workflowName"] == "Software Simplified"
        assert calls[0].headers["Authorization"] == "Bearer tok"

    def test_unknown_workflow_fails_fetch(self):
        calls: list[httpx.Request] = []
        client = _jira_client({"/rest/api/3/workflow/search": {"values": []}}, calls)
        provider = JiraWorkflowProvider("https://jira.test", "", client=client)
        with pytest.raises(LookupError):
            provider.fetch_workflow("OPS")
        with pytest.raises(ProviderUnavailable):
            resolve_workflow("OPS", provider)
        assert [c.url.path for c in calls] == ["/rest/api/3/workflow/search"] * 2

    def test_rules(self):
        client = _jira_client({"/rest/cb-automation/latest/project/OPS/rule": [
            {"id": 10, "trigger": {"type": "ISSUE_UPDATED"}, "actions": [{"field": "status", "value": "DONE"}]},
            {"id": 11, "enabled": False, "trigger": "ISSUE_UPDATED", "actions": []},
            {"trigger": "ISSUE_CREATED", "actions": [{"value": "HIGH"}]},
        ]})
        rules = JiraRuleProvider("https://jira.test", "", client=client).fetch_rules("OPS")
        assert rules == [
            {"id": "10", "trigger": "ISSUE_UPDATED", "actions": [{"field": "status", "value": "DONE"}]},
            {"id": "RULE-3", "trigger": "ISSUE_CREATED", "actions": [{"field": "status", "value": "HIGH"}]},
        ]

    def test_http_error_maps_to_provider_unavailable(self):
        client = _jira_client({"/rest/api/3/workflow/search": 500})
        provider = JiraWorkflowProvider("https://jira.test", "", client=client)
        with pytest.raises(ProviderUnavailable):
            resolve_workflow("OPS", provider)

    def test_breaker_opens(self):
        calls: list[httpx.Request] = []
        client = _jira_client({"/rest/api/3/workflow/search": 500}, calls)
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60.0, name="jira-test")
        provider = JiraWorkflowProvider("https://jira.test", "", client=client, breaker=breaker)
        for _ in range(3):
            with pytest.raises(ProviderUnavailable):
                resolve_workflow("OPS", provider)
        assert breaker.state == CircuitBreaker.OPEN
        assert len(calls) == 2

    def test_rule_failure_is_access_denied(self):
        client = _jira_client({"/rest/cb-automation/latest/project/OPS/rule": 403})
        with pytest.raises(RuleAccessDenied):
            fetch_project_rules("OPS", JiraRuleProvider("https://jira.test", "", client=client))

    def test_unconfigured(self):
        with patch.dict("os.environ", {"FLOWSENTRY_JIRA_URL": ""}):
            provider = JiraWorkflowProvider()
            assert provider.is_configured() is False
            with pytest.raises(RuntimeError):
                provider.fetch_workflow("OPS")


# ---------------------------------------------------------------------------
# Default registry
# ---------------------------------------------------------------------------

class TestRegistry:
    def test_demo_when_unconfigured(self):
        env = {"FLOWSENTRY_JIRA_URL": "", "FLOWSENTRY_WORKFLOW_FILE": "", "FLOWSENTRY_RULES_FILE": ""}
        with patch.dict("os.environ", env):
            assert isinstance(providers.get_workflow_provider(), StaticWorkflowProvider)
            assert isinstance(providers.get_rule_provider(), StaticRuleProvider)

    def test_jira_when_url_set(self):
        with patch.dict("os.environ", {"FLOWSENTRY_JIRA_URL": "https://jira.test"}):
            assert isinstance(providers.get_workflow_provider(), JiraWorkflowProvider)
            assert isinstance(providers.get_rule_provider(), JiraRuleProvider)

    def test_configure_overrides(self):
        wf = StaticWorkflowProvider.demo()
        providers.configure(workflow_provider=wf)
        assert providers.get_workflow_provider() is wf
