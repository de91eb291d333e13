"""Tests for the dashboard view model and the markdown report."""

from __future__ import annotations

import pytest

from conftest import transition_event
from flowsentry import engine
from flowsentry.errors import PresentationError
from flowsentry.presentation import (
    PERMISSION_DENIED,
    UI_RENDER_LIMIT,
    InsightSource,
    SnapshotInsightSource,
    get_dashboard_data,
    render_report,
    report_from_snapshot,
)


class _Fixed:
    def __init__(self, insights):
        self.insights = insights

    def fetch_insights(self, project_id):
        return self.insights


class _Broken:
    def fetch_insights(self, project_id):
        raise ConnectionError("insight service down")


class TestDashboard:
    def test_view(self):
        view = get_dashboard_data("OPS", _Fixed({"risk_score": 0.55, "explanations": ["a", "b"]}))
        assert view.risk_score == 0.55
        assert view.alerts == ["a", "b"]
        assert view.to_dict() == {"risk_score": 0.55, "alerts": ["a", "b"]}

    def test_fixed_source_is_an_insight_source(self):
        assert isinstance(_Fixed({}), InsightSource)

    def test_missing_project(self):
        with pytest.raises(PresentationError) as exc:
            get_dashboard_data("", _Fixed({"risk_score": 0.1, "explanations": []}))
        assert exc.value.code == PERMISSION_DENIED

    def test_source_failure(self):
        with pytest.raises(PresentationError) as exc:
            get_dashboard_data("OPS", _Broken())
        assert exc.value.code == PERMISSION_DENIED

    @pytest.mark.parametrize("insights", [
        {"risk_score": "0.5", "explanations": []},
        {"risk_score": True, "explanations": []},
        {"risk_score": None, "explanations": []},
        {"risk_score": 0.5, "explanations": "all good"},
        {"risk_score": 0.5},
        None,
    ])
    def test_invalid_insights(self, insights):
        with pytest.raises(PresentationError) as exc:
            get_dashboard_data("OPS", _Fixed(insights))
        assert exc.value.code == UI_RENDER_LIMIT

    def test_snapshot_source_placeholder(self, memory_store):
        view = get_dashboard_data("NEW", SnapshotInsightSource())
        assert view.risk_score == 0.0
        assert view.alerts == []

    def test_snapshot_source_after_event(self, memory_store, demo_providers):
        engine.handle_transition_event(transition_event("PROJ-1", "TODO", "IN_PROGRESS", "2024-01-01T00:00:00Z"))
        view = get_dashboard_data("PROJ", SnapshotInsightSource())
        assert view.risk_score == 0.14
        assert len(view.alerts) == 3


class TestReport:
    def test_body(self):
        page = render_report("OPS", {
            "risk_score": 0.62,
            "summary": "Workflow risk is moderate and may impact sprint predictability.",
            "details": ["First detail", "Second detail"],
        })
        assert page.title == "Workflow Risk Report: OPS"
        assert page.body == "\n".join([
            "## Workflow Risk Report",
            "",
            "**Overall Risk Score:** 0.62",
            "",
            "### Summary",
            "Workflow risk is moderate and may impact sprint predictability.",
            "",
            "### Details",
            "- First detail",
            "- Second detail",
        ])

    def test_empty_details(self):
        page = render_report("OPS", {"risk_score": 0.0, "summary": "s", "details": []})
        assert page.body.endswith("### Details")

    def test_prediction_and_metrics(self):
        page = render_report(
            "OPS",
            {"risk_score": 0.49, "summary": "s", "details": []},
            prediction={"primary_action": "Resolve state bottlenecks", "potential_score": 0.09,
                        "improvement_percentage": 82},
            metrics={"states": 4, "is_dag": False},
        )
        assert "### What-If\nResolve state bottlenecks: potential score 0.09 (82% improvement)" in page.body
        assert page.body.endswith("### Structure\n- states: 4\n- is_dag: False")

    def test_missing_project(self):
        with pytest.raises(PresentationError) as exc:
            render_report("", {"risk_score": 0.1})
        assert exc.value.code == PERMISSION_DENIED

    def test_from_placeholder_snapshot(self):
        page = report_from_snapshot(engine.placeholder_snapshot("NEW"))
        assert page.title == "Workflow Risk Report: NEW"
        assert "**Overall Risk Score:** 0.0" in page.body
        assert "What-If" not in page.body

    def test_to_dict(self):
        page = render_report("OPS", {"risk_score": 0.1, "summary": "", "details": []})
        assert set(page.to_dict()) == {"title", "body"}
