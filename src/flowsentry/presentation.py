"""View models for the dashboard panel and the markdown risk report.

Presentation only reshapes prepared insight data; it never scores or
fetches workflow data itself.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from flowsentry import engine
from flowsentry.errors import PresentationError
from flowsentry.models import DashboardView, ReportPage

PERMISSION_DENIED = "PERMISSION_DENIED"
UI_RENDER_LIMIT = "UI_RENDER_LIMIT"


@runtime_checkable
class InsightSource(Protocol):
    """Returns ``{"risk_score": float, "explanations": [str]}`` for a project."""

    def fetch_insights(self, project_id: str) -> Mapping[str, Any]: ...


class SnapshotInsightSource:
    """Insights read from the latest stored snapshot."""

    def fetch_insights(self, project_id: str) -> Mapping[str, Any]:
        snap = engine.get_project_snapshot(project_id)
        return {
            "risk_score": snap.get("risk_score"),
            "explanations": snap.get("explanation", {}).get("details"),
        }


def get_dashboard_data(project_id: str, source: InsightSource) -> DashboardView:
    if not project_id:
        raise PresentationError("project_id is required", code=PERMISSION_DENIED)
    try:
        insights = source.fetch_insights(project_id)
    except Exception as e:
        raise PresentationError("Unable to fetch insights", code=PERMISSION_DENIED) from e

    risk_score = insights.get("risk_score") if isinstance(insights, Mapping) else None
    explanations = insights.get("explanations") if isinstance(insights, Mapping) else None
    if isinstance(risk_score, bool) or not isinstance(risk_score, (int, float)) or not isinstance(explanations, list):
        raise PresentationError("Invalid insight data", code=UI_RENDER_LIMIT)
    return DashboardView(risk_score=risk_score, alerts=list(explanations))


def render_report(
    project_id: str,
    data: Mapping[str, Any],
    *,
    prediction: Mapping[str, Any] | None = None,
    metrics: Mapping[str, Any] | None = None,
) -> ReportPage:
    """Render ``{risk_score, summary, details}`` as a markdown page.

    Optional *prediction* and *metrics* add what-if and structure sections.
    """
    if not project_id:
        raise PresentationError("project_id is required", code=PERMISSION_DENIED)

    lines = [
        "## Workflow Risk Report",
        "",
        f"**Overall Risk Score:** {data.get('risk_score')}",
        "",
        "### Summary",
        str(data.get("summary", "")),
        "",
        "### Details",
        *[f"- {d}" for d in data.get("details", [])],
    ]
    if prediction:
        lines += [
            "",
            "### What-If",
            f"{prediction['primary_action']}: potential score {prediction['potential_score']} "
            f"({prediction['improvement_percentage']}% improvement)",
        ]
    if metrics:
        lines += ["", "### Structure", *[f"- {k}: {v}" for k, v in metrics.items()]]

    return ReportPage(title=f"Workflow Risk Report: {project_id}", body="\n".join(lines))


def report_from_snapshot(snapshot: Mapping[str, Any]) -> ReportPage:
    explanation = snapshot.get("explanation", {})
    return render_report(
        snapshot.get("project_id", ""),
        {
            "risk_score": snapshot.get("risk_score"),
            "summary": explanation.get("summary", ""),
            "details": explanation.get("details", []),
        },
        prediction=snapshot.get("prediction"),
    )
