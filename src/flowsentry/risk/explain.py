"""Human-readable explanation of a risk score."""

from __future__ import annotations

from flowsentry.defaults import DEPTH_THRESHOLD, RISK_HIGH_THRESHOLD, RISK_MODERATE_THRESHOLD
from flowsentry.errors import ExplanationMismatch
from flowsentry.models import Explanation, Findings, RiskScore

SUMMARY_HIGH = "Workflow risk is high due to multiple structural, timing, or automation issues."
SUMMARY_MODERATE = "Workflow risk is moderate and may impact sprint predictability."
SUMMARY_LOW = "Workflow risk is low."
NO_ISSUES = "No significant workflow, timing, or automation issues detected."


def summarize(overall: float) -> str:
    if overall >= RISK_HIGH_THRESHOLD:
        return SUMMARY_HIGH
    if overall >= RISK_MODERATE_THRESHOLD:
        return SUMMARY_MODERATE
    return SUMMARY_LOW


def explain_risk(risk_score: RiskScore | None, findings: Findings | None) -> Explanation:
    if risk_score is None or findings is None:
        raise ExplanationMismatch("Risk score and findings are both required")
    graph, timing, automation = findings.graph, findings.timing, findings.automation
    if graph is None or timing is None or automation is None:
        raise ExplanationMismatch("Findings are missing an analysis")

    details: list[str] = []
    if graph.cycles:
        details.append(
            f"{len(graph.cycles)} workflow cycle(s) detected, "
            "which may cause issues to loop indefinitely."
        )
    if graph.dead_ends:
        details.append(
            f"Dead-end states detected: {', '.join(graph.dead_ends)}. Issues may get stuck here."
        )
    if graph.unreachable:
        details.append(
            f"Unreachable states found: {', '.join(graph.unreachable)}. These states are never entered."
        )
    if graph.max_depth > DEPTH_THRESHOLD:
        details.append(
            f"Workflow depth is {graph.max_depth}, which increases complexity and review overhead."
        )
    if timing.bottlenecks:
        details.append(
            f"Bottleneck states detected: {', '.join(timing.bottlenecks)}. "
            "These states take significantly longer than average."
        )
    if automation.loop_count:
        details.append(
            f"{automation.loop_count} automation loop conflict(s) detected, "
            "which can cause repeated updates."
        )
    if automation.overwrite_count:
        details.append(
            f"{automation.overwrite_count} automation overwrite conflict(s) detected, "
            "where rules modify the same field."
        )
    if not details:
        details.append(NO_ISSUES)

    return Explanation(summary=summarize(risk_score.overall), details=tuple(details))
