"""Pipeline orchestration: ingest → timing → resolve → analyze → score → store.

The analyses themselves are pure; this module owns the wiring, the
per-project timing aggregates, and snapshot persistence.
"""

from __future__ import annotations

import logging
from typing import Any

from flowsentry import observability, providers, storage
from flowsentry.analysis.graph import analyze_graph, graph_summary
from flowsentry.analysis.rules import analyze_rules
from flowsentry.analysis.timing import TimingAggregator, TimingRegistry
from flowsentry.defaults import (
    CRITICAL_RISK_THRESHOLD,
    SCANNING_SUMMARY,
    SNAPSHOT_KEY_PREFIX,
    TIMING_KEY_PREFIX,
)
from flowsentry.errors import FlowSentryError, InvalidPayload
from flowsentry.ingestion import ingest_event
from flowsentry.models import (
    AnalysisResult,
    EventKind,
    Explanation,
    Findings,
    RiskSnapshot,
    RuleConflictReport,
    TimingAnalysis,
)
from flowsentry.providers.port import RuleProvider, WorkflowProvider
from flowsentry.risk import compute_risk, explain_risk, simulate_improvement

log = logging.getLogger("flowsentry.engine")

_registry = TimingRegistry()


def get_timing_registry() -> TimingRegistry:
    return _registry


def reset_timing() -> None:
    _registry.clear()


def snapshot_key(project_id: str) -> str:
    return f"{SNAPSHOT_KEY_PREFIX}{project_id}"


def timing_key(project_id: str) -> str:
    return f"{TIMING_KEY_PREFIX}{project_id}"


def _load_aggregator(registry: TimingRegistry, project_id: str) -> TimingAggregator:
    """Aggregator for *project_id*, restored from the store on first use."""
    if project_id not in registry:
        stored = storage.load(timing_key(project_id))
        if stored is not None:
            registry.put(project_id, TimingAggregator.from_state(stored, scope=project_id))
    return registry.get(project_id)


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

def _timing_for(project_id: str, timing: TimingAnalysis | TimingAggregator | None) -> TimingAnalysis:
    if timing is None:
        return TimingAnalysis.empty()
    if isinstance(timing, TimingAggregator):
        return timing.bottlenecks_or_empty(project_id)
    return timing


def analyze_project(
    project_id: str,
    workflow: Any,
    rules: Any,
    timing: TimingAnalysis | TimingAggregator | None = None,
) -> AnalysisResult:
    """Run every analysis on explicit inputs and score the result.

    *rules* may be a rule list or an already computed ``RuleConflictReport``.
    *timing* may be an aggregator (queried with the empty-result fallback),
    a precomputed analysis, or ``None`` for no timing data.
    """
    try:
        graph = analyze_graph(workflow)
        automation = rules if isinstance(rules, RuleConflictReport) else analyze_rules(rules)
        findings = Findings(graph=graph, timing=_timing_for(project_id, timing), automation=automation)
        risk = compute_risk(findings.graph, findings.timing, findings.automation)
        explanation = explain_risk(risk, findings)
        prediction = simulate_improvement(risk, explanation)
    except FlowSentryError:
        observability.record_analysis("error")
        raise

    observability.record_analysis("ok")
    log.info(
        "Project %s scored %.2f", project_id, risk.overall,
        extra={"project_id": project_id},
    )
    return AnalysisResult(
        project_id=project_id,
        findings=findings,
        risk=risk,
        explanation=explanation,
        prediction=prediction,
        graph_metrics=graph_summary(workflow),
    )


def build_snapshot(result: AnalysisResult) -> RiskSnapshot:
    graph = result.findings.graph
    timing = result.findings.timing
    alerts = list(graph.dead_ends if graph else []) + list(timing.bottlenecks if timing else [])
    return RiskSnapshot(
        project_id=result.project_id,
        risk_score=result.risk.overall,
        breakdown=result.risk.breakdown,
        explanation=result.explanation,
        alerts=alerts,
        prediction=result.prediction,
    )


# ---------------------------------------------------------------------------
# Webhook entry point
# ---------------------------------------------------------------------------

def handle_transition_event(
    raw: Any,
    *,
    workflow_provider: WorkflowProvider | None = None,
    rule_provider: RuleProvider | None = None,
    registry: TimingRegistry | None = None,
) -> dict[str, Any]:
    """Process one webhook delivery end to end and persist the snapshot.

    Timing aggregates are kept per project in *registry* (default: the
    module registry) and written through to the store under
    ``timing:{project}``, so a fresh process picks up where the last one
    stopped.  Scores above the critical threshold are logged as a warning
    for the guard hook.
    """
    event = ingest_event(raw)
    aggregator = _load_aggregator(registry or _registry, event.project_id)
    extra = {"project_id": event.project_id, "issue_id": event.issue_id}

    if event.kind == EventKind.STATUS_CHANGE:
        aggregator.record_transition(event.issue_id, event.from_state, event.to_state, event.timestamp)
        storage.save(timing_key(event.project_id), aggregator.export_state())
        observability.record_transition()

    workflow = providers.resolve_workflow(
        event.project_id, workflow_provider or providers.get_workflow_provider(),
    )
    rules = providers.analyze_project_rules(
        event.project_id, rule_provider or providers.get_rule_provider(),
    )
    result = analyze_project(event.project_id, workflow, rules, aggregator)

    snapshot = build_snapshot(result)
    storage.save(snapshot_key(event.project_id), snapshot.to_dict())

    critical = result.risk.overall > CRITICAL_RISK_THRESHOLD
    if critical:
        log.warning(
            "Critical risk %.2f on issue %s: guard action required",
            result.risk.overall, event.issue_id, extra=extra,
        )
    return {
        "status": "OK",
        "event_id": event.event_id,
        "project_id": event.project_id,
        "risk_score": result.risk.overall,
        "critical": critical,
    }


# ---------------------------------------------------------------------------
# Snapshot reads
# ---------------------------------------------------------------------------

def placeholder_snapshot(project_id: str) -> dict[str, Any]:
    return RiskSnapshot(
        project_id=project_id,
        explanation=Explanation(summary=SCANNING_SUMMARY),
    ).to_dict()


def get_project_snapshot(project_id: str) -> dict[str, Any]:
    """Latest stored snapshot, or the scanning placeholder."""
    return storage.load(snapshot_key(project_id)) or placeholder_snapshot(project_id)


def get_risk_snapshot(issue_key: str) -> dict[str, Any]:
    """Snapshot for the project an issue key belongs to (``PROJ-123`` → ``PROJ``)."""
    if not issue_key:
        raise InvalidPayload("issue_key is required")
    project_key = issue_key.split("-")[0]
    return {"issue_key": issue_key, "project_key": project_key, **get_project_snapshot(project_key)}
