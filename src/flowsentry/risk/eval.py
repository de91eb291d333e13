"""Fixed-weight aggregation of structure, timing, and automation signals."""

from __future__ import annotations

from flowsentry.defaults import (
    AUTOMATION_NORMALIZER,
    DEPTH_THRESHOLD,
    LOOP_CONFLICT_WEIGHT,
    OVERWRITE_CONFLICT_WEIGHT,
    SCORE_PRECISION,
    STRUCTURE_NORMALIZER,
    TIMING_NORMALIZER,
    WEIGHT_AUTOMATION,
    WEIGHT_STRUCTURE,
    WEIGHT_TIMING,
)
from flowsentry.errors import MissingSignal
from flowsentry.models import (
    ConflictKind,
    GraphFindings,
    RiskBreakdown,
    RiskScore,
    RuleConflictReport,
    TimingAnalysis,
)


def structure_signal(graph: GraphFindings) -> int:
    excess_depth = max(0, graph.max_depth - DEPTH_THRESHOLD)
    return len(graph.cycles) + len(graph.dead_ends) + len(graph.unreachable) + excess_depth


def timing_signal(timing: TimingAnalysis) -> int:
    return len(timing.bottlenecks)


def automation_signal(automation: RuleConflictReport) -> int:
    return sum(
        LOOP_CONFLICT_WEIGHT if c.kind == ConflictKind.LOOP else OVERWRITE_CONFLICT_WEIGHT
        for c in automation.conflicts
    )


def _normalize(signal: float, normalizer: float) -> float:
    return min(signal / normalizer, 1.0)


def compute_risk(
    graph: GraphFindings | None,
    timing: TimingAnalysis | None,
    automation: RuleConflictReport | None,
) -> RiskScore:
    """Combine the three analyses into a score in [0, 1].

    overall = 0.5 * structure + 0.3 * timing + 0.2 * automation, with each
    component normalized and capped at 1.  All values rounded to 2 decimals.
    """
    if graph is None or timing is None or automation is None:
        missing = [
            name for name, v in (("graph", graph), ("timing", timing), ("automation", automation))
            if v is None
        ]
        raise MissingSignal(f"Missing analysis input: {', '.join(missing)}")

    structure = _normalize(structure_signal(graph), STRUCTURE_NORMALIZER)
    timing_risk = _normalize(timing_signal(timing), TIMING_NORMALIZER)
    automation_risk = _normalize(automation_signal(automation), AUTOMATION_NORMALIZER)

    overall = (
        WEIGHT_STRUCTURE * structure
        + WEIGHT_TIMING * timing_risk
        + WEIGHT_AUTOMATION * automation_risk
    )
    return RiskScore(
        overall=round(overall, SCORE_PRECISION),
        breakdown=RiskBreakdown(
            structure=round(structure, SCORE_PRECISION),
            timing=round(timing_risk, SCORE_PRECISION),
            automation=round(automation_risk, SCORE_PRECISION),
        ),
    )
