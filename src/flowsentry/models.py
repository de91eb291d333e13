"""Core data types for FlowSentry."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from flowsentry.errors import InvalidGraph, UnsupportedRuleType


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ConflictKind(str, Enum):
    OVERWRITE = "OVERWRITE"
    LOOP = "LOOP"


class EventKind(str, Enum):
    STATUS_CHANGE = "STATUS_CHANGE"
    FIELD_CHANGE = "FIELD_CHANGE"


class RiskDriver(str, Enum):
    STRUCTURE = "structure"
    TIMING = "timing"
    AUTOMATION = "automation"


# ---------------------------------------------------------------------------
# Workflow graph
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Transition:
    source: str
    target: str

    def to_dict(self) -> dict[str, str]:
        return {"from": self.source, "to": self.target}

    @classmethod
    def from_dict(cls, d: Any) -> Transition:
        if isinstance(d, Transition):
            return d
        if not isinstance(d, Mapping):
            raise InvalidGraph(f"Transition must be an object, got {type(d).__name__}")
        source = d.get("from", d.get("source"))
        target = d.get("to", d.get("target"))
        if not isinstance(source, str) or not isinstance(target, str):
            raise InvalidGraph("Transition requires string 'from' and 'to'")
        return cls(source=source, target=target)


@dataclass
class WorkflowGraph:
    id: str
    states: list[str]
    transitions: list[Transition] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "states": list(self.states),
            "transitions": [t.to_dict() for t in self.transitions],
        }

    @classmethod
    def from_dict(cls, d: Any) -> WorkflowGraph:
        if isinstance(d, WorkflowGraph):
            return d
        if not isinstance(d, Mapping):
            raise InvalidGraph("Workflow definition is invalid")
        states = d.get("states")
        transitions = d.get("transitions")
        if not isinstance(states, (list, tuple)) or not isinstance(transitions, (list, tuple)):
            raise InvalidGraph("Workflow definition requires 'states' and 'transitions' lists")
        if not all(isinstance(s, str) for s in states):
            raise InvalidGraph("Workflow states must be strings")
        return cls(
            id=str(d.get("id", d.get("workflow_id", ""))),
            states=list(states),
            transitions=[Transition.from_dict(t) for t in transitions],
        )


@dataclass
class GraphFindings:
    cycles: list[list[str]] = field(default_factory=list)
    dead_ends: list[str] = field(default_factory=list)
    unreachable: list[str] = field(default_factory=list)
    max_depth: int = 0
    depth_truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "cycles": [list(c) for c in self.cycles],
            "dead_ends": list(self.dead_ends),
            "unreachable": list(self.unreachable),
            "max_depth": self.max_depth,
            "depth_truncated": self.depth_truncated,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> GraphFindings:
        return cls(
            cycles=[list(c) for c in d.get("cycles", [])],
            dead_ends=list(d.get("dead_ends", [])),
            unreachable=list(d.get("unreachable", [])),
            max_depth=d.get("max_depth", 0),
            depth_truncated=d.get("depth_truncated", False),
        )


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TimingSample:
    issue_id: str
    from_state: str
    to_state: str
    timestamp: Any  # ISO-8601 string, datetime, or epoch milliseconds

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TimingSample:
        return cls(
            issue_id=d.get("issue_id", ""),
            from_state=d.get("from_state", ""),
            to_state=d.get("to_state", ""),
            timestamp=d.get("timestamp"),
        )


@dataclass
class StateTiming:
    total_seconds: float = 0.0
    sample_count: int = 0

    @property
    def average(self) -> float:
        return self.total_seconds / self.sample_count if self.sample_count else 0.0


@dataclass(frozen=True)
class IssuePointer:
    state: str
    timestamp: datetime


@dataclass
class TimingAnalysis:
    state_averages: dict[str, float] = field(default_factory=dict)
    bottlenecks: list[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> TimingAnalysis:
        return cls()

    def to_dict(self) -> dict[str, Any]:
        return {"state_averages": dict(self.state_averages), "bottlenecks": list(self.bottlenecks)}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> TimingAnalysis:
        return cls(
            state_averages=dict(d.get("state_averages", {})),
            bottlenecks=list(d.get("bottlenecks", [])),
        )


# ---------------------------------------------------------------------------
# Automation rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RuleAction:
    field: str
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "value": self.value}


@dataclass
class AutomationRule:
    id: str
    trigger: str
    actions: list[RuleAction] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "trigger": self.trigger, "actions": [a.to_dict() for a in self.actions]}

    @classmethod
    def from_dict(cls, d: Any) -> AutomationRule:
        if isinstance(d, AutomationRule):
            return d
        if not isinstance(d, Mapping):
            raise UnsupportedRuleType(f"Rule must be an object, got {type(d).__name__}")
        actions = d.get("actions", [])
        if not isinstance(actions, (list, tuple)):
            raise UnsupportedRuleType(f"Rule {d.get('id')!r} has non-list actions")
        parsed: list[RuleAction] = []
        for a in actions:
            if not isinstance(a, Mapping) or "field" not in a:
                raise UnsupportedRuleType(f"Rule {d.get('id')!r} has a malformed action")
            parsed.append(RuleAction(field=str(a["field"]), value=a.get("value")))
        return cls(id=str(d.get("id", "")), trigger=str(d.get("trigger", "")), actions=parsed)


@dataclass(frozen=True)
class RuleConflict:
    rule_a: str
    rule_b: str
    trigger: str
    field: str
    kind: ConflictKind

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_a": self.rule_a,
            "rule_b": self.rule_b,
            "trigger": self.trigger,
            "field": self.field,
            "kind": self.kind.value,
        }


@dataclass
class RuleConflictReport:
    conflicts: list[RuleConflict] = field(default_factory=list)

    @property
    def loop_count(self) -> int:
        return sum(1 for c in self.conflicts if c.kind == ConflictKind.LOOP)

    @property
    def overwrite_count(self) -> int:
        return sum(1 for c in self.conflicts if c.kind == ConflictKind.OVERWRITE)

    def to_dict(self) -> dict[str, Any]:
        return {"conflicts": [c.to_dict() for c in self.conflicts]}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> RuleConflictReport:
        return cls(conflicts=[
            RuleConflict(
                rule_a=c["rule_a"], rule_b=c["rule_b"], trigger=c.get("trigger", ""),
                field=c["field"], kind=ConflictKind(c["kind"]),
            )
            for c in d.get("conflicts", [])
        ])


# ---------------------------------------------------------------------------
# Risk, explanation, prediction
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RiskBreakdown:
    structure: float = 0.0
    timing: float = 0.0
    automation: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"structure": self.structure, "timing": self.timing, "automation": self.automation}


@dataclass(frozen=True)
class RiskScore:
    overall: float
    breakdown: RiskBreakdown

    def to_dict(self) -> dict[str, Any]:
        return {"overall": self.overall, "breakdown": self.breakdown.to_dict()}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> RiskScore:
        b = d.get("breakdown", {})
        return cls(
            overall=float(d.get("overall", 0.0)),
            breakdown=RiskBreakdown(
                structure=float(b.get("structure", 0.0)),
                timing=float(b.get("timing", 0.0)),
                automation=float(b.get("automation", 0.0)),
            ),
        )


@dataclass
class Findings:
    """The three independent analyses that feed risk and explanation."""
    graph: GraphFindings | None
    timing: TimingAnalysis | None
    automation: RuleConflictReport | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "graph": self.graph.to_dict() if self.graph else None,
            "timing": self.timing.to_dict() if self.timing else None,
            "automation": self.automation.to_dict() if self.automation else None,
        }


@dataclass(frozen=True)
class Explanation:
    summary: str
    details: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"summary": self.summary, "details": list(self.details)}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Explanation:
        return cls(summary=d.get("summary", ""), details=tuple(d.get("details", [])))


@dataclass(frozen=True)
class Prediction:
    potential_score: float
    improvement_percentage: int
    primary_action: str
    driver: RiskDriver

    def to_dict(self) -> dict[str, Any]:
        return {
            "potential_score": self.potential_score,
            "improvement_percentage": self.improvement_percentage,
            "primary_action": self.primary_action,
            "driver": self.driver.value,
        }


@dataclass
class AnalysisResult:
    project_id: str
    findings: Findings
    risk: RiskScore
    explanation: Explanation
    prediction: Prediction
    graph_metrics: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_id": self.project_id,
            "findings": self.findings.to_dict(),
            "risk": self.risk.to_dict(),
            "explanation": self.explanation.to_dict(),
            "prediction": self.prediction.to_dict(),
            "graph_metrics": self.graph_metrics,
            "timestamp": self.timestamp,
        }


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NormalizedEvent:
    event_id: str
    kind: EventKind
    issue_id: str
    project_id: str
    timestamp: str
    from_state: str | None = None
    to_state: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "kind": self.kind.value,
            "issue_id": self.issue_id,
            "project_id": self.project_id,
            "timestamp": self.timestamp,
            "from_state": self.from_state,
            "to_state": self.to_state,
        }


# ---------------------------------------------------------------------------
# Snapshots and presentation
# ---------------------------------------------------------------------------

@dataclass
class RiskSnapshot:
    project_id: str
    risk_score: float = 0.0
    breakdown: RiskBreakdown = field(default_factory=RiskBreakdown)
    explanation: Explanation = field(default_factory=lambda: Explanation(summary=""))
    alerts: list[str] = field(default_factory=list)
    prediction: Prediction | None = None
    updated_at: str = field(default_factory=now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_id": self.project_id,
            "risk_score": self.risk_score,
            "breakdown": self.breakdown.to_dict(),
            "explanation": self.explanation.to_dict(),
            "alerts": list(self.alerts),
            "prediction": self.prediction.to_dict() if self.prediction else None,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> RiskSnapshot:
        p = d.get("prediction")
        return cls(
            project_id=d.get("project_id", ""),
            risk_score=float(d.get("risk_score", 0.0)),
            breakdown=RiskScore.from_dict({"breakdown": d.get("breakdown", {})}).breakdown,
            explanation=Explanation.from_dict(d.get("explanation", {})),
            alerts=list(d.get("alerts", [])),
            prediction=Prediction(
                potential_score=p["potential_score"],
                improvement_percentage=p["improvement_percentage"],
                primary_action=p["primary_action"],
                driver=RiskDriver(p["driver"]),
            ) if p else None,
            updated_at=d.get("updated_at", now_iso()),
        )


@dataclass(frozen=True)
class DashboardView:
    risk_score: float
    alerts: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {"risk_score": self.risk_score, "alerts": list(self.alerts)}


@dataclass(frozen=True)
class ReportPage:
    title: str
    body: str

    def to_dict(self) -> dict[str, str]:
        return {"title": self.title, "body": self.body}
