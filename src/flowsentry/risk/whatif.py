"""What-if simulation: projected score after fixing the largest risk driver."""

from __future__ import annotations

import math

from flowsentry.defaults import (
    POTENTIAL_SCORE_FLOOR,
    REDUCTION_AUTOMATION,
    REDUCTION_STRUCTURE,
    REDUCTION_TIMING,
    SCORE_PRECISION,
)
from flowsentry.errors import MissingSignal
from flowsentry.models import Explanation, Prediction, RiskDriver, RiskScore

_ACTIONS = {
    RiskDriver.TIMING: "Resolve state bottlenecks",
    RiskDriver.STRUCTURE: "Fix structural cycles/dead-ends",
    RiskDriver.AUTOMATION: "De-conflict automation rules",
}


def primary_driver(risk_score: RiskScore) -> RiskDriver:
    """Largest breakdown component; ties go timing, then structure."""
    b = risk_score.breakdown
    if b.timing >= b.structure and b.timing >= b.automation:
        return RiskDriver.TIMING
    if b.structure >= b.automation:
        return RiskDriver.STRUCTURE
    return RiskDriver.AUTOMATION


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def simulate_improvement(
    risk_score: RiskScore | None,
    explanation: Explanation | None = None,
) -> Prediction:
    if risk_score is None:
        raise MissingSignal("Risk score is required for simulation")
    driver = primary_driver(risk_score)
    b = risk_score.breakdown
    reduction = {
        RiskDriver.TIMING: b.timing * REDUCTION_TIMING,
        RiskDriver.STRUCTURE: b.structure * REDUCTION_STRUCTURE,
        RiskDriver.AUTOMATION: b.automation * REDUCTION_AUTOMATION,
    }[driver]

    overall = risk_score.overall
    potential = max(POTENTIAL_SCORE_FLOOR, overall - reduction)
    improvement = _round_half_up((overall - potential) / overall * 100) if overall else 0

    return Prediction(
        potential_score=round(potential, SCORE_PRECISION),
        improvement_percentage=improvement,
        primary_action=_ACTIONS[driver],
        driver=driver,
    )
