"""Risk scoring: fixed-weight aggregation, explanation, what-if simulation.

Three normalized signals feed one score:
  - structure:   cycles, dead ends, unreachable states, excess depth
  - timing:      bottleneck states
  - automation:  rule conflicts (LOOP counts double)
"""

from flowsentry.risk.eval import compute_risk
from flowsentry.risk.explain import explain_risk
from flowsentry.risk.whatif import primary_driver, simulate_improvement

__all__ = [
    "compute_risk",
    "explain_risk",
    "primary_driver",
    "simulate_improvement",
]
