"""Independent workflow analyses: structure, timing, automation rules.

Each analysis is deterministic and performs no I/O:
  - analyze_graph:        cycles, dead ends, unreachable states, max depth
  - TimingAggregator:     per-state dwell time and bottleneck detection
  - analyze_rules:        OVERWRITE / LOOP conflicts between automation rules
"""

from flowsentry.analysis.graph import analyze_graph, graph_summary
from flowsentry.analysis.rules import analyze_rules
from flowsentry.analysis.timing import TimingAggregator, TimingRegistry, parse_instant

__all__ = [
    "TimingAggregator",
    "TimingRegistry",
    "analyze_graph",
    "analyze_rules",
    "graph_summary",
    "parse_instant",
]
