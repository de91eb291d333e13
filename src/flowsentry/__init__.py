"""FlowSentry: deterministic risk analysis for project-management workflows."""

__version__ = "0.1.0"
