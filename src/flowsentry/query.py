"""Keyword routing of natural-language questions to analysis results.

Answers are built only from an ``AnalysisResult``; the same question and
result always give the same answer.
"""

from __future__ import annotations

import re
from typing import Any

from flowsentry.defaults import RISK_HIGH_THRESHOLD, RISK_MODERATE_THRESHOLD
from flowsentry.models import AnalysisResult

# Order decides the primary topic when several match.
_PATTERNS: dict[str, re.Pattern[str]] = {
    "timing": re.compile(r"\b(how long|duration|time spent|stuck|bottleneck|slow)\b", re.I),
    "risk": re.compile(r"\b(risk|danger|score|health|critical)\b", re.I),
    "structure": re.compile(r"\b(cycle|dead end|complex|structure|flow)\b", re.I),
    "improvement": re.compile(r"\b(improve|better|optimize|fix|resolve)\b", re.I),
    "whatif": re.compile(r"\b(what if|if we|simulate|predict|forecast)\b", re.I),
}


def classify_question(question: str) -> list[str]:
    return [topic for topic, pattern in _PATTERNS.items() if pattern.search(question or "")]


def _level(score: float) -> str:
    if score > RISK_HIGH_THRESHOLD:
        return "High"
    if score > RISK_MODERATE_THRESHOLD:
        return "Medium"
    return "Low"


def _answer(topic: str, result: AnalysisResult) -> str:
    graph = result.findings.graph
    timing = result.findings.timing
    if topic == "timing":
        if timing and timing.bottlenecks:
            return f"Bottlenecks detected at: {', '.join(timing.bottlenecks)}."
        return "Timing appears even across all states."
    if topic == "risk":
        return f"Risk score: {result.risk.overall} ({_level(result.risk.overall)})."
    if topic == "structure":
        parts = [f"{len(graph.cycles)} cycle(s) detected." if graph and graph.cycles else "No cycles found."]
        if graph and graph.dead_ends:
            parts.append(f"Dead ends: {', '.join(graph.dead_ends)}.")
        return " ".join(parts)
    if topic in ("whatif", "improvement"):
        p = result.prediction
        return (
            f"{p.primary_action} could lower the score to {p.potential_score} "
            f"({p.improvement_percentage}% improvement)."
        )
    return result.explanation.summary


def answer_question(question: str, result: AnalysisResult) -> dict[str, Any]:
    topics = classify_question(question)
    primary = topics[0] if topics else "comprehensive"
    return {
        "question": question,
        "analysis_type": primary,
        "matched": topics,
        "requires_deep_analysis": "whatif" in topics or "improvement" in topics,
        "answer": _answer(primary, result),
    }
