"""CLI commands: analyze, ask, ingest."""

from __future__ import annotations

import argparse

from flowsentry.cli._helpers import _load_json, _out
from flowsentry.errors import FlowSentryError
from flowsentry.models import AnalysisResult


def _analyze_inputs(args: argparse.Namespace) -> AnalysisResult:
    from flowsentry import engine
    from flowsentry.analysis.timing import TimingAggregator

    aggregator = TimingAggregator(args.project_id)
    for t in _load_json(args.transitions, []):
        aggregator.record_transition(t.get("issue_id"), t.get("from_state"), t.get("to_state"), t.get("timestamp"))
    return engine.analyze_project(
        args.project_id,
        _load_json(args.workflow),
        _load_json(args.rules, []),
        aggregator,
    )


def cmd_analyze(args: argparse.Namespace) -> int:
    try:
        result = _analyze_inputs(args)
    except FlowSentryError as e:
        return _out(e.to_dict())
    if args.explain:
        return _out({
            "risk": result.risk.to_dict(),
            "explanation": result.explanation.to_dict(),
            "prediction": result.prediction.to_dict(),
        })
    return _out(result.to_dict())


def cmd_ask(args: argparse.Namespace) -> int:
    from flowsentry.query import answer_question
    try:
        result = _analyze_inputs(args)
    except FlowSentryError as e:
        return _out(e.to_dict())
    return _out(answer_question(args.question, result))


def cmd_ingest(args: argparse.Namespace) -> int:
    from flowsentry import engine
    data = _load_json(args.file)
    events = data if isinstance(data, list) else [data]
    results = []
    for raw in events:
        try:
            results.append(engine.handle_transition_event(raw))
        except FlowSentryError as e:
            return _out({**e.to_dict(), "processed": results})
    return _out({"processed": results})
