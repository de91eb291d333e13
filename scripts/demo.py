#!/usr/bin/env python3
"""Run the full pipeline on deterministic demo data.

Usage:
    python scripts/demo.py [--project-id DEMO] [--db .flowsentry/demo.db]

Feeds a short series of Jira transition webhooks for one project through
``handle_transition_event`` and prints the resulting snapshot and report.
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timedelta, timezone

from flowsentry import engine, presentation, storage
from flowsentry.observability import setup_logging
from flowsentry.providers import StaticRuleProvider, StaticWorkflowProvider

_BASE_TIME = datetime(2024, 1, 8, 9, 0, tzinfo=timezone.utc)

# (issue, from, to, hours after base)
_TRANSITIONS = [
    ("DEMO-1", "TODO", "IN_PROGRESS", 0),
    ("DEMO-2", "TODO", "IN_PROGRESS", 1),
    ("DEMO-1", "IN_PROGRESS", "IN_REVIEW", 6),
    ("DEMO-2", "IN_PROGRESS", "IN_REVIEW", 9),
    ("DEMO-1", "IN_REVIEW", "DONE", 54),
    ("DEMO-2", "IN_REVIEW", "IN_PROGRESS", 60),
]


def demo_events(project_id: str) -> list[dict]:
    events = []
    for issue, src, dst, hours in _TRANSITIONS:
        events.append({
            "source": "jira",
            "eventType": "issue_transitioned",
            "receivedAt": (_BASE_TIME + timedelta(hours=hours)).isoformat(),
            "payload": {
                "issue": {"id": issue, "fields": {"project": {"id": project_id}}},
                "changelog": {"fromString": src, "toString": dst},
            },
        })
    return events


def main() -> int:
    parser = argparse.ArgumentParser(description="Run FlowSentry on demo data")
    parser.add_argument("--project-id", default="DEMO")
    parser.add_argument("--db", default=None, help="SQLite path (default: in-memory store)")
    args = parser.parse_args()

    setup_logging("WARNING")
    storage.init(args.db, backend="sqlite" if args.db else "memory")
    workflows = StaticWorkflowProvider.demo()
    rules = StaticRuleProvider.demo()

    for raw in demo_events(args.project_id):
        engine.handle_transition_event(raw, workflow_provider=workflows, rule_provider=rules)

    snapshot = engine.get_project_snapshot(args.project_id)
    print(json.dumps(snapshot, indent=2))
    print()
    print(presentation.report_from_snapshot(snapshot).body)
    return 0


if __name__ == "__main__":
    sys.exit(main())
