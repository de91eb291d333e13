"""CLI commands: stored snapshots, dashboard, report, serve."""

from __future__ import annotations

import argparse

from flowsentry.cli._helpers import _out
from flowsentry.errors import FlowSentryError


def cmd_snapshot_show(args: argparse.Namespace) -> int:
    from flowsentry import engine
    if args.issue_key:
        return _out(engine.get_risk_snapshot(args.issue_key))
    return _out(engine.get_project_snapshot(args.project_id))


def cmd_snapshot_list(args: argparse.Namespace) -> int:
    from flowsentry import storage
    from flowsentry.defaults import SNAPSHOT_KEY_PREFIX
    keys = storage.keys(SNAPSHOT_KEY_PREFIX)
    return _out({"projects": [k[len(SNAPSHOT_KEY_PREFIX):] for k in keys]})


def cmd_snapshot_dashboard(args: argparse.Namespace) -> int:
    from flowsentry.presentation import SnapshotInsightSource, get_dashboard_data
    try:
        view = get_dashboard_data(args.project_id, SnapshotInsightSource())
    except FlowSentryError as e:
        return _out(e.to_dict())
    return _out(view.to_dict())


def cmd_snapshot_report(args: argparse.Namespace) -> int:
    from flowsentry import engine
    from flowsentry.presentation import report_from_snapshot
    page = report_from_snapshot(engine.get_project_snapshot(args.project_id))
    if args.markdown:
        print(page.body)
        return 0
    return _out(page.to_dict())


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn
    from flowsentry.api import create_app
    app = create_app(db_path=args.db, store_backend=args.backend, webhook_secret=args.secret)
    uvicorn.run(app, host=args.host, port=args.port, log_config=None)
    return 0
