"""Argparse parser definition for the FlowSentry CLI."""

from __future__ import annotations

import argparse

from flowsentry.cli._helpers import _default_db


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flowsentry",
        description="Deterministic multi-signal workflow risk analysis",
    )
    parser.add_argument("--db", default=_default_db(), help="SQLite database path")
    parser.add_argument("--backend", choices=["memory", "sqlite"], default="sqlite",
                        help="Snapshot store backend (default: sqlite)")
    parser.add_argument("--log-level", default=None, help="Log level (default: FLOWSENTRY_LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command")

    _register_analysis_commands(sub)
    _register_snapshot_commands(sub)
    _register_server_commands(sub)
    return parser


def _add_input_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--project-id", required=True)
    p.add_argument("--workflow", required=True, help="JSON file: {id, states, transitions: [{from, to}]}")
    p.add_argument("--rules", help="JSON file: [{id, trigger, actions: [{field, value}]}]")
    p.add_argument("--transitions", help="JSON file: [{issue_id, from_state, to_state, timestamp}]")


def _register_analysis_commands(sub: argparse._SubParsersAction) -> None:
    # -- analyze --
    p = sub.add_parser("analyze", help="Score a workflow from explicit JSON inputs")
    _add_input_args(p)
    p.add_argument("--explain", action="store_true", help="Print only the explanation and prediction")

    # -- ask --
    p = sub.add_parser("ask", help="Ask a question about a workflow's analysis")
    _add_input_args(p)
    p.add_argument("--question", required=True)

    # -- ingest --
    p = sub.add_parser("ingest", help="Process webhook event(s) through the full pipeline")
    p.add_argument("--file", required=True, help="JSON file with one event envelope or a list of them")


def _register_snapshot_commands(sub: argparse._SubParsersAction) -> None:
    snap_p = sub.add_parser("snapshot", help="Stored risk snapshots")
    snap_sub = snap_p.add_subparsers(dest="snapshot_cmd")

    p = snap_sub.add_parser("show", help="Show the latest snapshot for a project or issue")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--project-id")
    group.add_argument("--issue-key")

    snap_sub.add_parser("list", help="List projects with stored snapshots")

    p = snap_sub.add_parser("dashboard", help="Dashboard view model for a project")
    p.add_argument("--project-id", required=True)

    p = snap_sub.add_parser("report", help="Markdown risk report for a project")
    p.add_argument("--project-id", required=True)
    p.add_argument("--markdown", action="store_true", help="Print the markdown body only")


def _register_server_commands(sub: argparse._SubParsersAction) -> None:
    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8080)
    p.add_argument("--secret", default="", help="Webhook HMAC secret")
