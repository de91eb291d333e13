"""CLI for FlowSentry: grouped subcommands.

Commands:
  flowsentry analyze
  flowsentry ask
  flowsentry ingest
  flowsentry snapshot {show, list, dashboard, report}
  flowsentry serve
"""

from __future__ import annotations

import sys

from flowsentry.cli._parser import build_parser
from flowsentry.cli.analysis_cmds import cmd_analyze, cmd_ask, cmd_ingest
from flowsentry.cli.snapshot_cmds import (
    cmd_serve,
    cmd_snapshot_dashboard,
    cmd_snapshot_list,
    cmd_snapshot_report,
    cmd_snapshot_show,
)


# ===================================================================
# Dispatch
# ===================================================================

_DISPATCH = {
    ("analyze", None): cmd_analyze,
    ("ask", None): cmd_ask,
    ("ingest", None): cmd_ingest,
    ("snapshot", "show"): cmd_snapshot_show,
    ("snapshot", "list"): cmd_snapshot_list,
    ("snapshot", "dashboard"): cmd_snapshot_dashboard,
    ("snapshot", "report"): cmd_snapshot_report,
    ("serve", None): cmd_serve,
}

# Map subcmd attr names to the dispatch key
_SUBCMD_ATTR = {
    "snapshot": "snapshot_cmd",
}


def main(argv: list[str] | None = None) -> int:
    from flowsentry import storage
    from flowsentry.observability import setup_logging

    parser = build_parser()
    args = parser.parse_args(argv if argv is not None else sys.argv[1:])

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.log_level)
    storage.init(args.db, backend=args.backend)

    subcmd_attr = _SUBCMD_ATTR.get(args.command)
    subcmd = getattr(args, subcmd_attr, None) if subcmd_attr else None
    handler = _DISPATCH.get((args.command, subcmd))
    if handler is None:
        parser.print_help()
        return 1

    return handler(args)
