"""Shared CLI helpers."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from flowsentry.defaults import DEFAULT_DB_PATH


def _default_db() -> str:
    return os.environ.get("FLOWSENTRY_DB_PATH", str(Path(DEFAULT_DB_PATH)))


def _out(data: Any) -> int:
    print(json.dumps(data, indent=2, default=str))
    if isinstance(data, dict) and "error" in data:
        return 1
    return 0


def _load_json(path: str | None, default: Any = None) -> Any:
    if not path:
        return default
    return json.loads(Path(path).read_text(encoding="utf-8"))
