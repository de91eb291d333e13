"""SQLite implementation of SnapshotStorePort.

All SQL lives here.  Application code should depend on the port, not on
this module directly.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any

from flowsentry.errors import StorageError
from flowsentry.models import now_iso


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_SCHEMA = """
CREATE TABLE IF NOT EXISTS snapshots (
    key         TEXT PRIMARY KEY,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
"""


class SqliteStore:
    """Key-value snapshot store; one connection per operation."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.executescript(_SCHEMA)
        finally:
            conn.close()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def save(self, key: str, value: dict[str, Any]) -> None:
        try:
            text = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key!r} is not serializable: {e}") from e
        conn = self._connect()
        try:
            with conn:
                conn.execute(
                    "INSERT INTO snapshots(key, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                    (key, text, now_iso()),
                )
        finally:
            conn.close()

    def load(self, key: str) -> dict[str, Any] | None:
        conn = self._connect()
        try:
            row = conn.execute("SELECT value FROM snapshots WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored value for {key!r} is unreadable") from e

    def delete(self, key: str) -> bool:
        conn = self._connect()
        try:
            with conn:
                cur = conn.execute("DELETE FROM snapshots WHERE key = ?", (key,))
            return cur.rowcount > 0
        finally:
            conn.close()

    def keys(self, prefix: str = "") -> list[str]:
        conn = self._connect()
        try:
            rows = conn.execute(
                "SELECT key FROM snapshots WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            ).fetchall()
        finally:
            conn.close()
        return [r["key"] for r in rows]

    def close(self) -> None:
        pass
