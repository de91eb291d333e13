"""Factory for the snapshot store backend.

Reads ``FLOWSENTRY_STORE_BACKEND`` (default: ``memory``) and returns the
corresponding store implementation.
"""

from __future__ import annotations

import os
from pathlib import Path

from flowsentry.defaults import DEFAULT_DB_PATH, DEFAULT_STORE_BACKEND
from flowsentry.ports import SnapshotStorePort


def create_store(
    *,
    backend: str | None = None,
    db_path: str | Path | None = None,
) -> SnapshotStorePort:
    """Create a store for *backend* (``"memory"`` or ``"sqlite"``).

    *db_path* falls back to ``FLOWSENTRY_DB_PATH`` for the sqlite backend.
    """
    backend = (backend or os.environ.get("FLOWSENTRY_STORE_BACKEND", DEFAULT_STORE_BACKEND)).lower()

    if backend == "memory":
        from flowsentry.adapters.memory_store import MemoryStore
        return MemoryStore()

    if backend == "sqlite":
        from flowsentry.adapters.sqlite_store import SqliteStore
        path = db_path or os.environ.get("FLOWSENTRY_DB_PATH", DEFAULT_DB_PATH)
        return SqliteStore(path)

    raise ValueError(f"Unknown backend: {backend!r}  (expected 'memory' or 'sqlite')")
