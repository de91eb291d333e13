"""Snapshot storage facade backed by a SnapshotStorePort singleton.

The store is initialised once at startup via ``init()`` or ``configure()``;
``save`` / ``load`` lazily initialise from the environment if neither was
called.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any

from flowsentry.errors import StorageError
from flowsentry.ports import SnapshotStorePort

# ---------------------------------------------------------------------------
# Store singleton (thread-safe)
# ---------------------------------------------------------------------------

_store: SnapshotStorePort | None = None
_store_lock = threading.Lock()


def configure(store: SnapshotStorePort) -> None:
    """Set the global store instance, closing the previous one."""
    global _store
    with _store_lock:
        if _store is not None and _store is not store:
            _store.close()
        _store = store


def get_store() -> SnapshotStorePort | None:
    return _store


def init(db_path: str | Path | None = None, *, backend: str | None = None) -> None:
    """Initialise (or re-initialise) the store from arguments or env."""
    from flowsentry.adapters.store_factory import create_store
    configure(create_store(backend=backend, db_path=db_path))


def close() -> None:
    global _store
    with _store_lock:
        if _store is not None:
            _store.close()
            _store = None


def _get_store() -> SnapshotStorePort:
    if _store is None:
        init()
    if _store is None:
        raise RuntimeError("Snapshot store not initialized")
    return _store


def _check_key(key: str) -> None:
    if not key or not isinstance(key, str):
        raise StorageError("Storage key is required")


# ---------------------------------------------------------------------------
# Key-value operations
# ---------------------------------------------------------------------------

def save(key: str, value: dict[str, Any]) -> None:
    _check_key(key)
    _get_store().save(key, value)


def load(key: str) -> dict[str, Any] | None:
    """Return the stored value, or ``None`` when *key* was never saved."""
    _check_key(key)
    return _get_store().load(key)


def delete(key: str) -> bool:
    _check_key(key)
    return _get_store().delete(key)


def keys(prefix: str = "") -> list[str]:
    return _get_store().keys(prefix)
