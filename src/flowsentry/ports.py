"""Storage port interfaces for FlowSentry.

Snapshot persistence is a plain key-value contract; values are
JSON-serializable mappings.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SnapshotStorePort(Protocol):
    def save(self, key: str, value: dict[str, Any]) -> None: ...
    def load(self, key: str) -> dict[str, Any] | None: ...
    def delete(self, key: str) -> bool: ...
    def keys(self, prefix: str = "") -> list[str]: ...
    def close(self) -> None: ...
