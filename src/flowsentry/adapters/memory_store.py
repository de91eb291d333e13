"""In-process snapshot store.  Values are held as JSON text so reads never
alias what the caller saved."""

from __future__ import annotations

import json
import threading
from typing import Any

from flowsentry.errors import StorageError


class MemoryStore:
    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def save(self, key: str, value: dict[str, Any]) -> None:
        try:
            text = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key!r} is not serializable: {e}") from e
        with self._lock:
            self._data[key] = text

    def load(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            text = self._data.get(key)
        if text is None:
            return None
        return json.loads(text)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def keys(self, prefix: str = "") -> list[str]:
        with self._lock:
            return sorted(k for k in self._data if k.startswith(prefix))

    def close(self) -> None:
        pass
