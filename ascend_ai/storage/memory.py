"""In-process key-value store."""

import threading
from typing import Dict, Optional


class InMemoryStore:
    """Dict-backed :class:`~ascend_ai.storage.base.KeyValueStore`.

    Survives nothing beyond the process; used in tests and as the
    default backend when no durable medium is configured.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list:
        """Return the currently stored keys."""
        with self._lock:
            return list(self._data)
