"""
Durable key-value store contract for the Ascend AI mediation layer.

The cache and rate limiter persist whole JSON documents under two fixed
keys.  Backends only need three synchronous string operations; any of
them may raise.  The ``safe_*`` helpers wrap each operation into a
:class:`StorageResult` so callers can unwrap to a default without
letting storage problems escape.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable

from ascend_ai.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """Protocol for durable string-keyed storage backends."""

    def read(self, key: str) -> Optional[str]:
        """Return the stored value, or ``None`` if the key is absent."""
        ...

    def write(self, key: str, value: str) -> None:
        """Overwrite *key* with *value*.  May raise."""
        ...

    def remove(self, key: str) -> None:
        """Delete *key*.  Removing a missing key is not an error."""
        ...


@dataclass
class StorageResult:
    """Outcome of a guarded storage operation.

    Attributes:
        ok: Whether the operation completed.
        value: Value read (``read`` only; ``None`` on miss or failure).
        error: The failure, wrapped as ``StorageUnavailableError``.
    """

    ok: bool
    value: Optional[str] = None
    error: Optional[StorageUnavailableError] = None

    def unwrap_or(self, default: Optional[str]) -> Optional[str]:
        """Return ``value`` on success, otherwise *default*."""
        return self.value if self.ok else default


def _failure(
    op: str, key: str, exc: Exception, log: logging.Logger
) -> StorageResult:
    error = StorageUnavailableError(f"Storage {op} failed for '{key}': {exc}")
    error.__cause__ = exc
    log.warning(
        "Durable storage %s failed", op,
        extra={"storage_key": key, "error": str(exc)},
    )
    return StorageResult(ok=False, error=error)


def safe_read(
    store: KeyValueStore, key: str, log: Optional[logging.Logger] = None
) -> StorageResult:
    """Read *key*, converting any backend exception into a failed result."""
    try:
        return StorageResult(ok=True, value=store.read(key))
    except Exception as e:
        return _failure("read", key, e, log or logger)


def safe_write(
    store: KeyValueStore, key: str, value: str, log: Optional[logging.Logger] = None
) -> StorageResult:
    """Write *key*, converting any backend exception into a failed result."""
    try:
        store.write(key, value)
        return StorageResult(ok=True)
    except Exception as e:
        return _failure("write", key, e, log or logger)


def safe_remove(
    store: KeyValueStore, key: str, log: Optional[logging.Logger] = None
) -> StorageResult:
    """Remove *key*, converting any backend exception into a failed result."""
    try:
        store.remove(key)
        return StorageResult(ok=True)
    except Exception as e:
        return _failure("remove", key, e, log or logger)
