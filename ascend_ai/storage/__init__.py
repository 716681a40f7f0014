"""Durable key-value storage backends."""

from pathlib import Path
from typing import Optional

from ascend_ai.config import StorageSettings
from ascend_ai.exceptions import ConfigurationError
from ascend_ai.storage.base import (
    KeyValueStore,
    StorageResult,
    safe_read,
    safe_remove,
    safe_write,
)
from ascend_ai.storage.file import FileStore
from ascend_ai.storage.memory import InMemoryStore


def create_store(settings: Optional[StorageSettings] = None) -> KeyValueStore:
    """Build the backend named by ``settings.backend``.

    Args:
        settings: Storage settings; defaults to an in-memory store.

    Returns:
        A :class:`KeyValueStore` implementation.

    Raises:
        ConfigurationError: If the backend name is unknown.
    """
    settings = settings or StorageSettings()
    backend = settings.backend.lower()
    if backend == "memory":
        return InMemoryStore()
    if backend == "file":
        return FileStore(Path(settings.file_dir))
    if backend == "redis":
        from ascend_ai.storage.redis_backend import RedisStore

        return RedisStore(settings.redis_url, key_prefix=settings.redis_prefix)
    raise ConfigurationError(f"Unknown storage backend: {settings.backend!r}")


__all__ = [
    "FileStore",
    "InMemoryStore",
    "KeyValueStore",
    "StorageResult",
    "create_store",
    "safe_read",
    "safe_remove",
    "safe_write",
]
