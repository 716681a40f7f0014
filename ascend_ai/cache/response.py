"""
Response cache for the Ascend AI mediation layer.

Stores prior AI call results keyed by ``(call_type, reduced input)``.
Each call type has its own TTL; one ``max_entries`` bound is shared by
all types.  The whole map is mirrored into a durable key-value store
after every mutation and re-hydrated (minus expired or malformed
entries) at construction.

Eviction removes the entry with the oldest creation ``timestamp``;
access time is not tracked.
"""

import json
import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ascend_ai.cache.keys import generate_key, key_type_prefix
from ascend_ai.config import CacheSettings
from ascend_ai.storage.base import KeyValueStore, safe_read, safe_remove, safe_write
from ascend_ai.timeutil import Clock, now_ms

logger = logging.getLogger(__name__)


class CacheEntry(BaseModel):
    """A single cached AI response.

    Attributes:
        data: Opaque JSON-serializable payload.
        timestamp: Creation instant, epoch milliseconds.
        expires_at: Instant after which the entry is invalid
            (serialized as ``expiresAt``).
    """

    model_config = ConfigDict(populate_by_name=True)

    data: Any = None
    timestamp: int
    expires_at: int = Field(alias="expiresAt")

    @model_validator(mode="after")
    def _check_window(self) -> "CacheEntry":
        if self.expires_at <= self.timestamp:
            raise ValueError("expiresAt must be later than timestamp")
        return self


class CacheStats(BaseModel):
    """Aggregate cache statistics.

    Attributes:
        size: Current number of entries.
        types: Entry count per call-type prefix.
        hits: Lookups answered from the cache.
        misses: Lookups that found nothing usable.
        hit_rate: Ratio of hits to total lookups (0.0 if no lookups).
    """

    size: int = 0
    types: Dict[str, int] = Field(default_factory=dict)
    hits: int = 0
    misses: int = 0
    hit_rate: float = 0.0


def serialize_entries(entries: Dict[str, CacheEntry]) -> str:
    """Render the cache map as the durable JSON document."""
    return json.dumps(
        {key: entry.model_dump(by_alias=True) for key, entry in entries.items()}
    )


def deserialize_entries(
    raw: str, now: int, log: Optional[logging.Logger] = None
) -> Dict[str, CacheEntry]:
    """Parse a durable cache document.

    Malformed entries are skipped individually; entries whose
    ``expires_at <= now`` are dropped.

    Raises:
        ValueError: If *raw* is not a JSON object.
    """
    log = log or logger
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError("Cache document is not a JSON object")

    entries: Dict[str, CacheEntry] = {}
    skipped = 0
    for key, value in parsed.items():
        try:
            entry = CacheEntry.model_validate(value)
        except ValidationError:
            skipped += 1
            continue
        if entry.expires_at <= now:
            continue
        entries[key] = entry

    if skipped:
        log.warning("Discarded malformed cache entries", extra={"count": skipped})
    return entries


class ResponseCache:
    """TTL-based, type-partitioned, size-bounded response cache.

    Args:
        store: Durable key-value store used for persistence.
        settings: TTL table, ``max_entries`` and storage key.
        clock: Callable returning epoch milliseconds.
        log: Logger for storage and eviction events.
    """

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[CacheSettings] = None,
        clock: Optional[Clock] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._kv = store
        self._settings = settings or CacheSettings()
        self._clock = clock or now_ms
        self._log = log or logger
        self._store: Dict[str, CacheEntry] = {}
        self._hits: int = 0
        self._misses: int = 0
        self._load()

    def _load(self) -> None:
        result = safe_read(self._kv, self._settings.storage_key, self._log)
        raw = result.unwrap_or(None)
        if raw is None:
            return
        try:
            self._store = deserialize_entries(raw, self._clock(), self._log)
        except ValueError as e:
            self._log.warning(
                "Failed to load AI cache from storage",
                extra={"error": str(e)},
            )
            self._store = {}
            return
        self._log.debug("AI cache loaded", extra={"entries": len(self._store)})

    def _persist(self) -> None:
        try:
            payload = serialize_entries(self._store)
        except (TypeError, ValueError) as e:
            self._log.warning(
                "Failed to serialize AI cache",
                extra={"error": str(e)},
            )
            return
        safe_write(self._kv, self._settings.storage_key, payload, self._log)

    def get(self, call_type: str, raw_input: str) -> Optional[Any]:
        """Look up a cached payload.

        An expired entry is removed (and the removal persisted) and
        reported as a miss.

        Args:
            call_type: Call type the entry was stored under.
            raw_input: Reduced cache-key input.

        Returns:
            The cached payload, or ``None`` on a miss.
        """
        key = generate_key(str(call_type), raw_input)
        entry = self._store.get(key)

        if entry is None:
            self._misses += 1
            return None

        if self._clock() > entry.expires_at:
            del self._store[key]
            self._persist()
            self._misses += 1
            self._log.debug("Cache entry expired", extra={"cache_key": key})
            return None

        self._hits += 1
        self._log.debug("Cache hit", extra={"cache_key": key})
        return entry.data

    def set(self, call_type: str, raw_input: str, data: Any) -> CacheEntry:
        """Store *data* under ``(call_type, raw_input)``.

        When the key is new and the cache is full, entries with the
        smallest ``timestamp`` are evicted until one slot is free.

        Args:
            call_type: Call type; selects the TTL.
            raw_input: Reduced cache-key input.
            data: JSON-serializable payload.

        Returns:
            The newly created CacheEntry.
        """
        name = str(call_type)
        key = generate_key(name, raw_input)
        now = self._clock()

        if key not in self._store:
            while self._store and len(self._store) >= self._settings.max_entries:
                self._evict_oldest()

        entry = CacheEntry(
            data=data,
            timestamp=now,
            expires_at=now + self._settings.ttl_for(name),
        )
        self._store[key] = entry
        self._persist()
        self._log.debug("Cache set", extra={"cache_key": key})
        return entry

    def _evict_oldest(self) -> None:
        if not self._store:
            return
        oldest_key = min(self._store, key=lambda k: self._store[k].timestamp)
        del self._store[oldest_key]
        self._log.info("Cache entry evicted", extra={"cache_key": oldest_key})

    def invalidate(self, call_type: str, raw_input: str) -> bool:
        """Remove one entry.

        Returns:
            ``True`` if an entry was removed, ``False`` otherwise.
        """
        key = generate_key(str(call_type), raw_input)
        if key not in self._store:
            return False
        del self._store[key]
        self._persist()
        self._log.info("Cache entry invalidated", extra={"cache_key": key})
        return True

    def clear(self) -> int:
        """Remove all entries and the durable document.

        Returns:
            Number of entries removed.
        """
        count = len(self._store)
        self._store.clear()
        safe_remove(self._kv, self._settings.storage_key, self._log)
        self._log.info("Cache cleared", extra={"entries_removed": count})
        return count

    def get_stats(self) -> CacheStats:
        """Return size, per-type counts and hit/miss figures."""
        types: Dict[str, int] = {}
        for key in self._store:
            prefix = key_type_prefix(key)
            types[prefix] = types.get(prefix, 0) + 1
        total = self._hits + self._misses
        return CacheStats(
            size=len(self._store),
            types=types,
            hits=self._hits,
            misses=self._misses,
            hit_rate=self._hits / total if total > 0 else 0.0,
        )

    @property
    def size(self) -> int:
        """Current number of entries in the cache."""
        return len(self._store)
