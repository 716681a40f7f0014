"""
Two-tier fixed-window rate limiter for AI calls.

Every call type has its own request window, and all types also share
one ``global`` window.  A request is allowed only while both windows
have budget left; the tighter of the two governs.  Windows are created
lazily and rolled over on access once ``now > reset_at``.

Only :meth:`RateLimiter.consume` spends budget.  :meth:`check` and
:meth:`get_usage` are safe to call repeatedly for display.
"""

import json
import logging
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ascend_ai.config import GLOBAL_LIMIT_KEY, RateLimitRule, RateLimitSettings
from ascend_ai.storage.base import KeyValueStore, safe_read, safe_remove, safe_write
from ascend_ai.timeutil import Clock, now_ms

logger = logging.getLogger(__name__)


class RateLimitEntry(BaseModel):
    """Counter for one fixed window.

    Attributes:
        count: Requests spent in the current window.
        reset_at: Epoch millis at which the window ends
            (serialized as ``resetAt``).
    """

    model_config = ConfigDict(populate_by_name=True)

    count: int = Field(default=0, ge=0)
    reset_at: int = Field(alias="resetAt")


class RateLimitStatus(BaseModel):
    """Result of an allowance check.

    Attributes:
        allowed: Whether one more request fits in both windows.
        remaining: Binding (minimum) remaining budget, never below 0.
        reset_in: Milliseconds until the sooner of the two resets.
    """

    allowed: bool
    remaining: int
    reset_in: int


class UsageEntry(BaseModel):
    """Read-only usage snapshot for one configured type.

    Attributes:
        used: Requests spent in the live window (0 if none).
        max: Window budget.
        reset_in: Milliseconds until the window resets.
    """

    used: int
    max: int
    reset_in: int


class RateLimiter:
    """Fixed-window limiter partitioned by call type plus a global window.

    Args:
        store: Durable key-value store used for persistence.
        settings: Limit table and storage key.
        clock: Callable returning epoch milliseconds.
        log: Logger for storage and denial events.
    """

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[RateLimitSettings] = None,
        clock: Optional[Clock] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self._kv = store
        self._settings = settings or RateLimitSettings()
        self._clock = clock or now_ms
        self._log = log or logger
        self._limits: Dict[str, RateLimitEntry] = {}
        self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        result = safe_read(self._kv, self._settings.storage_key, self._log)
        raw = result.unwrap_or(None)
        if raw is None:
            return
        try:
            parsed = json.loads(raw)
        except ValueError as e:
            self._log.warning(
                "Failed to load rate limits from storage",
                extra={"error": str(e)},
            )
            return
        if not isinstance(parsed, dict):
            self._log.warning("Rate limit document is not a JSON object")
            return

        skipped = 0
        for key, value in parsed.items():
            try:
                self._limits[key] = RateLimitEntry.model_validate(value)
            except ValidationError:
                skipped += 1
        if skipped:
            self._log.warning(
                "Discarded malformed rate limit entries",
                extra={"count": skipped},
            )

    def _persist(self) -> None:
        payload = json.dumps(
            {key: entry.model_dump(by_alias=True) for key, entry in self._limits.items()}
        )
        safe_write(self._kv, self._settings.storage_key, payload, self._log)

    # ------------------------------------------------------------------
    # Windows
    # ------------------------------------------------------------------

    def _window(self, name: str, rule: RateLimitRule, now: int) -> RateLimitEntry:
        """Return the live window for *name*, creating or rolling it over."""
        entry = self._limits.get(name)
        if entry is None or now > entry.reset_at:
            entry = RateLimitEntry(count=0, reset_at=now + rule.window_ms)
            self._limits[name] = entry
        return entry

    def _status(self, name: str, now: int) -> RateLimitStatus:
        type_rule = self._settings.rule_for(name)
        global_rule = self._settings.rule_for(GLOBAL_LIMIT_KEY)

        type_entry = self._window(name, type_rule, now)
        global_entry = self._window(GLOBAL_LIMIT_KEY, global_rule, now)

        remaining = min(
            type_rule.max_requests - type_entry.count,
            global_rule.max_requests - global_entry.count,
        )
        reset_in = min(
            max(0, type_entry.reset_at - now),
            max(0, global_entry.reset_at - now),
        )
        return RateLimitStatus(
            allowed=remaining > 0,
            remaining=max(0, remaining),
            reset_in=reset_in,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check(self, call_type: str) -> RateLimitStatus:
        """Report whether one more *call_type* request would be allowed.

        Never changes counts; only stale windows are replaced.

        Args:
            call_type: Configured call type (or ``"global"``).

        Returns:
            RateLimitStatus with the binding remaining budget.

        Raises:
            ConfigurationError: If *call_type* has no configured limit.
        """
        return self._status(str(call_type), self._clock())

    def consume(self, call_type: str) -> bool:
        """Spend one unit of the type and global budgets.

        Args:
            call_type: Configured call type.

        Returns:
            ``True`` if the request was allowed and counted, ``False``
            if it was denied (nothing is changed).
        """
        name = str(call_type)
        status = self._status(name, self._clock())
        if not status.allowed:
            self._log.warning(
                "Rate limit denied",
                extra={"call_type": name, "reset_in_ms": status.reset_in},
            )
            return False

        self._limits[name].count += 1
        if name != GLOBAL_LIMIT_KEY:
            self._limits[GLOBAL_LIMIT_KEY].count += 1
        self._persist()
        self._log.debug(
            "Rate limit consumed",
            extra={"call_type": name, "remaining": status.remaining - 1},
        )
        return True

    def get_usage(self) -> Dict[str, UsageEntry]:
        """Snapshot usage for every configured type including ``global``.

        Stale or missing windows report zero usage and a full window;
        they are not created.
        """
        now = self._clock()
        usage: Dict[str, UsageEntry] = {}
        for name, rule in self._settings.limits.items():
            entry = self._limits.get(name)
            if entry is not None and now <= entry.reset_at:
                usage[name] = UsageEntry(
                    used=entry.count,
                    max=rule.max_requests,
                    reset_in=entry.reset_at - now,
                )
            else:
                usage[name] = UsageEntry(
                    used=0,
                    max=rule.max_requests,
                    reset_in=rule.window_ms,
                )
        return usage

    def reset(self) -> None:
        """Clear all counters and the durable document."""
        self._limits.clear()
        safe_remove(self._kv, self._settings.storage_key, self._log)
        self._log.info("Rate limits reset")
