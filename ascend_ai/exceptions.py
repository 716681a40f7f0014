"""
Ascend AI exception hierarchy.

All custom exceptions inherit from AscendAIError so callers can
catch a single base type when they want a broad safety net.
"""

import math


class AscendAIError(Exception):
    """Base exception for all Ascend AI errors."""


class ConfigurationError(AscendAIError, ValueError):
    """Raised when configuration is invalid or cannot be loaded."""


class StorageUnavailableError(AscendAIError):
    """Raised when the durable key-value store cannot be read or written.

    Never escapes the cache or rate limiter; it only travels inside a
    :class:`~ascend_ai.storage.base.StorageResult`.
    """


class RateLimitExceededError(AscendAIError):
    """Raised when a call is denied by the rate limiter.

    Args:
        call_type: The call type whose request was denied.
        reset_in_ms: Milliseconds until the earliest window reset.
    """

    def __init__(self, call_type: str, reset_in_ms: int) -> None:
        self.call_type = call_type
        self.reset_in_ms = max(0, int(reset_in_ms))
        self.retry_after_minutes = max(1, math.ceil(self.reset_in_ms / 60_000))
        plural = "s" if self.retry_after_minutes > 1 else ""
        super().__init__(
            f"Rate limit exceeded. Try again in "
            f"{self.retry_after_minutes} minute{plural}."
        )


class UnderlyingCallError(AscendAIError):
    """Raised when the remote AI endpoint reports a failed call."""


class MalformedResponseError(AscendAIError):
    """Raised when a response payload has no usable structured content."""
