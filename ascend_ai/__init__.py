"""Ascend AI: response caching and rate limiting for AI calls."""

from ascend_ai.cache import ResponseCache
from ascend_ai.config import CallType, Settings, get_settings
from ascend_ai.exceptions import (
    AscendAIError,
    ConfigurationError,
    MalformedResponseError,
    RateLimitExceededError,
    StorageUnavailableError,
    UnderlyingCallError,
)
from ascend_ai.mediator import (
    AICallResult,
    AIContext,
    CallMediator,
    cached_ai_call,
    create_context,
)
from ascend_ai.ratelimit import RateLimiter

__version__ = "1.0.0"

__all__ = [
    "AICallResult",
    "AIContext",
    "AscendAIError",
    "CallMediator",
    "CallType",
    "ConfigurationError",
    "MalformedResponseError",
    "RateLimitExceededError",
    "RateLimiter",
    "ResponseCache",
    "Settings",
    "StorageUnavailableError",
    "UnderlyingCallError",
    "cached_ai_call",
    "create_context",
    "get_settings",
]
