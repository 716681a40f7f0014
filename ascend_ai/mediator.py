"""
Call mediator: cache lookup, rate-limit check, call, cache write.

A cache hit returns immediately and never touches the rate limiter, so
repeated requests cost nothing.  On a miss the limiter must allow the
request, one unit of budget is spent, the call runs, and its result is
cached.  Errors raised by the call propagate unchanged; only the
rate-limit denial is synthesized here.

:class:`AIContext` bundles one store, cache, limiter and mediator.
Build it once with :func:`create_context` and pass it to consumers.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from pydantic import BaseModel

from ascend_ai.cache.response import ResponseCache
from ascend_ai.config import Settings, get_settings
from ascend_ai.exceptions import RateLimitExceededError
from ascend_ai.ratelimit.limiter import RateLimiter
from ascend_ai.storage import KeyValueStore, create_store
from ascend_ai.timeutil import Clock

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AICallResult(BaseModel, Generic[T]):
    """Uniform envelope returned by the mediator.

    Attributes:
        data: The call result (or cached copy of it).
        from_cache: Whether the data came from the cache.
    """

    data: T
    from_cache: bool = False


class CallMediator:
    """Orchestrates caching and rate limiting around an async call.

    Args:
        cache: Response cache.
        limiter: Rate limiter.
    """

    def __init__(self, cache: ResponseCache, limiter: RateLimiter) -> None:
        self._cache = cache
        self._limiter = limiter

    async def call(
        self,
        call_type: str,
        cache_key_input: str,
        perform_call: Callable[[], Awaitable[Any]],
        *,
        skip_cache: bool = False,
        skip_rate_limit: bool = False,
    ) -> AICallResult[Any]:
        """Run *perform_call* behind the cache and rate limiter.

        Args:
            call_type: Call type; selects TTL and budget.
            cache_key_input: Reduced input the cache key is built from.
            perform_call: Zero-argument coroutine function doing the
                real work.
            skip_cache: Neither read nor write the cache.
            skip_rate_limit: Neither check nor spend budget.

        Returns:
            AICallResult with ``from_cache`` set on a hit.

        Raises:
            RateLimitExceededError: If the limiter denies the request.
        """
        name = str(call_type)

        if not skip_cache:
            cached = self._cache.get(name, cache_key_input)
            if cached is not None:
                logger.debug("Served from cache", extra={"call_type": name})
                return AICallResult(data=cached, from_cache=True)

        if not skip_rate_limit:
            status = self._limiter.check(name)
            if not status.allowed or not self._limiter.consume(name):
                raise RateLimitExceededError(name, status.reset_in)

        data = await perform_call()

        if not skip_cache:
            self._cache.set(name, cache_key_input, data)

        return AICallResult(data=data, from_cache=False)


async def cached_ai_call(
    context: "AIContext",
    call_type: str,
    cache_key_input: str,
    perform_call: Callable[[], Awaitable[Any]],
    *,
    skip_cache: bool = False,
    skip_rate_limit: bool = False,
) -> AICallResult[Any]:
    """Functional shortcut for ``context.mediator.call(...)``."""
    return await context.mediator.call(
        call_type,
        cache_key_input,
        perform_call,
        skip_cache=skip_cache,
        skip_rate_limit=skip_rate_limit,
    )


@dataclass
class AIContext:
    """Process-wide mediation state, constructed once at start-up."""

    settings: Settings
    store: KeyValueStore
    cache: ResponseCache
    limiter: RateLimiter
    mediator: CallMediator


def create_context(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    clock: Optional[Clock] = None,
    log: Optional[logging.Logger] = None,
) -> AIContext:
    """Build the store, cache, limiter and mediator.

    Args:
        settings: Settings to use; defaults to :func:`get_settings`.
        store: Durable store; defaults to the configured backend.
        clock: Epoch-millisecond clock shared by cache and limiter.
        log: Logger injected into cache and limiter.

    Returns:
        A ready :class:`AIContext`.
    """
    settings = settings or get_settings()
    store = store if store is not None else create_store(settings.storage)
    cache = ResponseCache(store, settings.cache, clock=clock, log=log)
    limiter = RateLimiter(store, settings.rate_limits, clock=clock, log=log)
    logger.info(
        "AI context created",
        extra={"cache_entries": cache.size, "backend": type(store).__name__},
    )
    return AIContext(
        settings=settings,
        store=store,
        cache=cache,
        limiter=limiter,
        mediator=CallMediator(cache, limiter),
    )
