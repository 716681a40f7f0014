"""
Tests for the call mediator and context construction.
"""

import pytest

from ascend_ai.config import CacheSettings, Settings
from ascend_ai.exceptions import RateLimitExceededError, UnderlyingCallError
from ascend_ai.mediator import AICallResult, AIContext, cached_ai_call, create_context
from ascend_ai.storage import InMemoryStore


class CallCounter:
    """Async callable returning a fixed value and counting invocations."""

    def __init__(self, value) -> None:
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.value


@pytest.fixture
def limited_context(small_limits, store, clock) -> AIContext:
    return create_context(
        settings=Settings(cache=CacheSettings(), rate_limits=small_limits),
        store=store,
        clock=clock,
    )


class TestCallMediator:
    async def test_miss_calls_and_caches(self, context: AIContext) -> None:
        call = CallCounter({"message": "hi"})
        result = await context.mediator.call("coaching", "k", call)
        assert isinstance(result, AICallResult)
        assert result.from_cache is False
        assert result.data == {"message": "hi"}
        assert call.calls == 1
        assert context.cache.get("coaching", "k") == {"message": "hi"}

    async def test_hit_skips_call(self, context: AIContext) -> None:
        call = CallCounter("v")
        await context.mediator.call("coaching", "k", call)
        second = await context.mediator.call("coaching", "k", call)
        assert second.from_cache is True
        assert second.data == "v"
        assert call.calls == 1

    async def test_miss_spends_exactly_one_unit(self, context: AIContext) -> None:
        await context.mediator.call("insights", "k", CallCounter(1))
        usage = context.limiter.get_usage()
        assert usage["insights"].used == 1
        assert usage["global"].used == 1

    async def test_hit_spends_nothing(self, context: AIContext) -> None:
        context.cache.set("insights", "k", "cached")
        await context.mediator.call("insights", "k", CallCounter("fresh"))
        assert context.limiter.get_usage()["insights"].used == 0

    async def test_cache_hit_bypasses_exhausted_limit(self, limited_context: AIContext) -> None:
        limited_context.cache.set("suggestions", "k", ["cached"])
        while limited_context.limiter.consume("suggestions"):
            pass
        call = CallCounter(["fresh"])
        result = await limited_context.mediator.call("suggestions", "k", call)
        assert result.from_cache is True
        assert result.data == ["cached"]
        assert call.calls == 0

    async def test_denied_request_raises_without_calling(
        self, limited_context: AIContext, clock
    ) -> None:
        for _ in range(2):
            limited_context.limiter.consume("suggestions")
        clock.advance(30_500)
        call = CallCounter("never")
        with pytest.raises(RateLimitExceededError, match="Try again in 1 minute\\.") as exc:
            await limited_context.mediator.call("suggestions", "k", call)
        assert exc.value.call_type == "suggestions"
        assert exc.value.reset_in_ms == 29_500
        assert call.calls == 0

    async def test_skip_rate_limit(self, limited_context: AIContext) -> None:
        for _ in range(2):
            limited_context.limiter.consume("suggestions")
        result = await limited_context.mediator.call(
            "suggestions", "k", CallCounter("ok"), skip_rate_limit=True
        )
        assert result.data == "ok"
        assert limited_context.limiter.get_usage()["suggestions"].used == 2

    async def test_skip_cache_neither_reads_nor_writes(self, context: AIContext) -> None:
        context.cache.set("coaching", "k", "stale")
        call = CallCounter("fresh")
        result = await context.mediator.call("coaching", "k", call, skip_cache=True)
        assert result.from_cache is False
        assert result.data == "fresh"
        assert context.cache.get("coaching", "k") == "stale"

    async def test_call_errors_propagate_and_are_not_cached(self, context: AIContext) -> None:
        async def failing():
            raise UnderlyingCallError("provider down")

        with pytest.raises(UnderlyingCallError, match="provider down"):
            await context.mediator.call("coaching", "k", failing)
        assert context.cache.get("coaching", "k") is None
        assert context.limiter.get_usage()["coaching"].used == 1

    async def test_none_result_is_not_served_as_hit(self, context: AIContext) -> None:
        call = CallCounter(None)
        await context.mediator.call("coaching", "k", call)
        await context.mediator.call("coaching", "k", call)
        assert call.calls == 2

    async def test_functional_shortcut(self, context: AIContext) -> None:
        result = await cached_ai_call(context, "insights", "k", CallCounter(7))
        assert result.data == 7


class TestCreateContext:
    def test_shares_store_and_clock(self, settings, clock) -> None:
        store = InMemoryStore()
        context = create_context(settings=settings, store=store, clock=clock)
        assert context.store is store
        context.cache.set("coaching", "k", 1)
        context.limiter.consume("coaching")
        assert sorted(store.keys()) == ["ascend_ai_cache", "ascend_ai_rate_limits"]

    def test_rehydrates_existing_state(self, settings, clock) -> None:
        store = InMemoryStore()
        first = create_context(settings=settings, store=store, clock=clock)
        first.cache.set("coaching", "k", "kept")
        first.limiter.consume("coaching")

        second = create_context(settings=settings, store=store, clock=clock)
        assert second.cache.get("coaching", "k") == "kept"
        assert second.limiter.get_usage()["coaching"].used == 1

    def test_defaults_to_configured_backend(self) -> None:
        context = create_context()
        assert isinstance(context.store, InMemoryStore)
