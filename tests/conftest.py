"""Shared fixtures: a controllable clock and storage doubles."""

from typing import Optional

import pytest

from ascend_ai.config import (
    CacheSettings,
    RateLimitRule,
    RateLimitSettings,
    Settings,
    reset_settings,
)
from ascend_ai.mediator import AIContext, create_context
from ascend_ai.storage import InMemoryStore


class FakeClock:
    """Epoch-millisecond clock advanced by hand."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FailingStore(InMemoryStore):
    """In-memory store whose selected operations raise."""

    def __init__(
        self,
        fail_read: bool = False,
        fail_write: bool = False,
        fail_remove: bool = False,
    ) -> None:
        super().__init__()
        self.fail_read = fail_read
        self.fail_write = fail_write
        self.fail_remove = fail_remove
        self.write_attempts = 0

    def read(self, key: str) -> Optional[str]:
        if self.fail_read:
            raise OSError("storage read unavailable")
        return super().read(key)

    def write(self, key: str, value: str) -> None:
        self.write_attempts += 1
        if self.fail_write:
            raise OSError("quota exceeded")
        super().write(key, value)

    def remove(self, key: str) -> None:
        if self.fail_remove:
            raise OSError("storage remove unavailable")
        super().remove(key)


@pytest.fixture(autouse=True)
def _clean_settings():
    """Reset the settings singleton around each test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        cache=CacheSettings(),
        rate_limits=RateLimitSettings(),
    )


@pytest.fixture
def small_limits() -> RateLimitSettings:
    """Tight limits: coaching 5/min, suggestions 2/min, global 3/min."""
    return RateLimitSettings(limits={
        "coaching": RateLimitRule(max_requests=5, window_ms=60_000),
        "suggestions": RateLimitRule(max_requests=2, window_ms=60_000),
        "insights": RateLimitRule(max_requests=5, window_ms=60_000),
        "decomposition": RateLimitRule(max_requests=5, window_ms=60_000),
        "global": RateLimitRule(max_requests=3, window_ms=60_000),
    })


@pytest.fixture
def context(settings: Settings, store: InMemoryStore, clock: FakeClock) -> AIContext:
    return create_context(settings=settings, store=store, clock=clock)


@pytest.fixture
def failing_store_cls():
    """The :class:`FailingStore` class, for tests that configure failures."""
    return FailingStore
