"""Epoch-millisecond clock and reset-time formatting."""

import time
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def format_reset_time(ms: int) -> str:
    """Render a remaining duration as ``"4m 12s"`` or ``"12s"``.

    Args:
        ms: Duration in milliseconds (negative values render as ``0s``).

    Returns:
        Human-readable duration string.
    """
    ms = max(0, int(ms))
    minutes = ms // 60_000
    seconds = (ms % 60_000) // 1000
    if minutes > 0:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"
