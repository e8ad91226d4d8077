"""Utility functions for Feed Cleaner."""

import asyncio
import re
import time
from collections.abc import Callable
from dataclasses import dataclass

from .logging import get_logger

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into single spaces and trim.

    Args:
        text: Raw text

    Returns:
        Cleaned text
    """
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


def truncate_text(text: str, max_length: int, suffix: str = "…") -> str:
    """Truncate text to a maximum length, appending a suffix when cut.

    Args:
        text: Text to truncate
        max_length: Number of characters kept before the suffix
        suffix: Suffix to add if truncated

    Returns:
        Truncated text
    """
    if len(text) <= max_length:
        return text
    return text[:max_length] + suffix


def truncate_words(text: str, word_count: int = 10, suffix: str = "...") -> str:
    """Keep the first ``word_count`` space-separated words.

    Args:
        text: Input text
        word_count: Words to keep
        suffix: Suffix to add if words were dropped

    Returns:
        Preview text
    """
    words = text.split(" ")
    preview = " ".join(words[:word_count])
    if len(words) > word_count:
        preview += suffix
    return preview


def text_hash(text: str) -> int:
    """Deterministic 32-bit rolling hash (``h = h * 31 + code``), signed.

    Args:
        text: Text to hash

    Returns:
        Signed 32-bit integer
    """
    h = 0
    for ch in text:
        # JS strings index UTF-16 code units
        for unit in _utf16_units(ch):
            h = (h * 31 + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return h


def _utf16_units(ch: str) -> tuple[int, ...]:
    code = ord(ch)
    if code < 0x10000:
        return (code,)
    code -= 0x10000
    return (0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF))


def monotonic_ms() -> float:
    """Current monotonic time in milliseconds."""
    return time.monotonic() * 1000.0


@dataclass
class RateBudget:
    """Fixed-window request budget."""
    limit: int
    window_duration_ms: float
    count: int = 0
    window_start: float = 0.0


class RateLimiter:
    """Fixed-window rate limiter for oracle calls.

    Bursts at window boundaries are accepted: up to ``2 * limit`` calls may
    land within one window length when it straddles a reset.
    """

    def __init__(
        self,
        limit: int = 100,
        window_ms: float = 60_000,
        clock: Callable[[], float] = monotonic_ms
    ):
        """Initialize rate limiter.

        Args:
            limit: Maximum calls allowed per window
            window_ms: Window length in milliseconds
            clock: Millisecond clock, injectable for tests
        """
        self.clock = clock
        self.budget = RateBudget(limit=limit, window_duration_ms=window_ms, window_start=clock())

    def try_acquire(self) -> bool:
        """Consume one unit of budget if available."""
        now = self.clock()
        budget = self.budget

        if now - budget.window_start > budget.window_duration_ms:
            budget.count = 0
            budget.window_start = now

        if budget.count >= budget.limit:
            logger.warning(
                "Rate limit reached",
                limit=budget.limit,
                window_ms=budget.window_duration_ms
            )
            return False

        budget.count += 1
        return True

    @property
    def remaining(self) -> int:
        return max(0, self.budget.limit - self.budget.count)


class Debouncer:
    """Trailing-edge debounce timer on the running event loop.

    Every :meth:`trigger` call resets the timer; the callback fires once,
    ``delay_ms`` after the last trigger.
    """

    def __init__(self, delay_ms: float, callback: Callable[[], None]):
        self.delay = delay_ms / 1000.0
        self.callback = callback
        self._handle: asyncio.TimerHandle | None = None

    def trigger(self) -> None:
        """(Re)start the timer."""
        loop = asyncio.get_running_loop()
        self.cancel()
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def _fire(self) -> None:
        self._handle = None
        self.callback()
