"""Token bucket admission control for outbound provider calls."""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from bigboost_mcp.foundation.config import RateLimitSettings

Clock = Callable[[], float]


def monotonic_ms() -> float:
    """Default clock: monotonic time in milliseconds."""
    return time.monotonic_ns() / 1_000_000


@dataclass
class RateLimiter:
    """Continuous-refill token bucket shared by every caller in the process.

    The bucket holds at most ``max_requests`` tokens and refills linearly at
    ``max_requests / window_ms`` tokens per millisecond, so admissions are
    spread across the window instead of bursting at its boundaries. Each
    admitted request consumes one token.

    Refill, check and decrement run under one lock; the limiter is safe to
    share between event-loop tasks and worker threads.

    Args:
        max_requests: Bucket capacity (max requests per window)
        window_ms: Window length in milliseconds
        clock: Millisecond clock, injectable for tests

    Example:
        >>> limiter = RateLimiter(max_requests=5000, window_ms=300_000)
        >>> limiter.can_make_request()
        True
    """

    max_requests: int = 5000
    window_ms: int = 300_000
    clock: Clock = field(default=monotonic_ms, repr=False)
    _tokens: float = field(init=False, repr=False)
    _last_refill: float = field(init=False, repr=False)
    _lock: threading.Lock = field(init=False, repr=False, default_factory=threading.Lock)

    def __post_init__(self) -> None:
        if self.max_requests <= 0:
            raise ValueError(f"max_requests must be positive, got {self.max_requests}")
        if self.window_ms <= 0:
            raise ValueError(f"window_ms must be positive, got {self.window_ms}")
        self._tokens = float(self.max_requests)
        self._last_refill = self.clock()

    @classmethod
    def from_settings(cls, settings: RateLimitSettings, *, clock: Clock = monotonic_ms) -> RateLimiter:
        return cls(max_requests=settings.max_requests, window_ms=settings.window_ms, clock=clock)

    @property
    def refill_rate(self) -> float:
        """Tokens added per millisecond."""
        return self.max_requests / self.window_ms

    @property
    def available_tokens(self) -> float:
        """Tokens available right now, without consuming any."""
        with self._lock:
            return self._projected(self.clock())[0]

    def _projected(self, now: float) -> tuple[float, bool]:
        """Token count at ``now`` and whether time has advanced."""
        elapsed = now - self._last_refill
        if elapsed <= 0:
            return self._tokens, False
        added = elapsed * self.max_requests / self.window_ms
        return min(self._tokens + added, float(self.max_requests)), True

    def _refill(self) -> None:
        now = self.clock()
        tokens, advanced = self._projected(now)
        if advanced:
            self._tokens, self._last_refill = tokens, now

    def _wait_for(self, tokens: float) -> int:
        if tokens >= 1:
            return 0
        return math.ceil((1 - tokens) * self.window_ms / self.max_requests)

    def can_make_request(self) -> bool:
        """Refill, then consume one token if available."""
        with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return True
            return False

    def get_wait_time(self) -> int:
        """Milliseconds until a request would be admitted. Never consumes a token."""
        with self._lock:
            return self._wait_for(self._projected(self.clock())[0])

    def acquire(self) -> int:
        """Admit a request or report how long to wait, atomically.

        Returns:
            0 if a token was consumed, else the wait in milliseconds
        """
        with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return 0
            return self._wait_for(self._tokens)

    def reset(self) -> None:
        """Refill the bucket to capacity."""
        with self._lock:
            self._tokens = float(self.max_requests)
            self._last_refill = self.clock()
