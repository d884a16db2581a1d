"""Fixed-Window Rate Limiter — per-key request counting in process memory.

Invariants:
    - A key gets at most max_requests per window; the window starts on the
      first request after the previous one expired
    - Rejections report milliseconds until the current window resets
    - Expired windows are purged once the store grows past max_keys

Design Decisions:
    - In-process store: single uvicorn worker, limits reset on restart
    - Clock injected as a callable so tests control time
"""

import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after_ms: int


class FixedWindowRateLimiter:

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        max_keys: int = 1000,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._max_keys = max_keys
        self._windows: dict[str, _Window] = {}

    def check(self, key: str) -> RateLimitDecision:
        now = self._clock()
        if len(self._windows) > self._max_keys:
            self._purge(now)

        window = self._windows.get(key)
        if window is None or window.reset_at <= now:
            self._windows[key] = _Window(1, now + self.window_seconds)
            return RateLimitDecision(
                True, self.max_requests - 1, int(self.window_seconds * 1000),
            )

        retry_after_ms = int((window.reset_at - now) * 1000)
        if window.count >= self.max_requests:
            return RateLimitDecision(False, 0, retry_after_ms)

        window.count += 1
        return RateLimitDecision(
            True, self.max_requests - window.count, retry_after_ms,
        )

    def reset(self) -> None:
        self._windows.clear()

    def _purge(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if w.reset_at <= now]
        for key in expired:
            del self._windows[key]
