"""
Admission primitives: concurrency gate, sliding-window rate limiter, delay queue.

Each is independent and non-blocking; the dispatcher combines them. Clocks
are injectable (monotonic seconds) so behaviour is testable without sleeping.
"""

from __future__ import annotations

import heapq
import itertools
import time
from collections import deque
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

Clock = Callable[[], float]


class ConcurrencyGate:
    """Counting gate: at most `limit` holders at once."""

    def __init__(self, limit: int) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.limit = limit
        self._in_flight = 0
        self._peak = 0

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def peak(self) -> int:
        """Highest in_flight value seen so far."""
        return self._peak

    @property
    def available(self) -> int:
        return self.limit - self._in_flight

    def try_acquire(self) -> bool:
        if self._in_flight >= self.limit:
            return False
        self._in_flight += 1
        self._peak = max(self._peak, self._in_flight)
        return True

    def release(self) -> None:
        if self._in_flight <= 0:
            raise RuntimeError("ConcurrencyGate released more times than acquired")
        self._in_flight -= 1


class SlidingWindowRateLimiter:
    """
    At most `max_events` acquisitions in any trailing `window` seconds.
    Slots expire with time only; there is no release.
    """

    def __init__(self, max_events: int, window: float, *, clock: Clock = time.monotonic) -> None:
        if max_events < 1:
            raise ValueError("max_events must be >= 1")
        if window <= 0:
            raise ValueError("window must be > 0")
        self.max_events = max_events
        self.window = window
        self._clock = clock
        self._starts: deque[float] = deque()

    def _prune(self, now: float) -> None:
        horizon = now - self.window
        while self._starts and self._starts[0] <= horizon:
            self._starts.popleft()

    @property
    def in_window(self) -> int:
        self._prune(self._clock())
        return len(self._starts)

    def try_acquire(self) -> bool:
        now = self._clock()
        self._prune(now)
        if len(self._starts) >= self.max_events:
            return False
        self._starts.append(now)
        return True

    def retry_after(self) -> float:
        """Seconds until the next slot frees (0 if one is free now)."""
        now = self._clock()
        self._prune(now)
        if len(self._starts) < self.max_events:
            return 0.0
        return max(self._starts[0] + self.window - now, 0.0)


class DelayQueue(Generic[T]):
    """Items that become due after a delay. Ties keep insertion order."""

    def __init__(self, *, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._heap: list[tuple[float, int, T]] = []
        self._seq = itertools.count()

    def push(self, item: T, delay: float) -> None:
        heapq.heappush(self._heap, (self._clock() + max(delay, 0.0), next(self._seq), item))

    def pop_due(self) -> list[T]:
        now = self._clock()
        due: list[T] = []
        while self._heap and self._heap[0][0] <= now:
            due.append(heapq.heappop(self._heap)[2])
        return due

    def next_due_in(self) -> float | None:
        """Seconds until the earliest item is due; None when empty."""
        if not self._heap:
            return None
        return max(self._heap[0][0] - self._clock(), 0.0)

    def __len__(self) -> int:
        return len(self._heap)
