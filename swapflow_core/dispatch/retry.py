"""Retry policy: exponential backoff with a hard attempt ceiling."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """
    delay = base_delay * 2 ** (attempt - 1), at most max_attempts runs in total.
    With the defaults: attempt 1 fails -> wait 1 s, attempt 2 fails -> wait 2 s,
    attempt 3 fails -> permanently failed.
    """

    max_attempts: int = 3
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    def should_retry(self, attempt: int) -> bool:
        """True if a job that just failed its `attempt`-th run gets another run."""
        return attempt < self.max_attempts

    def delay_for(self, attempt: int) -> float:
        """Backoff (seconds) before the run that follows failed run number `attempt`."""
        if attempt < 1:
            raise ValueError("attempt is 1-based")
        return self.base_delay * 2 ** (attempt - 1)
