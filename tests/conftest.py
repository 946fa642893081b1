"""
Shared fixtures: zero-latency settings and a controllable clock.
"""

import pytest

from swapflow_core import EngineSettings


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fast_settings() -> EngineSettings:
    """No simulated latency, no random failures, millisecond backoff."""
    return EngineSettings(
        quote_latency_min=0.0,
        quote_latency_max=0.0,
        settlement_latency_min=0.0,
        settlement_latency_max=0.0,
        failure_rate=0.0,
        backoff_base=0.01,
    )
