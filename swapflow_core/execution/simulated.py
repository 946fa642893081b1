"""
Simulated venues: random quotes and settlement with latency and rare failures.

Each venue samples price = base_price * uniform(low, high) from its own
asymmetric band, so the two venues naturally disagree. Settlement is slower
than quoting and fails with a small fixed probability.
"""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass

from swapflow_core.config import EngineSettings
from swapflow_core.errors import ExecutionError
from swapflow_core.execution.types import Quote, SwapResult
from swapflow_core.execution.venue import VenueAdapter
from swapflow_core.order import Order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VenueProfile:
    """Price band (multipliers of base price) and fee of one simulated venue."""

    name: str
    price_low: float
    price_high: float
    fee_rate: float

    def __post_init__(self) -> None:
        if not 0 < self.price_low <= self.price_high:
            raise ValueError(f"{self.name}: need 0 < price_low <= price_high")


RAYDIUM = VenueProfile(name="raydium", price_low=0.98, price_high=1.02, fee_rate=0.003)
METEORA = VenueProfile(name="meteora", price_low=0.97, price_high=1.02, fee_rate=0.002)


class SimulatedVenue(VenueAdapter):
    """
    In-process venue. No network; latency is asyncio.sleep.
    Pass rng=random.Random(seed) for reproducible prices and failures.
    """

    def __init__(
        self,
        profile: VenueProfile,
        *,
        base_price: float = 100.0,
        quote_latency: tuple[float, float] = (0.2, 0.4),
        settlement_latency: tuple[float, float] = (2.0, 3.0),
        failure_rate: float = 0.02,
        rng: random.Random | None = None,
    ) -> None:
        if base_price <= 0:
            raise ValueError("base_price must be > 0")
        if not 0.0 <= failure_rate <= 1.0:
            raise ValueError("failure_rate must be within [0, 1]")
        self.profile = profile
        self.base_price = base_price
        self.quote_latency = quote_latency
        self.settlement_latency = settlement_latency
        self.failure_rate = failure_rate
        self._rng = rng or random.Random()
        self.swaps_executed = 0

    @property
    def name(self) -> str:
        return self.profile.name

    def sample_price(self) -> float:
        return self.base_price * self._rng.uniform(self.profile.price_low, self.profile.price_high)

    async def _sleep(self, bounds: tuple[float, float]) -> None:
        low, high = bounds
        delay = self._rng.uniform(low, high) if high > 0 else 0.0
        await asyncio.sleep(delay)

    async def get_quote(self, token_in: str, token_out: str, amount: float) -> Quote:
        await self._sleep(self.quote_latency)
        return Quote(venue=self.name, price=self.sample_price(), fee_rate=self.profile.fee_rate)

    async def execute_swap(self, order: Order) -> SwapResult:
        await self._sleep(self.settlement_latency)
        if self._rng.random() < self.failure_rate:
            logger.info("%s: simulated settlement failure for order %s", self.name, order.order_id)
            raise ExecutionError("Simulated network execution failure")
        self.swaps_executed += 1
        return SwapResult(
            transaction_id=f"SIM_TX_{self.name}_{uuid.uuid4().hex}",
            executed_price=self.sample_price(),
            venue=self.name,
        )


def default_venues(settings: EngineSettings | None = None, *, seed: int | None = None) -> list[SimulatedVenue]:
    """Raydium then Meteora (ties go to Raydium), configured from settings."""
    settings = settings or EngineSettings()
    rng = random.Random(seed) if seed is not None else None
    return [
        SimulatedVenue(
            profile,
            base_price=settings.base_price,
            quote_latency=settings.quote_latency,
            settlement_latency=settings.settlement_latency,
            failure_rate=settings.failure_rate,
            rng=rng,
        )
        for profile in (RAYDIUM, METEORA)
    ]
