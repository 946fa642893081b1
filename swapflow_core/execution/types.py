"""
Execution-layer types: venue quote, settlement result, routing decision.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Quote:
    """A venue's price and fee for a prospective swap. Not persisted on its own."""

    venue: str
    price: float
    fee_rate: float

    def __post_init__(self) -> None:
        if not self.price > 0:
            raise ValueError(f"Quote from {self.venue}: price must be > 0, got {self.price}")
        if not 0.0 <= self.fee_rate < 1.0:
            raise ValueError(f"Quote from {self.venue}: fee_rate must be in [0, 1), got {self.fee_rate}")


@dataclass(frozen=True)
class SwapResult:
    """Outcome of a successful settlement. Settlement is atomic: no partial fills."""

    transaction_id: str
    executed_price: float
    venue: str


@dataclass(frozen=True)
class RoutingDecision:
    """Chosen quote plus every quote it was compared against, in venue order."""

    chosen: Quote
    quotes: tuple[Quote, ...]
    reason: str

    @property
    def venue(self) -> str:
        return self.chosen.venue

    @property
    def price(self) -> float:
        return self.chosen.price

    def to_log_payload(self) -> dict[str, Any]:
        return {
            "quotes": {q.venue: {"price": q.price, "fee": q.fee_rate} for q in self.quotes},
            "chosen": self.chosen.venue,
            "reason": self.reason,
        }
