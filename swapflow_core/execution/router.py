"""
Routing engine: quote every venue concurrently and pick the best price.

All quotes are awaited together; there is no partial result and no timeout,
so one stalled venue stalls the order. Selection is pure price comparison:
strictly higher price wins, exact ties go to the first-listed venue. Fees are
logged, never applied.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from swapflow_core.errors import RoutingError
from swapflow_core.execution.types import Quote, RoutingDecision
from swapflow_core.execution.venue import VenueAdapter
from swapflow_core.order import Order
from swapflow_core.storage.audit import AuditTrail

logger = logging.getLogger(__name__)


def select_best(quotes: Sequence[Quote]) -> Quote:
    """Highest price; first in sequence on exact ties."""
    if not quotes:
        raise RoutingError("No quotes to choose from")
    best = quotes[0]
    for quote in quotes[1:]:
        if quote.price > best.price:
            best = quote
    return best


class RoutingEngine:
    """Compares venue quotes for an order and records the decision."""

    def __init__(self, venues: Sequence[VenueAdapter], audit: AuditTrail | None = None) -> None:
        if not venues:
            raise ValueError("RoutingEngine needs at least one venue")
        names = [v.name for v in venues]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate venue names: {names}")
        self.venues: list[VenueAdapter] = list(venues)
        self.audit = audit

    def venue(self, name: str) -> VenueAdapter:
        for v in self.venues:
            if v.name == name:
                return v
        raise KeyError(name)

    async def fetch_quotes(self, order: Order) -> list[Quote]:
        try:
            quotes = await asyncio.gather(
                *(v.get_quote(order.token_in, order.token_out, order.amount) for v in self.venues)
            )
        except RoutingError:
            raise
        except Exception as e:
            raise RoutingError(f"Quote fetch failed: {e}") from e
        return list(quotes)

    async def route(self, order: Order) -> RoutingDecision:
        quotes = await self.fetch_quotes(order)
        chosen = select_best(quotes)
        decision = RoutingDecision(
            chosen=chosen,
            quotes=tuple(quotes),
            reason=f"Better price: {chosen.price:.4f}",
        )
        logger.debug(
            "Order %s routed to %s (%s)",
            order.order_id,
            chosen.venue,
            ", ".join(f"{q.venue}={q.price:.4f}" for q in quotes),
        )
        if self.audit is not None:
            await self.audit.record(order.order_id, "venue_selected", decision.to_log_payload())
        return decision
