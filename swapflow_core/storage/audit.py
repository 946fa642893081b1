"""
AuditTrail: best-effort writes to the order store and decision log.

Persistence is not allowed to block or roll back the lifecycle, so every
PersistenceError is logged here and swallowed. Reads are passed through.
"""

from __future__ import annotations

import logging
from typing import Any

from swapflow_core.errors import PersistenceError
from swapflow_core.order import Order
from swapflow_core.storage.base import DecisionLog, DecisionLogEntry, OrderStore

logger = logging.getLogger(__name__)
routing_logger = logging.getLogger("swapflow_core.routing")


class AuditTrail:
    """Write facade shared by the gateway, the router and the lifecycle."""

    def __init__(self, orders: OrderStore, decisions: DecisionLog) -> None:
        self.orders = orders
        self.decisions = decisions

    async def save_order(self, order: Order) -> bool:
        """Upsert a snapshot of order. Returns False if the write failed."""
        try:
            await self.orders.upsert(order)
        except PersistenceError as e:
            logger.warning("Order %s: failed to persist status %s: %s", order.order_id, order.status.value, e)
            return False
        return True

    async def record(self, order_id: str, event: str, payload: dict[str, Any] | None = None) -> bool:
        """Append a decision-log entry and echo it to the routing logger."""
        entry = DecisionLogEntry(order_id=order_id, event=event, payload=dict(payload or {}))
        routing_logger.info("[ROUTING] %s | Order: %s | %s %s", entry.timestamp.isoformat(), order_id, event, entry.payload or "")
        try:
            await self.decisions.append(entry)
        except PersistenceError as e:
            logger.warning("Order %s: failed to append decision log entry %r: %s", order_id, event, e)
            return False
        return True
