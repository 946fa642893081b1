"""
Status events published on the event bus.

Events are immutable data carriers tagged with an order id. to_message()
gives the wire shape a transport layer forwards to subscribers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from swapflow_core.order import OrderStatus

# Python-side metadata keys -> wire keys.
_WIRE_KEYS = {
    "transaction_id": "transactionId",
    "executed_price": "executedPrice",
}


@dataclass(frozen=True)
class StatusEvent:
    """One lifecycle update for one order."""

    order_id: str
    status: OrderStatus
    metadata: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_message(self) -> dict[str, Any]:
        """Wire form: {status, orderId, metadata?}."""
        message: dict[str, Any] = {"status": self.status.value, "orderId": self.order_id}
        if self.metadata:
            message["metadata"] = {_WIRE_KEYS.get(k, k): v for k, v in self.metadata.items()}
        return message
