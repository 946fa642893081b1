"""
Order: a swap request and its lifecycle state.

Mutable, but only through transition() / restart(). The allowed sequence is
pending -> routing -> building -> submitted -> confirmed, and any non-terminal
status may move to failed. Terminal orders never change again.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from swapflow_core.errors import InvalidTransitionError


class OrderType(Enum):
    MARKET = "market"
    # Reserved; the gateway rejects these until they are implemented.
    LIMIT = "limit"
    SNIPER = "sniper"


class OrderStatus(Enum):
    """Lifecycle status of an order."""

    PENDING = "pending"
    ROUTING = "routing"
    BUILDING = "building"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.CONFIRMED, OrderStatus.FAILED)


_NEXT: dict[OrderStatus, OrderStatus] = {
    OrderStatus.PENDING: OrderStatus.ROUTING,
    OrderStatus.ROUTING: OrderStatus.BUILDING,
    OrderStatus.BUILDING: OrderStatus.SUBMITTED,
    OrderStatus.SUBMITTED: OrderStatus.CONFIRMED,
}

# Fields that transition() may set alongside the status.
_MUTABLE_FIELDS = ("chosen_venue", "transaction_id", "executed_price", "error_message")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Order:
    """
    A swap order as owned by the engine.

    Attributes
    ----------
    order_id : str
        Opaque unique id minted by the gateway.
    token_in, token_out : str
        Token sold and token bought.
    amount : float
        Amount of token_in (> 0).
    chosen_venue : str or None
        Venue picked at routing.
    transaction_id, executed_price
        Settlement result; set only when confirmed.
    error_message : str or None
        Last processing error.
    attempt : int
        1-based attempt number of the current run.
    """

    order_id: str
    token_in: str
    token_out: str
    amount: float
    order_type: OrderType = OrderType.MARKET
    status: OrderStatus = OrderStatus.PENDING
    chosen_venue: str | None = None
    transaction_id: str | None = None
    executed_price: float | None = None
    error_message: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    attempt: int = 1

    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def can_transition(self, status: OrderStatus) -> bool:
        if self.status.is_terminal:
            return False
        if status is OrderStatus.FAILED:
            return True
        return _NEXT.get(self.status) is status

    def transition(self, status: OrderStatus, **fields: Any) -> None:
        """
        Move to the next status, optionally setting result fields.

        Raises InvalidTransitionError on skips, repeats, reversals or any change
        after a terminal status.
        """
        if not self.can_transition(status):
            raise InvalidTransitionError(
                f"Order {self.order_id}: cannot move from {self.status.value} to {status.value}"
            )
        for name, value in fields.items():
            if name not in _MUTABLE_FIELDS:
                raise TypeError(f"transition() got an unexpected field {name!r}")
            setattr(self, name, value)
        self.status = status
        self.updated_at = _utcnow()

    def restart(self) -> None:
        """Reset a non-terminal order to pending for a fresh attempt (no partial resume)."""
        if self.status.is_terminal:
            raise InvalidTransitionError(
                f"Order {self.order_id}: cannot restart from terminal status {self.status.value}"
            )
        self.status = OrderStatus.PENDING
        self.chosen_venue = None
        self.attempt += 1
        self.updated_at = _utcnow()

    def to_record(self) -> dict[str, Any]:
        """Flat dict for stores; keys follow the orders table columns."""
        return {
            "order_id": self.order_id,
            "token_in": self.token_in,
            "token_out": self.token_out,
            "amount": self.amount,
            "order_type": self.order_type.value,
            "status": self.status.value,
            "chosen_venue": self.chosen_venue,
            "transaction_id": self.transaction_id,
            "executed_price": self.executed_price,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "attempt": self.attempt,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> Order:
        return cls(
            order_id=record["order_id"],
            token_in=record["token_in"],
            token_out=record["token_out"],
            amount=float(record["amount"]),
            order_type=OrderType(record["order_type"]),
            status=OrderStatus(record["status"]),
            chosen_venue=record.get("chosen_venue"),
            transaction_id=record.get("transaction_id"),
            executed_price=(
                float(record["executed_price"]) if record.get("executed_price") is not None else None
            ),
            error_message=record.get("error_message"),
            created_at=datetime.fromisoformat(str(record["created_at"])),
            updated_at=datetime.fromisoformat(str(record["updated_at"])),
            attempt=int(record.get("attempt") or 1),
        )
