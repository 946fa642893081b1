"""
Persistence contracts the core needs from its stores.

OrderStore: keyed upsert by order id (last write wins), lookup, newest-first
listing. DecisionLog: append-only audit entries, filterable by order id.
Implementations must wrap backend failures in PersistenceError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from swapflow_core.order import Order


@dataclass(frozen=True)
class DecisionLogEntry:
    """One audit record: what happened to an order and the data behind it."""

    order_id: str
    event: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "orderId": self.order_id,
            "event": self.event,
            "data": self.payload,
        }


class OrderStore(ABC):
    """Durable order records. Safe for concurrent writes to different ids."""

    @abstractmethod
    async def upsert(self, order: Order) -> None:
        """Insert or replace the record for order.order_id with a snapshot of order."""
        ...

    @abstractmethod
    async def get(self, order_id: str) -> Order | None:
        """Return a copy of the stored order, or None."""
        ...

    @abstractmethod
    async def list_recent(self, limit: int = 100) -> list[Order]:
        """Return up to limit orders, newest created_at first."""
        ...

    async def close(self) -> None:
        """Release backend resources. No-op by default."""


class DecisionLog(ABC):
    """Append-only decision log, ordered by insertion."""

    @abstractmethod
    async def append(self, entry: DecisionLogEntry) -> None:
        ...

    @abstractmethod
    async def query(self, order_id: str | None = None) -> list[DecisionLogEntry]:
        """All entries (or only those for order_id) in insertion order."""
        ...

    @abstractmethod
    async def clear(self) -> None:
        ...

    async def close(self) -> None:
        """Release backend resources. No-op by default."""
