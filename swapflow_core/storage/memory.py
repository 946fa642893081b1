"""In-memory stores. Default for tests and single-process demos; nothing survives a restart."""

from __future__ import annotations

from datetime import datetime

from swapflow_core.order import Order
from swapflow_core.storage.base import DecisionLog, DecisionLogEntry, OrderStore


class InMemoryOrderStore(OrderStore):
    """Keeps order snapshots in a dict keyed by order id."""

    def __init__(self) -> None:
        self._records: dict[str, dict] = {}

    async def upsert(self, order: Order) -> None:
        self._records[order.order_id] = order.to_record()

    async def get(self, order_id: str) -> Order | None:
        record = self._records.get(order_id)
        return Order.from_record(record) if record is not None else None

    async def list_recent(self, limit: int = 100) -> list[Order]:
        # Dict order is first-insert order; later inserts win created_at ties.
        ranked = sorted(
            enumerate(self._records.values()),
            key=lambda item: (datetime.fromisoformat(item[1]["created_at"]), item[0]),
            reverse=True,
        )
        return [Order.from_record(r) for _, r in ranked[: max(limit, 0)]]

    def __len__(self) -> int:
        return len(self._records)


class InMemoryDecisionLog(DecisionLog):
    def __init__(self) -> None:
        self._entries: list[DecisionLogEntry] = []

    async def append(self, entry: DecisionLogEntry) -> None:
        self._entries.append(entry)

    async def query(self, order_id: str | None = None) -> list[DecisionLogEntry]:
        if order_id is None:
            return list(self._entries)
        return [e for e in self._entries if e.order_id == order_id]

    async def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
