"""
Event bus: in-process publish/subscribe keyed by order id.

Delivery is synchronous to the subscribers registered at publish time. There
is no buffering across subscribers and no replay; a new subscription only
gets a synthetic "pending" snapshot before live events. Single process only.
"""

from __future__ import annotations

import asyncio
import logging

from swapflow_core.events import StatusEvent
from swapflow_core.order import OrderStatus

logger = logging.getLogger(__name__)

_CLOSED = object()


class Subscription:
    """
    Cancellable handle for one subscriber of one order.

    Async-iterate it to receive StatusEvents. Iteration ends after a terminal
    status or after close(). close() is idempotent.
    """

    def __init__(self, bus: EventBus, order_id: str) -> None:
        self.order_id = order_id
        self._bus = bus
        self._inbox: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False
        self._finished = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _deliver(self, event: StatusEvent) -> None:
        if self._closed:
            return
        self._inbox.put_nowait(event)
        if event.is_terminal:
            # Terminal status ends the stream; detach so the bus drops us.
            self.close()

    def close(self) -> None:
        """Detach from the bus and end iteration. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._bus._detach(self)
        self._inbox.put_nowait(_CLOSED)

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> StatusEvent:
        if self._finished:
            raise StopAsyncIteration
        item = await self._inbox.get()
        if item is _CLOSED:
            self._finished = True
            raise StopAsyncIteration
        return item  # type: ignore[return-value]

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()


class EventBus:
    """Per-order subscriber registry. Created at startup, closed at shutdown."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscription]] = {}

    def subscribe(self, order_id: str) -> Subscription:
        """Register a subscriber; it immediately receives a pending snapshot."""
        sub = Subscription(self, order_id)
        self._subscribers.setdefault(order_id, []).append(sub)
        sub._deliver(StatusEvent(order_id=order_id, status=OrderStatus.PENDING))
        logger.debug("Subscribed to order %s (%d subscriber(s))", order_id, self.subscriber_count(order_id))
        return sub

    def publish(self, event: StatusEvent) -> int:
        """Deliver to every current subscriber of event.order_id. Returns delivery count."""
        subs = list(self._subscribers.get(event.order_id, ()))
        for sub in subs:
            sub._deliver(event)
        return len(subs)

    def subscriber_count(self, order_id: str | None = None) -> int:
        if order_id is None:
            return sum(len(subs) for subs in self._subscribers.values())
        return len(self._subscribers.get(order_id, ()))

    def close(self) -> None:
        """End every open subscription (shutdown)."""
        for subs in list(self._subscribers.values()):
            for sub in list(subs):
                sub.close()
        self._subscribers.clear()

    def _detach(self, sub: Subscription) -> None:
        subs = self._subscribers.get(sub.order_id)
        if not subs:
            return
        try:
            subs.remove(sub)
        except ValueError:
            return
        if not subs:
            del self._subscribers[sub.order_id]
