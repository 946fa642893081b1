"""
OrderService: the caller-facing API and owner of every engine registry.

Builds the event bus, stores, job queue, router, lifecycle and dispatcher
for one process. Nothing is module-global: create one service at startup,
stop it at shutdown (or use it as an async context manager).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from swapflow_core.config import EngineSettings
from swapflow_core.dispatch.dispatcher import Dispatcher
from swapflow_core.dispatch.jobs import JobQueue
from swapflow_core.dispatch.retry import RetryPolicy
from swapflow_core.errors import OrderNotFoundError
from swapflow_core.event_bus import EventBus, Subscription
from swapflow_core.execution.lifecycle import OrderLifecycle
from swapflow_core.execution.router import RoutingEngine
from swapflow_core.execution.simulated import default_venues
from swapflow_core.execution.venue import VenueAdapter
from swapflow_core.gateway import SubmissionGateway, SubmissionReceipt
from swapflow_core.order import Order
from swapflow_core.storage.audit import AuditTrail
from swapflow_core.storage.base import DecisionLog, DecisionLogEntry, OrderStore
from swapflow_core.storage.memory import InMemoryDecisionLog, InMemoryOrderStore
from swapflow_core.storage.sqlite import SqliteDecisionLog, SqliteOrderStore

logger = logging.getLogger(__name__)


class OrderService:
    """
    Submit, subscribe, query. Processing runs in the background once start()
    has been awaited on the running event loop.
    """

    def __init__(
        self,
        settings: EngineSettings | None = None,
        *,
        venues: Sequence[VenueAdapter] | None = None,
        order_store: OrderStore | None = None,
        decision_log: DecisionLog | None = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        s = self.settings
        if order_store is None:
            order_store = SqliteOrderStore(s.database_path) if s.database_path else InMemoryOrderStore()
        if decision_log is None:
            decision_log = SqliteDecisionLog(s.database_path) if s.database_path else InMemoryDecisionLog()
        self.order_store = order_store
        self.decision_log = decision_log
        self.audit = AuditTrail(order_store, decision_log)
        self.bus = EventBus()
        self.queue = JobQueue()
        self.router = RoutingEngine(venues if venues is not None else default_venues(s), self.audit)
        self.lifecycle = OrderLifecycle(self.router, self.bus, self.audit)
        self.dispatcher = Dispatcher(
            self.queue,
            self.lifecycle.run,
            concurrency=s.concurrency,
            rate_limit=s.rate_limit,
            rate_window=s.rate_window,
            retry_policy=RetryPolicy(max_attempts=s.max_attempts, base_delay=s.backoff_base),
            on_retry=self.lifecycle.retry,
            on_exhausted=self.lifecycle.fail,
        )
        self.gateway = SubmissionGateway(self.queue, self.audit, subscription_hint=s.subscription_hint)

    async def start(self) -> None:
        self.dispatcher.start()

    async def stop(self, *, drain: bool = False) -> None:
        """Stop processing (running orders finish), end subscriptions, close stores."""
        await self.dispatcher.stop(drain=drain)
        self.bus.close()
        await self.order_store.close()
        await self.decision_log.close()

    async def __aenter__(self) -> OrderService:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def submit(self, payload: Mapping[str, Any] | None) -> SubmissionReceipt:
        """Validate and enqueue. Raises ValidationError synchronously on bad input."""
        return await self.gateway.submit(payload)

    def subscribe(self, order_id: str) -> Subscription:
        """
        Live status stream for one order; close() it when the client goes away.

        There is no replay: for an order that already reached confirmed or failed
        (or an unknown id) the stream yields the pending snapshot and then waits
        until close() or stop(). Check get_order() first if that matters.
        """
        return self.bus.subscribe(order_id)

    async def get_order(self, order_id: str) -> Order:
        order = await self.order_store.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    async def list_orders(self, limit: int | None = None) -> list[Order]:
        """Newest first, never more than settings.list_limit."""
        cap = self.settings.list_limit
        return await self.order_store.list_recent(min(limit, cap) if limit is not None else cap)

    async def get_decision_log(self, order_id: str | None = None) -> list[DecisionLogEntry]:
        return await self.decision_log.query(order_id)

    async def wait_idle(self) -> None:
        """Block until every submitted order reached a terminal status."""
        await self.dispatcher.join()

    def stats(self) -> dict[str, int]:
        out = self.dispatcher.stats()
        out["subscribers"] = self.bus.subscriber_count()
        return out
