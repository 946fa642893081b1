"""
Order lifecycle: drives one order through routing, building, submission and
settlement.

Every transition first publishes a StatusEvent, then persists the order
(best effort). Errors are not caught here: the dispatcher owns the retry
decision. A retried attempt restarts from pending; after the last attempt
fail() moves the order to failed exactly once.
"""

from __future__ import annotations

import logging
from typing import Any

from swapflow_core.dispatch.jobs import Job
from swapflow_core.event_bus import EventBus
from swapflow_core.events import StatusEvent
from swapflow_core.execution.router import RoutingEngine
from swapflow_core.order import Order, OrderStatus
from swapflow_core.storage.audit import AuditTrail

logger = logging.getLogger(__name__)


class OrderLifecycle:
    """Job handler plus the dispatcher's retry/exhausted hooks."""

    def __init__(self, router: RoutingEngine, bus: EventBus, audit: AuditTrail) -> None:
        self.router = router
        self.bus = bus
        self.audit = audit

    async def _advance(self, order: Order, status: OrderStatus, metadata: dict[str, Any] | None = None, **fields: Any) -> None:
        order.transition(status, **fields)
        self.bus.publish(StatusEvent(order_id=order.order_id, status=status, metadata=metadata or {}))
        await self.audit.save_order(order)

    async def run(self, job: Job) -> None:
        order = job.order
        if order.is_terminal():
            logger.warning("Order %s already %s; skipping", order.order_id, order.status.value)
            return
        if job.attempt > 1:
            order.restart()
            self.bus.publish(StatusEvent(order_id=order.order_id, status=OrderStatus.PENDING, metadata={"attempt": job.attempt}))
            await self.audit.save_order(order)

        await self._advance(order, OrderStatus.ROUTING)
        await self.audit.record(
            order.order_id,
            "routing_started",
            {"tokenIn": order.token_in, "tokenOut": order.token_out, "amount": order.amount, "attempt": job.attempt},
        )
        decision = await self.router.route(order)

        await self._advance(
            order,
            OrderStatus.BUILDING,
            {"venue": decision.venue, "price": decision.price},
            chosen_venue=decision.venue,
        )
        await self.audit.record(order.order_id, "transaction_built", {"venue": decision.venue})

        await self._advance(order, OrderStatus.SUBMITTED, {"venue": decision.venue})
        await self.audit.record(order.order_id, "transaction_submitted", {"venue": decision.venue})

        result = await self.router.venue(decision.venue).execute_swap(order)

        await self._advance(
            order,
            OrderStatus.CONFIRMED,
            {
                "transaction_id": result.transaction_id,
                "executed_price": result.executed_price,
                "venue": result.venue,
            },
            transaction_id=result.transaction_id,
            executed_price=result.executed_price,
        )
        await self.audit.record(
            order.order_id,
            "transaction_confirmed",
            {"transactionId": result.transaction_id, "executedPrice": result.executed_price, "venue": result.venue},
        )
        logger.info(
            "Order %s confirmed on %s at %.4f (attempt %d)",
            order.order_id,
            result.venue,
            result.executed_price,
            job.attempt,
        )

    async def retry(self, job: Job, exc: Exception, delay: float) -> None:
        """Record a failed, non-final attempt."""
        await self.audit.record(
            job.order.order_id,
            "attempt_failed",
            {"error": job.last_error, "attempt": job.attempt, "stage": job.order.status.value, "retryIn": delay},
        )

    async def fail(self, job: Job, exc: Exception) -> None:
        """Terminal failure after the last attempt: failed event, persisted error."""
        order = job.order
        message = job.last_error or str(exc) or type(exc).__name__
        if order.is_terminal():
            logger.warning("Order %s already %s; not failing it again", order.order_id, order.status.value)
            return
        await self._advance(order, OrderStatus.FAILED, {"error": message}, error_message=message)
        await self.audit.record(order.order_id, "order_failed", {"error": message, "attempts": job.attempt})
        logger.warning("Order %s failed after %d attempt(s): %s", order.order_id, job.attempt, message)
