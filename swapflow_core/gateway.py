"""
Submission gateway: validate input, mint an order, enqueue it, return at once.

Validation failures raise ValidationError before any id is minted or job
enqueued. Success returns a receipt without waiting for processing.
"""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from swapflow_core.dispatch.jobs import Job, JobQueue
from swapflow_core.errors import ValidationError
from swapflow_core.order import Order, OrderType
from swapflow_core.storage.audit import AuditTrail

logger = logging.getLogger(__name__)

SUPPORTED_ORDER_TYPES = (OrderType.MARKET,)


@dataclass(frozen=True)
class SubmissionReceipt:
    order_id: str
    subscription_hint: str

    def to_message(self) -> dict[str, str]:
        return {"orderId": self.order_id, "subscriptionHint": self.subscription_hint}


def _field(payload: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        if name in payload and payload[name] is not None:
            return payload[name]
    return None


def _parse_token(value: Any, label: str) -> str:
    if value is None:
        raise ValidationError(f"{label} is required")
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} must be a non-empty string")
    return value.strip()


def _parse_amount(value: Any) -> float:
    if value is None:
        raise ValidationError("amount is required")
    if isinstance(value, bool):
        raise ValidationError("amount must be numeric")
    if not isinstance(value, (int, float, Decimal, str)):
        raise ValidationError("amount must be numeric")
    try:
        amount = float(Decimal(value.strip())) if isinstance(value, str) else float(value)
    except (InvalidOperation, ValueError, OverflowError) as e:
        raise ValidationError(f"amount must be numeric, got {value!r}") from e
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("amount must be a finite number > 0")
    return amount


def _parse_order_type(value: Any) -> OrderType:
    if value is None:
        return OrderType.MARKET
    try:
        order_type = value if isinstance(value, OrderType) else OrderType(str(value).lower())
    except ValueError as e:
        raise ValidationError(f"unknown order type {value!r}") from e
    if order_type not in SUPPORTED_ORDER_TYPES:
        raise ValidationError(f"order type {order_type.value!r} is not supported yet")
    return order_type


def validate_submission(payload: Mapping[str, Any] | None) -> tuple[str, str, float, OrderType]:
    """Return (token_in, token_out, amount, order_type) or raise ValidationError."""
    if not isinstance(payload, Mapping):
        raise ValidationError("tokenIn, tokenOut and amount required")
    token_in = _parse_token(_field(payload, "tokenIn", "token_in"), "tokenIn")
    token_out = _parse_token(_field(payload, "tokenOut", "token_out"), "tokenOut")
    amount = _parse_amount(_field(payload, "amount"))
    order_type = _parse_order_type(_field(payload, "orderType", "order_type", "type"))
    return token_in, token_out, amount, order_type


def new_order_id() -> str:
    """Random UUID-4 string; uuid4 draws from os.urandom."""
    return str(uuid.uuid4())


class SubmissionGateway:
    """Entry point for new orders. Fire-and-forget: never waits for processing."""

    def __init__(
        self,
        queue: JobQueue,
        audit: AuditTrail,
        *,
        subscription_hint: str = "/api/orders/execute (websocket)",
    ) -> None:
        self.queue = queue
        self.audit = audit
        self.subscription_hint = subscription_hint

    async def submit(self, payload: Mapping[str, Any] | None) -> SubmissionReceipt:
        token_in, token_out, amount, order_type = validate_submission(payload)
        order = Order(
            order_id=new_order_id(),
            token_in=token_in,
            token_out=token_out,
            amount=amount,
            order_type=order_type,
        )
        await self.audit.save_order(order)
        if not self.queue.enqueue(Job.for_order(order)):
            # A uuid4 collision; practically unreachable.
            raise RuntimeError(f"Order id {order.order_id} already queued")
        logger.info("Order %s accepted: %s %s -> %s", order.order_id, amount, token_in, token_out)
        return SubmissionReceipt(order_id=order.order_id, subscription_hint=self.subscription_hint)
