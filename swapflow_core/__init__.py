"""
swapflow-core: asynchronous swap-order processing engine.

Gateway -> job queue -> dispatcher -> routing engine -> simulated settlement,
with per-order status streaming and an audit trail. No HTTP layer here.
"""

__version__ = "0.1.0"

from swapflow_core.config import EngineSettings
from swapflow_core.errors import (
    ExecutionError,
    OrderNotFoundError,
    PersistenceError,
    RoutingError,
    SwapflowError,
    ValidationError,
)
from swapflow_core.event_bus import EventBus, Subscription
from swapflow_core.events import StatusEvent
from swapflow_core.gateway import SubmissionReceipt
from swapflow_core.order import Order, OrderStatus, OrderType
from swapflow_core.service import OrderService

__all__ = [
    "EngineSettings",
    "ExecutionError",
    "OrderNotFoundError",
    "PersistenceError",
    "RoutingError",
    "SwapflowError",
    "ValidationError",
    "EventBus",
    "Subscription",
    "StatusEvent",
    "SubmissionReceipt",
    "Order",
    "OrderStatus",
    "OrderType",
    "OrderService",
]
