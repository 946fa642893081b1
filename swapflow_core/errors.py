"""
Error taxonomy for the order-processing core.

Submission errors are raised synchronously to the caller. Processing errors
(routing, execution) are only ever seen asynchronously: through the failed
status event and the persisted order's error message.
"""


class SwapflowError(Exception):
    """Base class for all errors raised by swapflow_core."""


class ValidationError(SwapflowError, ValueError):
    """Malformed submission. Rejected before any order or job exists; never retried."""


class RoutingError(SwapflowError):
    """Quote fetch failed. Retried exactly like ExecutionError."""


class ExecutionError(SwapflowError):
    """Settlement failed (e.g. transient network failure). Retried up to the attempt ceiling."""


class PersistenceError(SwapflowError):
    """Store write/read failure. Logged; never blocks or rolls back the lifecycle."""


class InvalidTransitionError(SwapflowError):
    """An order status change outside the allowed sequence was attempted."""


class OrderNotFoundError(SwapflowError, KeyError):
    """No order record exists for the requested id."""


class ConfigError(SwapflowError):
    """Configuration value missing or malformed."""
