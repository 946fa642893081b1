"""
Persistence layer: store contracts, in-memory and SQLite implementations,
and the best-effort AuditTrail used by the engine.
"""

from swapflow_core.storage.audit import AuditTrail
from swapflow_core.storage.base import DecisionLog, DecisionLogEntry, OrderStore
from swapflow_core.storage.memory import InMemoryDecisionLog, InMemoryOrderStore
from swapflow_core.storage.sqlite import SqliteDecisionLog, SqliteOrderStore

__all__ = [
    "AuditTrail",
    "DecisionLog",
    "DecisionLogEntry",
    "OrderStore",
    "InMemoryDecisionLog",
    "InMemoryOrderStore",
    "SqliteDecisionLog",
    "SqliteOrderStore",
]
