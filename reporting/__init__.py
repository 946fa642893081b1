"""
Audit-trail analytics on top of swapflow-core.

Turns order records and decision-log entries into DataFrames and routing
metrics (venue wins, quote spread, slippage, confirmation rate).
"""

from reporting.frames import decision_log_to_frame, orders_to_frame, quotes_to_frame
from reporting.metrics import RoutingStats, compute_routing_stats
from reporting.routing_report import print_report

__all__ = [
    "decision_log_to_frame",
    "orders_to_frame",
    "quotes_to_frame",
    "RoutingStats",
    "compute_routing_stats",
    "print_report",
]
