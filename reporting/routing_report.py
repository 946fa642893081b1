"""
Routing report: print a summary of routing outcomes.
"""

from __future__ import annotations

from collections.abc import Sequence

from swapflow_core.order import Order
from swapflow_core.storage.base import DecisionLogEntry

from reporting.metrics import RoutingStats, compute_routing_stats


def print_report(orders: Sequence[Order], entries: Sequence[DecisionLogEntry]) -> RoutingStats:
    """
    Compute routing stats and print a summary.

    Returns
    -------
    RoutingStats
        The computed stats (e.g. for programmatic use).
    """
    stats = compute_routing_stats(orders, entries)
    print("--- Routing Summary ---")
    print(f"Orders:            {stats.total_orders}")
    for status, count in sorted(stats.status_counts.items()):
        print(f"  {status:<16} {count}")
    print(f"Confirmation rate: {stats.confirmation_rate_pct:.2f}%")
    for venue, wins in sorted(stats.venue_wins.items()):
        print(f"Routed to {venue:<8} {wins}")
    print(f"Mean quote spread: {stats.mean_spread:.4f} (max {stats.max_spread:.4f})")
    print(f"Mean slippage:     {stats.mean_slippage_pct:.3f}%")
    print(f"Failed attempts:   {stats.failed_attempts}")
    print("-----------------------")
    return stats
