"""
Routing metrics: outcome counts, venue wins, quote spread, execution slippage.

Computed from order records and the decision log, so they work against any
store (in-memory or SQLite) after the fact.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from swapflow_core.order import Order
from swapflow_core.storage.base import DecisionLogEntry

from reporting.frames import orders_to_frame, quotes_to_frame


@dataclass
class RoutingStats:
    """Summary of how orders were routed and how they ended."""

    total_orders: int
    status_counts: dict[str, int] = field(default_factory=dict)
    confirmation_rate_pct: float = 0.0
    venue_wins: dict[str, int] = field(default_factory=dict)
    mean_spread: float = 0.0
    max_spread: float = 0.0
    mean_slippage_pct: float = 0.0
    failed_attempts: int = 0


def compute_routing_stats(
    orders: Sequence[Order],
    entries: Sequence[DecisionLogEntry],
) -> RoutingStats:
    """
    Compute routing statistics.

    Parameters
    ----------
    orders : sequence of Order
        Order records (e.g. OrderService.list_orders()).
    entries : sequence of DecisionLogEntry
        Decision log (e.g. OrderService.get_decision_log()).

    Returns
    -------
    RoutingStats
        confirmation_rate_pct is confirmed / (confirmed + failed); orders still
        in flight are excluded. mean_slippage_pct compares each confirmed
        order's executed price with the price quoted by its chosen venue on
        the final attempt.
    """
    orders_df = orders_to_frame(orders)
    quotes_df = quotes_to_frame(entries)
    total = len(orders_df)
    if total == 0 and quotes_df.empty:
        return RoutingStats(total_orders=0)

    status_counts = {str(k): int(v) for k, v in orders_df["status"].value_counts().items()}
    confirmed = status_counts.get("confirmed", 0)
    terminal = confirmed + status_counts.get("failed", 0)
    confirmation_rate = confirmed / terminal * 100.0 if terminal else 0.0

    if quotes_df.empty:
        venue_wins: dict[str, int] = {}
        spreads = np.array([], dtype=float)
    else:
        venue_wins = {str(k): int(v) for k, v in quotes_df["chosen"].value_counts().items()}
        spreads = quotes_df["spread"].dropna().to_numpy(dtype=float)

    mean_slippage = 0.0
    if confirmed and not quotes_df.empty:
        quoted = quotes_df.groupby("order_id")["chosen_price"].last().rename("quoted")
        executed = (
            orders_df[orders_df["status"] == "confirmed"].set_index("order_id")["executed_price"].rename("executed")
        )
        joined = pd.concat([executed, quoted], axis=1, join="inner").dropna()
        if not joined.empty:
            slippage = (joined["executed"] - joined["quoted"]) / joined["quoted"] * 100.0
            mean_slippage = float(np.mean(slippage.to_numpy(dtype=float)))

    failed_attempts = sum(1 for e in entries if e.event == "attempt_failed")

    return RoutingStats(
        total_orders=total,
        status_counts=status_counts,
        confirmation_rate_pct=confirmation_rate,
        venue_wins=venue_wins,
        mean_spread=float(np.mean(spreads)) if spreads.size else 0.0,
        max_spread=float(np.max(spreads)) if spreads.size else 0.0,
        mean_slippage_pct=mean_slippage,
        failed_attempts=failed_attempts,
    )
