"""
Tests for reporting: audit-trail frames and routing metrics.
"""

import pandas as pd
import pytest

from reporting import compute_routing_stats, decision_log_to_frame, orders_to_frame, print_report, quotes_to_frame
from swapflow_core import Order, OrderStatus
from swapflow_core.storage import DecisionLogEntry


def _confirmed(order_id: str, venue: str, price: float) -> Order:
    o = Order(order_id=order_id, token_in="USDC", token_out="SOL", amount=10.0)
    o.transition(OrderStatus.ROUTING)
    o.transition(OrderStatus.BUILDING, chosen_venue=venue)
    o.transition(OrderStatus.SUBMITTED)
    o.transition(OrderStatus.CONFIRMED, transaction_id=f"tx-{order_id}", executed_price=price)
    return o


def _failed(order_id: str) -> Order:
    o = Order(order_id=order_id, token_in="USDC", token_out="SOL", amount=10.0)
    o.transition(OrderStatus.FAILED, error_message="Simulated network execution failure")
    return o


def _selected(order_id: str, raydium: float, meteora: float) -> DecisionLogEntry:
    chosen = "meteora" if meteora > raydium else "raydium"
    return DecisionLogEntry(
        order_id,
        "venue_selected",
        {
            "quotes": {"raydium": {"price": raydium, "fee": 0.003}, "meteora": {"price": meteora, "fee": 0.002}},
            "chosen": chosen,
            "reason": f"Better price: {max(raydium, meteora):.4f}",
        },
    )


def _sample():
    orders = [_confirmed("a", "meteora", 102.0), _confirmed("b", "raydium", 99.0), _failed("c")]
    entries = [
        DecisionLogEntry("a", "routing_started", {"amount": 10.0}),
        _selected("a", 99.0, 100.0),
        _selected("b", 100.0, 98.0),
        _selected("c", 100.0, 99.5),
        DecisionLogEntry("c", "attempt_failed", {"error": "x", "attempt": 1}),
        DecisionLogEntry("c", "attempt_failed", {"error": "x", "attempt": 2}),
        DecisionLogEntry("c", "order_failed", {"error": "x", "attempts": 3}),
    ]
    return orders, entries


# --- frames ---


def test_orders_to_frame_types():
    orders, _ = _sample()
    df = orders_to_frame(orders)
    assert list(df["order_id"]) == ["a", "b", "c"]
    assert pd.api.types.is_datetime64_any_dtype(df["created_at"])
    assert df["executed_price"].iloc[0] == 102.0
    assert pd.isna(df["executed_price"].iloc[2])


def test_empty_inputs_give_empty_frames_with_columns():
    assert orders_to_frame([]).empty
    assert "status" in orders_to_frame([]).columns
    assert list(decision_log_to_frame([]).columns) == ["timestamp", "order_id", "event", "payload"]
    assert "spread" in quotes_to_frame([]).columns


def test_quotes_to_frame_one_row_per_decision():
    _, entries = _sample()
    df = quotes_to_frame(entries)
    assert list(df["order_id"]) == ["a", "b", "c"]
    assert list(df["chosen"]) == ["meteora", "raydium", "raydium"]
    assert list(df["chosen_price"]) == [100.0, 100.0, 100.0]
    assert list(df["spread"]) == pytest.approx([1.0, 2.0, 0.5])
    assert {"raydium_price", "meteora_price"} <= set(df.columns)


def test_decision_log_to_frame_keeps_order():
    _, entries = _sample()
    df = decision_log_to_frame(entries)
    assert len(df) == len(entries)
    assert df["event"].iloc[0] == "routing_started"
    assert df["event"].iloc[-1] == "order_failed"


# --- metrics ---


def test_compute_routing_stats():
    orders, entries = _sample()
    stats = compute_routing_stats(orders, entries)
    assert stats.total_orders == 3
    assert stats.status_counts == {"confirmed": 2, "failed": 1}
    assert stats.confirmation_rate_pct == pytest.approx(200.0 / 3)
    assert stats.venue_wins == {"meteora": 1, "raydium": 2}
    assert stats.mean_spread == pytest.approx(3.5 / 3)
    assert stats.max_spread == pytest.approx(2.0)
    # a: 102 vs 100 (+2%), b: 99 vs 100 (-1%)
    assert stats.mean_slippage_pct == pytest.approx(0.5)
    assert stats.failed_attempts == 2


def test_compute_routing_stats_empty():
    stats = compute_routing_stats([], [])
    assert stats.total_orders == 0
    assert stats.venue_wins == {}
    assert stats.confirmation_rate_pct == 0.0


def test_print_report_returns_stats(capsys):
    orders, entries = _sample()
    stats = print_report(orders, entries)
    out = capsys.readouterr().out
    assert "Routing Summary" in out
    assert "Confirmation rate: 66.67%" in out
    assert stats.total_orders == 3
