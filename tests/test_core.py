"""
Tests for swapflow_core: Order lifecycle rules, StatusEvent, settings.
"""

import json
import logging
from datetime import datetime

import pytest

from swapflow_core import EngineSettings, Order, OrderStatus, OrderType, StatusEvent
from swapflow_core.errors import ConfigError, InvalidTransitionError, OrderNotFoundError, ValidationError
from swapflow_core.log import JsonFormatter


def _order(**kw) -> Order:
    return Order(order_id=kw.pop("order_id", "o-1"), token_in="USDC", token_out="SOL", amount=100.0, **kw)


def _walk_to(order: Order, status: OrderStatus) -> None:
    path = [OrderStatus.ROUTING, OrderStatus.BUILDING, OrderStatus.SUBMITTED, OrderStatus.CONFIRMED]
    for step in path:
        if order.status == status:
            return
        order.transition(step)


# --- Order ---


def test_order_defaults():
    o = _order()
    assert o.status == OrderStatus.PENDING
    assert o.order_type == OrderType.MARKET
    assert o.attempt == 1
    assert o.chosen_venue is None
    assert o.transaction_id is None
    assert not o.is_terminal()


def test_order_full_sequence_to_confirmed():
    o = _order()
    o.transition(OrderStatus.ROUTING)
    o.transition(OrderStatus.BUILDING, chosen_venue="raydium")
    o.transition(OrderStatus.SUBMITTED)
    o.transition(OrderStatus.CONFIRMED, transaction_id="tx-1", executed_price=99.5)
    assert o.status == OrderStatus.CONFIRMED
    assert o.chosen_venue == "raydium"
    assert o.transaction_id == "tx-1"
    assert o.executed_price == 99.5
    assert o.is_terminal()


@pytest.mark.parametrize(
    "start, target",
    [
        (OrderStatus.PENDING, OrderStatus.BUILDING),
        (OrderStatus.PENDING, OrderStatus.CONFIRMED),
        (OrderStatus.ROUTING, OrderStatus.SUBMITTED),
        (OrderStatus.ROUTING, OrderStatus.ROUTING),
        (OrderStatus.BUILDING, OrderStatus.ROUTING),
        (OrderStatus.SUBMITTED, OrderStatus.PENDING),
    ],
)
def test_order_rejects_skips_repeats_and_reversals(start, target):
    o = _order()
    _walk_to(o, start)
    with pytest.raises(InvalidTransitionError):
        o.transition(target)
    assert o.status == start


@pytest.mark.parametrize(
    "stage", [OrderStatus.PENDING, OrderStatus.ROUTING, OrderStatus.BUILDING, OrderStatus.SUBMITTED]
)
def test_order_can_fail_from_any_non_terminal_stage(stage):
    o = _order()
    _walk_to(o, stage)
    o.transition(OrderStatus.FAILED, error_message="boom")
    assert o.status == OrderStatus.FAILED
    assert o.error_message == "boom"


def test_terminal_order_never_changes():
    o = _order()
    _walk_to(o, OrderStatus.CONFIRMED)
    for status in OrderStatus:
        with pytest.raises(InvalidTransitionError):
            o.transition(status)
    with pytest.raises(InvalidTransitionError):
        o.restart()
    assert o.status == OrderStatus.CONFIRMED


def test_transition_rejects_unknown_fields():
    o = _order()
    with pytest.raises(TypeError):
        o.transition(OrderStatus.ROUTING, amount=5)
    assert o.status == OrderStatus.PENDING


def test_restart_resets_to_pending_and_bumps_attempt():
    o = _order()
    o.transition(OrderStatus.ROUTING)
    o.transition(OrderStatus.BUILDING, chosen_venue="meteora")
    o.restart()
    assert o.status == OrderStatus.PENDING
    assert o.chosen_venue is None
    assert o.attempt == 2
    o.transition(OrderStatus.ROUTING)


def test_transition_updates_timestamp():
    o = _order()
    before = o.updated_at
    o.transition(OrderStatus.ROUTING)
    assert o.updated_at >= before


def test_order_record_round_trip_keeps_status_and_results():
    o = _order(order_id="abc")
    _walk_to(o, OrderStatus.SUBMITTED)
    o.transition(OrderStatus.CONFIRMED, transaction_id="tx", executed_price=101.25)
    record = o.to_record()
    assert record["status"] == "confirmed"
    assert record["order_type"] == "market"
    assert isinstance(record["created_at"], str)
    back = Order.from_record(record)
    assert back == o


# --- StatusEvent ---


def test_status_event_message_without_metadata():
    ev = StatusEvent(order_id="o-1", status=OrderStatus.ROUTING)
    assert ev.to_message() == {"status": "routing", "orderId": "o-1"}
    assert not ev.is_terminal


def test_status_event_message_uses_wire_keys():
    ev = StatusEvent(
        order_id="o-1",
        status=OrderStatus.CONFIRMED,
        metadata={"transaction_id": "tx", "executed_price": 99.0, "venue": "raydium"},
    )
    assert ev.to_message() == {
        "status": "confirmed",
        "orderId": "o-1",
        "metadata": {"transactionId": "tx", "executedPrice": 99.0, "venue": "raydium"},
    }
    assert ev.is_terminal


def test_status_event_immutable():
    ev = StatusEvent(order_id="o-1", status=OrderStatus.PENDING)
    with pytest.raises(AttributeError):
        ev.order_id = "other"
    assert isinstance(ev.timestamp, datetime)


# --- Errors ---


def test_error_taxonomy_plays_with_builtins():
    assert issubclass(ValidationError, ValueError)
    assert issubclass(OrderNotFoundError, KeyError)


# --- EngineSettings ---


def test_settings_defaults():
    s = EngineSettings()
    assert s.concurrency == 10
    assert s.rate_limit == 100
    assert s.rate_window == 60.0
    assert s.max_attempts == 3
    assert s.backoff_base == 1.0
    assert s.failure_rate == 0.02
    assert s.settlement_latency_min > s.quote_latency_max


def test_settings_from_env_overrides():
    env = {
        "SWAPFLOW_CONCURRENCY": "4",
        "SWAPFLOW_FAILURE_RATE": "0.5",
        "SWAPFLOW_DATABASE_PATH": "/tmp/orders.db",
        "SWAPFLOW_RATE_LIMIT": "",
    }
    s = EngineSettings.from_env(env)
    assert s.concurrency == 4
    assert s.failure_rate == 0.5
    assert s.database_path == "/tmp/orders.db"
    assert s.rate_limit == 100


def test_settings_from_env_rejects_garbage():
    with pytest.raises(ConfigError):
        EngineSettings.from_env({"SWAPFLOW_CONCURRENCY": "ten"})


def test_settings_validate_ranges():
    with pytest.raises(ConfigError):
        EngineSettings(concurrency=0)
    with pytest.raises(ConfigError):
        EngineSettings(failure_rate=1.5)
    with pytest.raises(ConfigError):
        EngineSettings(quote_latency_min=1.0, quote_latency_max=0.5)


# --- logging ---


def test_json_formatter_keeps_extra_fields():
    record = logging.LogRecord("swapflow_core.routing", logging.INFO, __file__, 1, "order %s", ("o-1",), None)
    record.venue = "raydium"
    line = json.loads(JsonFormatter().format(record))
    assert line["message"] == "order o-1"
    assert line["level"] == "INFO"
    assert line["name"] == "swapflow_core.routing"
    assert line["venue"] == "raydium"
