"""
Tests for order stores, decision logs and the AuditTrail.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from swapflow_core import Order, OrderStatus, PersistenceError
from swapflow_core.storage import (
    AuditTrail,
    DecisionLogEntry,
    InMemoryDecisionLog,
    InMemoryOrderStore,
    SqliteDecisionLog,
    SqliteOrderStore,
)

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _order(order_id: str, minutes: int = 0) -> Order:
    stamp = T0 + timedelta(minutes=minutes)
    return Order(order_id=order_id, token_in="USDC", token_out="SOL", amount=5.0, created_at=stamp, updated_at=stamp)


@pytest.fixture(params=["memory", "sqlite"])
def order_store(request):
    return InMemoryOrderStore() if request.param == "memory" else SqliteOrderStore(":memory:")


@pytest.fixture(params=["memory", "sqlite"])
def decision_log(request):
    return InMemoryDecisionLog() if request.param == "memory" else SqliteDecisionLog(":memory:")


# --- OrderStore ---


@pytest.mark.asyncio
async def test_upsert_then_get_round_trips(order_store):
    order = _order("a")
    await order_store.upsert(order)
    assert await order_store.get("a") == order
    assert await order_store.get("missing") is None
    await order_store.close()


@pytest.mark.asyncio
async def test_upsert_is_last_write_wins(order_store):
    order = _order("a")
    await order_store.upsert(order)
    order.transition(OrderStatus.ROUTING)
    order.transition(OrderStatus.FAILED, error_message="venue down")
    await order_store.upsert(order)
    stored = await order_store.get("a")
    assert stored.status == OrderStatus.FAILED
    assert stored.error_message == "venue down"
    assert stored.created_at == T0
    assert len(await order_store.list_recent()) == 1
    await order_store.close()


@pytest.mark.asyncio
async def test_get_returns_a_snapshot(order_store):
    order = _order("a")
    await order_store.upsert(order)
    order.transition(OrderStatus.ROUTING)
    assert (await order_store.get("a")).status == OrderStatus.PENDING
    await order_store.close()


@pytest.mark.asyncio
async def test_list_recent_newest_first_with_limit(order_store):
    for i, oid in enumerate(["a", "b", "c", "d"]):
        await order_store.upsert(_order(oid, minutes=i))
    assert [o.order_id for o in await order_store.list_recent()] == ["d", "c", "b", "a"]
    assert [o.order_id for o in await order_store.list_recent(limit=2)] == ["d", "c"]
    await order_store.close()


@pytest.mark.asyncio
async def test_list_recent_breaks_created_at_ties_newest_insert_first(order_store):
    for oid in ["a", "b", "c"]:
        await order_store.upsert(_order(oid))
    # Re-writing an existing order keeps its original position.
    await order_store.upsert(_order("a"))
    await order_store.upsert(_order("z", minutes=-5))
    assert [o.order_id for o in await order_store.list_recent()] == ["c", "b", "a", "z"]
    await order_store.close()


# --- DecisionLog ---


@pytest.mark.asyncio
async def test_decision_log_keeps_insertion_order_and_filters(decision_log):
    await decision_log.append(DecisionLogEntry("a", "routing_started", {"amount": 5.0}))
    await decision_log.append(DecisionLogEntry("b", "routing_started"))
    await decision_log.append(
        DecisionLogEntry("a", "venue_selected", {"quotes": {"raydium": {"price": 99.0, "fee": 0.003}}, "chosen": "raydium"})
    )
    all_entries = await decision_log.query()
    assert [(e.order_id, e.event) for e in all_entries] == [
        ("a", "routing_started"),
        ("b", "routing_started"),
        ("a", "venue_selected"),
    ]
    only_a = await decision_log.query("a")
    assert [e.event for e in only_a] == ["routing_started", "venue_selected"]
    assert only_a[1].payload["quotes"]["raydium"]["price"] == 99.0

    await decision_log.clear()
    assert await decision_log.query() == []
    await decision_log.close()


def test_decision_log_entry_dict_shape():
    entry = DecisionLogEntry("a", "transaction_confirmed", {"transactionId": "tx"}, timestamp=T0)
    assert entry.to_dict() == {
        "timestamp": "2024-01-01T12:00:00+00:00",
        "orderId": "a",
        "event": "transaction_confirmed",
        "data": {"transactionId": "tx"},
    }


# --- SQLite specifics ---


@pytest.mark.asyncio
async def test_sqlite_store_persists_across_connections(tmp_path):
    path = tmp_path / "db" / "orders.db"
    store = SqliteOrderStore(path)
    await store.upsert(_order("a"))
    await store.close()

    reopened = SqliteOrderStore(path)
    assert (await reopened.get("a")).order_id == "a"
    await reopened.close()


@pytest.mark.asyncio
async def test_sqlite_errors_surface_as_persistence_error():
    store = SqliteOrderStore(":memory:")
    await store.close()
    with pytest.raises(PersistenceError):
        await store.upsert(_order("a"))


# --- AuditTrail ---


class _FailingStore(InMemoryOrderStore):
    async def upsert(self, order):
        raise PersistenceError("write failed")


class _FailingLog(InMemoryDecisionLog):
    async def append(self, entry):
        raise PersistenceError("write failed")


@pytest.mark.asyncio
async def test_audit_trail_writes_through():
    audit = AuditTrail(InMemoryOrderStore(), InMemoryDecisionLog())
    assert await audit.save_order(_order("a"))
    assert await audit.record("a", "routing_started", {"amount": 5.0})
    assert len(audit.orders) == 1
    assert len(audit.decisions) == 1


@pytest.mark.asyncio
async def test_audit_trail_swallows_persistence_errors(caplog):
    audit = AuditTrail(_FailingStore(), _FailingLog())
    with caplog.at_level(logging.WARNING):
        assert await audit.save_order(_order("a")) is False
        assert await audit.record("a", "routing_started") is False
    assert "failed to persist" in caplog.text
    assert "failed to append" in caplog.text


@pytest.mark.asyncio
async def test_audit_trail_echoes_to_routing_logger(caplog):
    audit = AuditTrail(InMemoryOrderStore(), InMemoryDecisionLog())
    with caplog.at_level(logging.INFO, logger="swapflow_core.routing"):
        await audit.record("a", "venue_selected", {"chosen": "meteora"})
    assert "[ROUTING]" in caplog.text
    assert "Order: a" in caplog.text
    assert "venue_selected" in caplog.text
