"""
SQLite-backed stores.

One orders table keyed by order_id (upserted in place), plus an append-only
decision_log table. sqlite3 calls block, so they run in a worker thread;
one connection per store, serialised by a lock. Every sqlite3.Error is
re-raised as PersistenceError.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

from swapflow_core.errors import PersistenceError
from swapflow_core.order import Order
from swapflow_core.storage.base import DecisionLog, DecisionLogEntry, OrderStore

T = TypeVar("T")

ORDERS_SCHEMA = """
CREATE TABLE IF NOT EXISTS orders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    order_id TEXT UNIQUE NOT NULL,
    token_in TEXT NOT NULL,
    token_out TEXT NOT NULL,
    amount REAL NOT NULL,
    order_type TEXT NOT NULL,
    status TEXT NOT NULL,
    chosen_venue TEXT,
    transaction_id TEXT,
    executed_price REAL,
    error_message TEXT,
    attempt INTEGER NOT NULL DEFAULT 1,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_orders_status ON orders(status);
CREATE INDEX IF NOT EXISTS idx_orders_created_at ON orders(created_at);
"""

DECISION_LOG_SCHEMA = """
CREATE TABLE IF NOT EXISTS decision_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    order_id TEXT NOT NULL,
    event TEXT NOT NULL,
    payload TEXT
);
CREATE INDEX IF NOT EXISTS idx_decision_log_order_id ON decision_log(order_id);
"""

_ORDER_COLUMNS = (
    "order_id",
    "token_in",
    "token_out",
    "amount",
    "order_type",
    "status",
    "chosen_venue",
    "transaction_id",
    "executed_price",
    "error_message",
    "attempt",
    "created_at",
    "updated_at",
)


class _SqliteBackend:
    """Shared connection handling for both stores."""

    def __init__(self, path: str | Path, schema: str) -> None:
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._closed = False
        try:
            self._conn = sqlite3.connect(self.path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(schema)
            self._conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open SQLite store at {self.path}: {e}") from e

    def _call(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        with self._lock:
            if self._closed:
                raise PersistenceError(f"SQLite store at {self.path} is closed")
            try:
                result = fn(self._conn)
                self._conn.commit()
                return result
            except sqlite3.Error as e:
                self._conn.rollback()
                raise PersistenceError(f"SQLite error on {self.path}: {e}") from e

    async def run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        return await asyncio.to_thread(self._call, fn)

    def close(self) -> None:
        with self._lock:
            if not self._closed:
                self._closed = True
                self._conn.close()


class SqliteOrderStore(OrderStore):
    """Order records in a SQLite file (or ":memory:")."""

    def __init__(self, path: str | Path = ":memory:") -> None:
        self._db = _SqliteBackend(path, ORDERS_SCHEMA)

    async def upsert(self, order: Order) -> None:
        record = order.to_record()
        values = [record[c] for c in _ORDER_COLUMNS]
        placeholders = ", ".join("?" for _ in _ORDER_COLUMNS)
        updates = ", ".join(f"{c} = excluded.{c}" for c in _ORDER_COLUMNS if c not in ("order_id", "created_at"))
        sql = (
            f"INSERT INTO orders ({', '.join(_ORDER_COLUMNS)}) VALUES ({placeholders}) "
            f"ON CONFLICT(order_id) DO UPDATE SET {updates}"
        )
        await self._db.run(lambda conn: conn.execute(sql, values))

    async def get(self, order_id: str) -> Order | None:
        row = await self._db.run(
            lambda conn: conn.execute("SELECT * FROM orders WHERE order_id = ?", (order_id,)).fetchone()
        )
        return Order.from_record(dict(row)) if row is not None else None

    async def list_recent(self, limit: int = 100) -> list[Order]:
        rows = await self._db.run(
            lambda conn: conn.execute(
                "SELECT * FROM orders ORDER BY created_at DESC, id DESC LIMIT ?", (max(limit, 0),)
            ).fetchall()
        )
        return [Order.from_record(dict(r)) for r in rows]

    async def close(self) -> None:
        self._db.close()


class SqliteDecisionLog(DecisionLog):
    """Decision log in a SQLite file; payloads stored as JSON text."""

    def __init__(self, path: str | Path = ":memory:") -> None:
        self._db = _SqliteBackend(path, DECISION_LOG_SCHEMA)

    async def append(self, entry: DecisionLogEntry) -> None:
        values = (
            entry.timestamp.isoformat(),
            entry.order_id,
            entry.event,
            json.dumps(entry.payload, default=str),
        )
        await self._db.run(
            lambda conn: conn.execute(
                "INSERT INTO decision_log (timestamp, order_id, event, payload) VALUES (?, ?, ?, ?)",
                values,
            )
        )

    async def query(self, order_id: str | None = None) -> list[DecisionLogEntry]:
        if order_id is None:
            rows = await self._db.run(
                lambda conn: conn.execute("SELECT * FROM decision_log ORDER BY id").fetchall()
            )
        else:
            rows = await self._db.run(
                lambda conn: conn.execute(
                    "SELECT * FROM decision_log WHERE order_id = ? ORDER BY id", (order_id,)
                ).fetchall()
            )
        return [_entry_from_row(r) for r in rows]

    async def clear(self) -> None:
        await self._db.run(lambda conn: conn.execute("DELETE FROM decision_log"))

    async def close(self) -> None:
        self._db.close()


def _entry_from_row(row: sqlite3.Row) -> DecisionLogEntry:
    payload: dict[str, Any] = json.loads(row["payload"]) if row["payload"] else {}
    return DecisionLogEntry(
        order_id=row["order_id"],
        event=row["event"],
        payload=payload,
        timestamp=datetime.fromisoformat(row["timestamp"]),
    )
