"""
Convert order records and decision-log entries into DataFrames.

Frames are the input to the routing metrics and are handy for ad-hoc
analysis of the audit trail (e.g. in a notebook).
"""

from __future__ import annotations

from collections.abc import Iterable

import pandas as pd

from swapflow_core.order import Order
from swapflow_core.storage.base import DecisionLogEntry

ORDER_COLUMNS = (
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
    "created_at",
    "updated_at",
    "attempt",
)

QUOTE_COLUMNS = ("timestamp", "order_id", "chosen", "chosen_price", "spread")


def orders_to_frame(orders: Iterable[Order]) -> pd.DataFrame:
    """
    One row per order, columns as in the orders table.

    created_at / updated_at are parsed to timestamps; executed_price is
    numeric with NaN for orders that never settled.
    """
    rows = [o.to_record() for o in orders]
    if not rows:
        return pd.DataFrame(columns=list(ORDER_COLUMNS))
    df = pd.DataFrame(rows, columns=list(ORDER_COLUMNS))
    df["created_at"] = pd.to_datetime(df["created_at"])
    df["updated_at"] = pd.to_datetime(df["updated_at"])
    df["executed_price"] = pd.to_numeric(df["executed_price"], errors="coerce")
    return df


def decision_log_to_frame(entries: Iterable[DecisionLogEntry]) -> pd.DataFrame:
    """One row per entry, insertion order kept: timestamp, order_id, event, payload."""
    rows = [
        {"timestamp": e.timestamp, "order_id": e.order_id, "event": e.event, "payload": e.payload}
        for e in entries
    ]
    if not rows:
        return pd.DataFrame(columns=["timestamp", "order_id", "event", "payload"])
    df = pd.DataFrame(rows)
    df["timestamp"] = pd.to_datetime(df["timestamp"])
    return df


def quotes_to_frame(entries: Iterable[DecisionLogEntry]) -> pd.DataFrame:
    """
    One row per routing decision (venue_selected entries).

    Columns: timestamp, order_id, chosen, <venue>_price for every venue seen,
    chosen_price, spread (best minus worst quoted price).
    """
    rows = []
    for e in entries:
        if e.event != "venue_selected":
            continue
        row = {"timestamp": e.timestamp, "order_id": e.order_id, "chosen": e.payload.get("chosen")}
        for venue, quote in e.payload.get("quotes", {}).items():
            row[f"{venue}_price"] = quote.get("price")
        rows.append(row)
    if not rows:
        return pd.DataFrame(columns=list(QUOTE_COLUMNS))
    df = pd.DataFrame(rows)
    price_cols = [c for c in df.columns if c.endswith("_price")]
    if price_cols:
        df[price_cols] = df[price_cols].apply(pd.to_numeric, errors="coerce")
    df["chosen_price"] = [row.get(f"{row['chosen']}_price") for _, row in df.iterrows()]
    df["chosen_price"] = pd.to_numeric(df["chosen_price"], errors="coerce")
    df["spread"] = df[price_cols].max(axis=1) - df[price_cols].min(axis=1)
    return df
