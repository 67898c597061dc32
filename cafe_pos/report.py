"""Daily sales aggregation over the order ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from cafe_pos.models import Order, Staff

UNKNOWN_STAFF_NAME = "Unknown"


@dataclass
class StaffSales:
    staff_id: str
    name: str
    total: Decimal = Decimal("0")
    count: int = 0


@dataclass
class ReportSummary:
    total_sales: Decimal = Decimal("0")
    total_orders: int = 0
    by_staff: list[StaffSales] = field(default_factory=list)


def summarize_orders(orders: Iterable[Order], staff: Iterable[Staff]) -> ReportSummary:
    """
    Total the ledger overall and per staff member.

    Rows keep the order in which each staff member first appears. Names come
    from the current staff list, then the order's own snapshot.
    """
    names = {member.staff_id: member.name for member in staff}
    rows: dict[str, StaffSales] = {}
    summary = ReportSummary()

    for order in orders:
        summary.total_sales += order.total_amount
        summary.total_orders += 1
        row = rows.get(order.staff_id)
        if row is None:
            name = names.get(order.staff_id) or order.staff_name or UNKNOWN_STAFF_NAME
            row = rows[order.staff_id] = StaffSales(order.staff_id, name)
        row.total += order.total_amount
        row.count += 1

    summary.by_staff = list(rows.values())
    return summary


def newest_first(orders: Iterable[Order]) -> list[Order]:
    return list(reversed(list(orders)))


def format_timestamp(millis: int) -> str:
    """Local time as printed on receipts and the ledger."""
    return datetime.fromtimestamp(millis / 1000).strftime("%d/%m/%Y %H:%M")
