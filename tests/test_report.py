from __future__ import annotations

from decimal import Decimal

from cafe_pos.data import default_products, default_staff
from cafe_pos.models import Order, Staff
from cafe_pos.report import UNKNOWN_STAFF_NAME, newest_first, summarize_orders
from cafe_pos.session import OrderSession


def _order(order_id: str, staff_id: str, total: str, staff_name: str = "") -> Order:
    return Order(order_id=order_id, staff_id=staff_id, staff_name=staff_name, total_amount=Decimal(total))


def test_summary_groups_by_staff_in_first_seen_order():
    orders = [
        _order("ORD-1", "w2", "45"),
        _order("ORD-2", "w1", "15"),
        _order("ORD-3", "w2", "22.50"),
    ]

    summary = summarize_orders(orders, default_staff())

    assert summary.total_sales == Decimal("82.50")
    assert summary.total_orders == 3
    assert [(row.name, row.total, row.count) for row in summary.by_staff] == [
        ("Fatima", Decimal("67.50"), 2),
        ("Ahmed", Decimal("15"), 1),
    ]


def test_summary_names_fall_back_to_snapshot_then_unknown():
    orders = [_order("ORD-1", "gone", "10", staff_name="Old Hand"), _order("ORD-2", "ghost", "5")]

    summary = summarize_orders(orders, [Staff("w1", "Ahmed", "1111")])

    assert [row.name for row in summary.by_staff] == ["Old Hand", UNKNOWN_STAFF_NAME]


def test_empty_ledger_summary():
    summary = summarize_orders([], default_staff())
    assert summary.total_sales == Decimal("0")
    assert summary.total_orders == 0
    assert summary.by_staff == []


def test_report_over_submitted_orders(store):
    products = {product.name: product for product in default_products()}
    ahmed, fatima = default_staff()[:2]
    session = OrderSession(store)

    session.login(ahmed)
    session.add_item(products["Espresso"], quantity=3)
    session.submit()
    session.logout()
    session.login(fatima)
    session.add_item(products["Chocolate Cake"])
    session.submit()

    orders = store.get_orders()
    summary = summarize_orders(orders, store.get_staff())

    assert summary.total_sales == Decimal("75")
    assert [(row.name, row.count) for row in summary.by_staff] == [("Ahmed", 1), ("Fatima", 1)]
    assert [order.staff_name for order in newest_first(orders)] == ["Fatima", "Ahmed"]
