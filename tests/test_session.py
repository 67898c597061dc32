from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

import pytest

from cafe_pos.data import default_staff
from cafe_pos.errors import (
    EmptyOrder,
    InvalidAddonSelection,
    InvalidIndex,
    InvalidQuantity,
    NoActiveOrder,
    SessionActive,
    ValidationError,
)
from cafe_pos.models import SessionState
from cafe_pos.pricing import compute_order_total
from cafe_pos.session import OrderSession, default_selections, next_order_id


def _option(product, category_id, option_id):
    category = next(c for c in product.addon_categories if c.category_id == category_id)
    return category, next(o for o in category.options if o.option_id == option_id)


def _assert_totals_consistent(order):
    assert order.total_amount == compute_order_total(order.items)
    for item in order.items:
        unit = item.base_price + sum((addon.price_adjustment for addon in item.selected_addons), Decimal("0"))
        assert item.total_price == unit * item.quantity


def test_login_starts_an_empty_order(store, ahmed):
    session = OrderSession(store)
    assert session.state is SessionState.NO_SESSION

    order = session.login(ahmed)

    assert session.state is SessionState.ACTIVE_EMPTY
    assert order.staff_id == ahmed.staff_id
    assert order.staff_name == "Ahmed"
    assert order.items == []
    assert order.total_amount == Decimal("0")
    assert order.is_printed is False
    assert order.order_id.startswith("ORD-")


def test_login_while_logged_in_is_rejected(session):
    fatima = next(member for member in default_staff() if member.name == "Fatima")
    with pytest.raises(SessionActive):
        session.login(fatima)
    assert session.staff.name == "Ahmed"


def test_logout_discards_the_unsaved_order(session, store, products):
    session.add_item(products["Espresso"])
    session.logout()

    assert session.state is SessionState.NO_SESSION
    assert session.current_order is None
    assert store.get_orders() == []


def test_mutations_without_session_report_no_active_order(store, products):
    session = OrderSession(store)
    with pytest.raises(NoActiveOrder):
        session.add_item(products["Espresso"])
    with pytest.raises(NoActiveOrder):
        session.submit()
    with pytest.raises(NoActiveOrder):
        session.remove_item(0)


def test_counter_scenario_collapse_update_remove(session, products):
    espresso = products["Espresso"]

    session.add_item(espresso)
    assert session.current_order.total_amount == Decimal("15")
    assert session.state is SessionState.ACTIVE_NON_EMPTY

    session.add_item(espresso)
    order = session.current_order
    assert len(order.items) == 1
    assert order.items[0].quantity == 2
    assert order.total_amount == Decimal("30")

    session.update_quantity(0, 3)
    assert order.total_amount == Decimal("45")

    session.remove_item(0)
    assert order.total_amount == Decimal("0")
    assert order.items == []
    assert session.state is SessionState.ACTIVE_EMPTY


def test_addon_products_never_collapse(session, products):
    latte = products["Latte"]

    session.add_item(latte, default_selections(latte))
    session.add_item(latte, default_selections(latte))

    order = session.current_order
    assert len(order.items) == 2
    assert [item.quantity for item in order.items] == [1, 1]
    assert order.total_amount == Decimal("44")


def test_single_select_addon_is_priced_per_unit(session, products):
    latte = products["Latte"]

    item = session.add_item(latte, [_option(latte, "size", "size_large")], quantity=2)

    assert item.total_price == Decimal("54")
    assert [(a.category_name, a.option_name, a.price_adjustment) for a in item.selected_addons] == [
        ("Size", "Large", Decimal("5"))
    ]
    assert session.current_order.total_amount == Decimal("54")


def test_multi_select_addons_include_discounts(session, products):
    latte = products["Latte"]
    selections = [
        _option(latte, "extras", "own_cup"),
        _option(latte, "size", "size_regular"),
        _option(latte, "extras", "extra_shot"),
    ]

    item = session.add_item(latte, selections)

    # Snapshot follows catalog order, not click order.
    assert [a.option_name for a in item.selected_addons] == ["Regular", "Extra Shot", "Own Cup"]
    assert item.total_price == Decimal("24")


def test_single_select_requires_exactly_one_option(session, products):
    latte = products["Latte"]
    order = session.current_order

    with pytest.raises(InvalidAddonSelection):
        session.add_item(latte, [])
    with pytest.raises(InvalidAddonSelection):
        session.add_item(latte, [_option(latte, "size", "size_regular"), _option(latte, "size", "size_large")])
    assert order.items == []


def test_selection_from_another_product_is_rejected(session, products):
    latte = products["Latte"]
    cappuccino = products["Cappuccino"]
    foreign = _option(latte, "extras", "oat_milk")

    with pytest.raises(InvalidAddonSelection):
        session.add_item(cappuccino, [_option(cappuccino, "size", "size_regular"), foreign])


def test_item_keeps_prices_after_catalog_edit(session, products):
    espresso = products["Espresso"]
    session.add_item(espresso)

    repriced = replace(espresso, name="Espresso Doppio", price=Decimal("18"))
    session.update_quantity(0, 2)

    item = session.current_order.items[0]
    assert item.product_name == "Espresso"
    assert item.base_price == Decimal("15")
    assert item.total_price == Decimal("30")

    # The repriced product still collapses into the same row by id, at the snapshot price.
    session.add_item(repriced)
    assert item.quantity == 3
    assert item.total_price == Decimal("45")


def test_update_quantity_rejects_bad_input_without_change(session, products):
    session.add_item(products["Espresso"])
    order = session.current_order

    with pytest.raises(InvalidQuantity):
        session.update_quantity(0, 0)
    with pytest.raises(InvalidQuantity):
        session.update_quantity(0, -2)
    with pytest.raises(InvalidIndex):
        session.update_quantity(1, 2)
    with pytest.raises(InvalidIndex):
        session.update_quantity(-1, 2)

    assert order.items[0].quantity == 1
    assert order.total_amount == Decimal("15")


def test_validation_errors_share_a_base_class():
    assert issubclass(EmptyOrder, ValidationError)
    assert issubclass(InvalidIndex, ValidationError)
    assert issubclass(InvalidQuantity, ValidationError)


def test_remove_item_shifts_indices_sequentially(session, products):
    for name in ("Espresso", "Cappuccino", "Chocolate Cake"):
        product = products[name]
        session.add_item(product, default_selections(product))

    session.remove_item(0)
    assert [item.product_name for item in session.current_order.items] == ["Cappuccino", "Chocolate Cake"]
    session.remove_item(0)
    assert [item.product_name for item in session.current_order.items] == ["Chocolate Cake"]
    assert session.current_order.total_amount == Decimal("30")

    with pytest.raises(InvalidIndex):
        session.remove_item(1)


def test_change_quantity_steps_and_removes_at_zero(session, products):
    session.add_item(products["Chocolate Cake"])

    session.change_quantity(0, 1)
    assert session.current_order.items[0].quantity == 2

    session.change_quantity(0, -1)
    session.change_quantity(0, -1)
    assert session.current_order.items == []
    assert session.current_order.total_amount == Decimal("0")


def test_totals_stay_consistent_across_mutations(session, products):
    latte = products["Latte"]
    session.add_item(products["Espresso"], quantity=2)
    session.add_item(latte, [_option(latte, "size", "size_large"), _option(latte, "extras", "own_cup")])
    session.add_item(products["Chocolate Cake"])
    _assert_totals_consistent(session.current_order)

    session.update_quantity(1, 4)
    _assert_totals_consistent(session.current_order)

    session.remove_item(0)
    _assert_totals_consistent(session.current_order)
    assert session.current_order.total_amount == Decimal("134")


def test_submit_empty_order_fails_and_keeps_order(session, store):
    order = session.current_order

    with pytest.raises(EmptyOrder):
        session.submit()

    assert session.current_order is order
    assert store.get_orders() == []


def test_submit_persists_once_and_rolls_over(session, store, dispatcher, products):
    session.add_item(products["Espresso"])
    session.add_item(products["Chocolate Cake"])
    previous_id = session.current_order.order_id

    submitted = session.submit()

    ledger = store.get_orders()
    assert [order.order_id for order in ledger] == [previous_id]
    assert ledger[0].total_amount == Decimal("45")
    assert submitted.order_id == previous_id

    fresh = session.current_order
    assert fresh.order_id != previous_id
    assert fresh.items == []
    assert fresh.staff_id == "w1"
    assert fresh.is_printed is False
    assert session.state is SessionState.ACTIVE_EMPTY

    assert len(dispatcher.calls) == 1
    printed, _ = dispatcher.calls[0]
    assert printed.order_id == previous_id


def test_submit_without_auto_print_skips_dispatch(session, store, dispatcher, products):
    settings = store.get_settings()
    settings.auto_print = False
    store.set_settings(settings)
    session.add_item(products["Espresso"])

    submitted = session.submit()

    assert dispatcher.calls == []
    assert len(store.get_orders()) == 1
    assert submitted.is_printed is True
    assert store.get_orders()[0].is_printed is True


def test_print_failure_does_not_roll_back(store, failing_dispatcher, ahmed, products):
    session = OrderSession(store, dispatch_receipt=failing_dispatcher)
    session.login(ahmed)
    session.add_item(products["Espresso"])

    submitted = session.submit()

    assert len(failing_dispatcher.calls) == 1
    assert [order.order_id for order in store.get_orders()] == [submitted.order_id]
    assert session.current_order.items == []


def test_dispatched_order_is_independent_of_the_session(session, dispatcher, products):
    session.add_item(products["Espresso"])
    submitted = session.submit()

    printed, _ = dispatcher.calls[0]
    printed.items.clear()
    assert len(submitted.items) == 1

    session.add_item(products["Espresso"])
    assert len(submitted.items) == 1


def test_snapshot_is_a_copy(session, products):
    session.add_item(products["Espresso"])
    snapshot = session.snapshot()

    session.update_quantity(0, 5)

    assert snapshot.items[0].quantity == 1
    assert snapshot.total_amount == Decimal("15")


def test_order_ids_are_strictly_increasing():
    ids = [int(next_order_id().split("-")[1]) for _ in range(50)]
    assert ids == sorted(set(ids))


def test_submit_without_staff_reports_no_active_order(session, store, products):
    session.add_item(products["Espresso"])
    session.staff = None

    with pytest.raises(NoActiveOrder):
        session.submit()
    assert store.get_orders() == []
