"""The in-progress order for the logged-in staff member."""

from __future__ import annotations

import copy
import logging
import time
from typing import Callable, Iterable

from cafe_pos.errors import (
    EmptyOrder,
    InvalidAddonSelection,
    InvalidIndex,
    InvalidQuantity,
    NoActiveOrder,
    SessionActive,
)
from cafe_pos.models import AddonCategory, AddonOption, Order, OrderItem, Product, SelectedAddon, SessionState, Settings, Staff
from cafe_pos.persistence import DocumentStore
from cafe_pos.pricing import compute_item_total, compute_order_total

logger = logging.getLogger(__name__)

AddonSelection = tuple[AddonCategory, AddonOption]
ReceiptDispatcher = Callable[[Order, Settings], object]

_last_order_ms = 0


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def next_order_id() -> str:
    """Return an ``ORD-<millis>`` id, strictly increasing within the process."""
    global _last_order_ms
    stamp = max(_now_ms(), _last_order_ms + 1)
    _last_order_ms = stamp
    return f"ORD-{stamp}"


def new_order(staff: Staff) -> Order:
    return Order(
        order_id=next_order_id(),
        staff_id=staff.staff_id,
        staff_name=staff.name,
        created_at=_now_ms(),
        is_printed=False,
    )


def snapshot_addons(product: Product, selections: Iterable[AddonSelection]) -> list[SelectedAddon]:
    """
    Validate addon choices against the product and copy them by value.

    Every selected category must belong to the product and every option to
    its category. Single-select categories need exactly one option; the
    result follows the product's category order.
    """
    chosen: dict[str, list[AddonOption]] = {}
    categories = {category.category_id: category for category in product.addon_categories}
    for category, option in selections:
        owned = categories.get(category.category_id)
        if owned is None:
            raise InvalidAddonSelection(f"{product.name} has no addon category {category.name!r}")
        if option.option_id not in {candidate.option_id for candidate in owned.options}:
            raise InvalidAddonSelection(f"{option.name!r} is not an option of {owned.name!r}")
        picked = chosen.setdefault(owned.category_id, [])
        if option.option_id not in {existing.option_id for existing in picked}:
            picked.append(option)

    snapshot: list[SelectedAddon] = []
    for category in product.addon_categories:
        picked = chosen.get(category.category_id, [])
        if category.is_single_select and len(picked) != 1:
            raise InvalidAddonSelection(f"Choose exactly one {category.name} for {product.name}")
        option_order = [option.option_id for option in category.options]
        for option in sorted(picked, key=lambda opt: option_order.index(opt.option_id)):
            snapshot.append(SelectedAddon(category.name, option.name, option.price_adjustment))
    return snapshot


def default_selections(product: Product) -> list[AddonSelection]:
    """First option of every single-select category, nothing for the rest."""
    return [
        (category, category.options[0])
        for category in product.addon_categories
        if category.is_single_select and category.options
    ]


class OrderSession:
    """
    Owns the current order between login and logout.

    Every mutation recomputes the touched item's total and the order's grand
    total from the snapshotted prices. ``submit`` is the only commit point:
    it writes the order to the ledger and then starts a fresh empty order.
    """

    def __init__(self, store: DocumentStore, dispatch_receipt: ReceiptDispatcher | None = None) -> None:
        self.store = store
        self.dispatch_receipt = dispatch_receipt
        self.staff: Staff | None = None
        self.current_order: Order | None = None

    @property
    def state(self) -> SessionState:
        if self.current_order is None:
            return SessionState.NO_SESSION
        if not self.current_order.items:
            return SessionState.ACTIVE_EMPTY
        return SessionState.ACTIVE_NON_EMPTY

    def login(self, staff: Staff) -> Order:
        if self.staff is not None:
            raise SessionActive(self.staff.name)
        self.staff = staff
        self.current_order = new_order(staff)
        logger.info("login staff_id=%s order_id=%s", staff.staff_id, self.current_order.order_id)
        return self.current_order

    def logout(self) -> None:
        if self.current_order is not None and self.current_order.items:
            logger.warning(
                "logout_discarded order_id=%s items=%d", self.current_order.order_id, len(self.current_order.items)
            )
        logger.info("logout staff_id=%s", self.staff.staff_id if self.staff else None)
        self.staff = None
        self.current_order = None

    def _require_order(self) -> Order:
        if self.current_order is None:
            raise NoActiveOrder()
        return self.current_order

    def _require_index(self, order: Order, index: int) -> OrderItem:
        if not (0 <= index < len(order.items)):
            raise InvalidIndex(index, len(order.items))
        return order.items[index]

    def _recompute(self, order: Order) -> None:
        order.total_amount = compute_order_total(order.items)

    def add_item(self, product: Product, selections: Iterable[AddonSelection] = (), quantity: int = 1) -> OrderItem:
        order = self._require_order()
        if quantity <= 0:
            raise InvalidQuantity(quantity)
        addons = snapshot_addons(product, selections)

        # Addon-free products collapse into one row.
        if not product.addon_categories:
            for item in order.items:
                if item.product_id == product.product_id:
                    item.quantity += quantity
                    item.total_price = compute_item_total(item.base_price, item.selected_addons, item.quantity)
                    self._recompute(order)
                    return item

        item = OrderItem(
            product_id=product.product_id,
            product_name=product.name,
            base_price=product.price,
            quantity=quantity,
            selected_addons=addons,
        )
        item.total_price = compute_item_total(item.base_price, item.selected_addons, item.quantity)
        order.items.append(item)
        self._recompute(order)
        return item

    def update_quantity(self, index: int, quantity: int) -> OrderItem:
        order = self._require_order()
        if quantity <= 0:
            raise InvalidQuantity(quantity)
        item = self._require_index(order, index)
        item.quantity = quantity
        item.total_price = compute_item_total(item.base_price, item.selected_addons, item.quantity)
        self._recompute(order)
        return item

    def change_quantity(self, index: int, delta: int) -> OrderItem | None:
        """Step a row's quantity; a result of zero or less removes the row."""
        order = self._require_order()
        item = self._require_index(order, index)
        quantity = item.quantity + delta
        if quantity > 0:
            return self.update_quantity(index, quantity)
        self.remove_item(index)
        return None

    def remove_item(self, index: int) -> OrderItem:
        order = self._require_order()
        self._require_index(order, index)
        item = order.items.pop(index)
        self._recompute(order)
        return item

    def snapshot(self) -> Order:
        """Independent copy of the current order, safe to hand to a printer."""
        return copy.deepcopy(self._require_order())

    def submit(self) -> Order:
        order = self._require_order()
        if not order.items:
            raise EmptyOrder()
        if self.staff is None:
            raise NoActiveOrder()

        order.is_printed = True
        submitted = copy.deepcopy(order)
        self.store.save_order(submitted)

        settings = self.store.get_settings()
        if settings.auto_print and self.dispatch_receipt is not None:
            try:
                self.dispatch_receipt(copy.deepcopy(submitted), settings)
            except Exception as exc:
                # The order is already in the ledger; printing is best effort.
                logger.error("auto_print_failed order_id=%s error=%r", submitted.order_id, exc)
        else:
            logger.info("auto_print_skipped order_id=%s", submitted.order_id)

        self.current_order = new_order(self.staff)
        logger.info("order_submitted order_id=%s next_order_id=%s", submitted.order_id, self.current_order.order_id)
        return submitted
