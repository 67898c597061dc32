"""Line-item and order total calculation."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from cafe_pos.models import OrderItem, SelectedAddon

_CENTS = Decimal("0.01")


def compute_item_total(base_price: Decimal, selected_addons: Iterable[SelectedAddon], quantity: int) -> Decimal:
    """Return (base price + sum of addon adjustments) * quantity, unrounded."""
    unit_price = base_price + sum((addon.price_adjustment for addon in selected_addons), Decimal("0"))
    return unit_price * quantity


def compute_order_total(items: Iterable[OrderItem]) -> Decimal:
    """Return the sum of the items' stored totals."""
    return sum((item.total_price for item in items), Decimal("0"))


def format_money(value: Decimal) -> str:
    """Round to two decimals for display only."""
    return str(value.quantize(_CENTS, rounding=ROUND_HALF_UP))
