"""Seed catalog, staff and settings used when the store holds nothing usable."""

from __future__ import annotations

from decimal import Decimal

from cafe_pos.models import AddonCategory, AddonOption, Product, Settings, Staff

_SIZE = AddonCategory(
    category_id="size",
    name="Size",
    is_single_select=True,
    options=(
        AddonOption("size_regular", "Regular", Decimal("0")),
        AddonOption("size_large", "Large", Decimal("5")),
    ),
)

_EXTRAS = AddonCategory(
    category_id="extras",
    name="Extras",
    is_single_select=False,
    options=(
        AddonOption("extra_shot", "Extra Shot", Decimal("3")),
        AddonOption("oat_milk", "Oat Milk", Decimal("2")),
        AddonOption("own_cup", "Own Cup", Decimal("-1")),
    ),
)


def default_products() -> list[Product]:
    return [
        Product("p1", "Espresso", Decimal("15")),
        Product("p2", "Latte", Decimal("22"), addon_categories=(_SIZE, _EXTRAS)),
        Product("p3", "Cappuccino", Decimal("20"), addon_categories=(_SIZE,)),
        Product("p4", "Chocolate Cake", Decimal("30")),
    ]


def default_staff() -> list[Staff]:
    return [
        Staff("w1", "Ahmed", "1111"),
        Staff("w2", "Fatima", "2222"),
        Staff("w3", "Manager", "0000", is_admin=True),
    ]


def default_settings() -> Settings:
    return Settings()
