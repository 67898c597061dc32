"""Rich text helpers for the terminal screens."""

from __future__ import annotations

from decimal import Decimal

from rich.text import Text

from cafe_pos.models import OrderItem, Product, SelectedAddon
from cafe_pos.pricing import format_money

ADDON_BADGE_STYLE = "bold #ffffff on #2f6db5"
QUANTITY_BADGE_STYLE = "bold #0b1f0f on #5fbf72"
ADMIN_BADGE_STYLE = "bold #ffffff on #b23a48"


def format_product_label(product: Product, currency: str) -> Text:
    """Product name and price, tagged when it carries addons."""
    text = Text()
    text.append(product.name)
    text.append(f"  {format_money(product.price)} {currency}", style="dim")
    if product.addon_categories:
        text.append(" ")
        text.append("+", style=ADDON_BADGE_STYLE)
    return text


def format_item_label(item: OrderItem, currency: str) -> Text:
    text = Text()
    text.append(f"{item.quantity}x", style=QUANTITY_BADGE_STYLE)
    text.append(f" {item.product_name}")
    text.append(f"  {format_money(item.total_price)} {currency}", style="bold")
    return text


def format_addon_tags(addons: list[SelectedAddon]) -> Text:
    """Render selected addons as compact tags."""
    text = Text()
    for idx, addon in enumerate(addons):
        if idx > 0:
            text.append(" ")
        text.append(f"[{addon.option_name}]", style="white")
    return text


def format_total(total: Decimal, currency: str) -> Text:
    text = Text()
    text.append("Total: ", style="bold")
    text.append(f"{format_money(total)} {currency}", style="bold #5fbf72")
    return text
