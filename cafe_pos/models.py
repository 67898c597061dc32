"""Domain models for cafe-pos."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


@dataclass(frozen=True)
class AddonOption:
    """One priced choice inside an addon category."""

    option_id: str
    name: str
    price_adjustment: Decimal = Decimal("0")


@dataclass(frozen=True)
class AddonCategory:
    """A customization axis such as size or milk."""

    category_id: str
    name: str
    is_single_select: bool
    options: tuple[AddonOption, ...] = ()


@dataclass(frozen=True)
class Product:
    """A catalog entry."""

    product_id: str
    name: str
    price: Decimal
    image_url: str = "/placeholder.svg"
    addon_categories: tuple[AddonCategory, ...] = ()


@dataclass(frozen=True)
class Staff:
    """A staff member who can log in at the register."""

    staff_id: str
    name: str
    code: str
    is_admin: bool = False


@dataclass(frozen=True)
class SelectedAddon:
    """Value copy of an addon choice taken when the item was added."""

    category_name: str
    option_name: str
    price_adjustment: Decimal


@dataclass
class OrderItem:
    """One cart line with product and addon data snapshotted by value."""

    product_id: str
    product_name: str
    base_price: Decimal
    quantity: int
    selected_addons: list[SelectedAddon] = field(default_factory=list)
    total_price: Decimal = Decimal("0")


@dataclass
class Order:
    """A customer transaction owned by one staff member."""

    order_id: str
    staff_id: str
    staff_name: str
    items: list[OrderItem] = field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    created_at: int = 0
    is_printed: bool = False

    @property
    def number(self) -> str:
        """Short order number printed on receipts."""
        _, _, suffix = self.order_id.partition("-")
        return suffix or self.order_id


@dataclass
class Settings:
    """The single configuration record."""

    display_name: str = "Dyad Cafe"
    admin_code: str = "0000"
    auto_print: bool = True
    currency_symbol: str = "SAR"
    header_message: str = "Order Receipt"
    footer_message: str = "Thank you for your visit!"
    wifi_ssid: str = "DyadCafe_Guest"
    wifi_password: str = "password123"
    receipt_width: int = 300


class SessionState(Enum):
    NO_SESSION = "no_session"
    ACTIVE_EMPTY = "active_empty"
    ACTIVE_NON_EMPTY = "active_non_empty"
