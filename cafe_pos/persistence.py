"""SQLite-backed document store for products, staff, orders and settings."""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import asdict, fields
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, TypeVar

from cafe_pos.config import DB_PATH
from cafe_pos.data import default_products, default_settings, default_staff
from cafe_pos.errors import StorageError
from cafe_pos.models import AddonCategory, AddonOption, Order, OrderItem, Product, SelectedAddon, Settings, Staff

logger = logging.getLogger(__name__)

PRODUCTS_KEY = "products"
STAFF_KEY = "staff"
ORDERS_KEY = "orders"
SETTINGS_KEY = "settings"

_T = TypeVar("_T")

_DECODE_ERRORS = (KeyError, TypeError, ValueError, ArithmeticError, AttributeError)


def _money(value: Any) -> Decimal:
    # str() first so legacy float documents decode to their printed value.
    return Decimal(str(value))


def encode_product(product: Product) -> dict[str, Any]:
    return {
        "id": product.product_id,
        "name": product.name,
        "price": str(product.price),
        "image_url": product.image_url,
        "addon_categories": [
            {
                "id": category.category_id,
                "name": category.name,
                "is_single_select": category.is_single_select,
                "options": [
                    {"id": option.option_id, "name": option.name, "price_adjustment": str(option.price_adjustment)}
                    for option in category.options
                ],
            }
            for category in product.addon_categories
        ],
    }


def decode_product(doc: dict[str, Any]) -> Product:
    return Product(
        product_id=str(doc["id"]),
        name=str(doc["name"]),
        price=_money(doc["price"]),
        image_url=str(doc.get("image_url", "/placeholder.svg")),
        addon_categories=tuple(
            AddonCategory(
                category_id=str(category["id"]),
                name=str(category["name"]),
                is_single_select=bool(category["is_single_select"]),
                options=tuple(
                    AddonOption(str(option["id"]), str(option["name"]), _money(option["price_adjustment"]))
                    for option in category["options"]
                ),
            )
            for category in doc.get("addon_categories", [])
        ),
    )


def encode_staff(staff: Staff) -> dict[str, Any]:
    return {"id": staff.staff_id, "name": staff.name, "code": staff.code, "is_admin": staff.is_admin}


def decode_staff(doc: dict[str, Any]) -> Staff:
    return Staff(
        staff_id=str(doc["id"]),
        name=str(doc["name"]),
        code=str(doc["code"]),
        is_admin=bool(doc.get("is_admin", False)),
    )


def encode_order(order: Order) -> dict[str, Any]:
    return {
        "id": order.order_id,
        "staff_id": order.staff_id,
        "staff_name": order.staff_name,
        "items": [
            {
                "product_id": item.product_id,
                "product_name": item.product_name,
                "base_price": str(item.base_price),
                "quantity": item.quantity,
                "selected_addons": [
                    {
                        "category_name": addon.category_name,
                        "option_name": addon.option_name,
                        "price_adjustment": str(addon.price_adjustment),
                    }
                    for addon in item.selected_addons
                ],
                "total_price": str(item.total_price),
            }
            for item in order.items
        ],
        "total_amount": str(order.total_amount),
        "created_at": order.created_at,
        "is_printed": order.is_printed,
    }


def decode_order(doc: dict[str, Any]) -> Order:
    return Order(
        order_id=str(doc["id"]),
        staff_id=str(doc["staff_id"]),
        staff_name=str(doc["staff_name"]),
        items=[
            OrderItem(
                product_id=str(item["product_id"]),
                product_name=str(item["product_name"]),
                base_price=_money(item["base_price"]),
                quantity=int(item["quantity"]),
                selected_addons=[
                    SelectedAddon(
                        category_name=str(addon["category_name"]),
                        option_name=str(addon["option_name"]),
                        price_adjustment=_money(addon["price_adjustment"]),
                    )
                    for addon in item.get("selected_addons", [])
                ],
                total_price=_money(item["total_price"]),
            )
            for item in doc["items"]
        ],
        total_amount=_money(doc["total_amount"]),
        created_at=int(doc["created_at"]),
        is_printed=bool(doc.get("is_printed", False)),
    )


def encode_settings(settings: Settings) -> dict[str, Any]:
    return asdict(settings)


def decode_settings(doc: dict[str, Any]) -> Settings:
    """Decode settings, filling missing fields from the defaults."""
    defaults = asdict(default_settings())
    known = {f.name for f in fields(Settings)}
    merged = {**defaults, **{key: value for key, value in doc.items() if key in known}}
    for key, value in merged.items():
        expected = type(defaults[key])
        # bool is an int subclass, so compare exact types.
        if type(value) is not expected:
            raise TypeError(f"settings field {key!r} must be {expected.__name__}, got {type(value).__name__}")
    if merged["receipt_width"] <= 0:
        raise ValueError(f"receipt_width must be positive, got {merged['receipt_width']}")
    return Settings(**merged)


class DocumentStore:
    """
    Whole-collection read/write over four named JSON documents.

    Reads never raise: absent, unreadable or malformed documents yield the
    seed defaults. Writes never raise either: a failed write is logged and
    dropped, and the written value stays readable from memory for the rest
    of the session.
    """

    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = Path(db_path)
        self._written: dict[str, str] = {}

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """
        )
        return conn

    def bootstrap_schema(self) -> bool:
        """Create the backing schema; return False if the store is unusable."""
        try:
            self._execute("SELECT 1", ())
        except StorageError as exc:
            logger.error("store_bootstrap_failed error=%s", exc)
            return False
        return True

    def _execute(self, sql: str, params: tuple[Any, ...]) -> list[tuple[Any, ...]]:
        try:
            conn = self._connect()
            try:
                with conn:
                    return conn.execute(sql, params).fetchall()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"{self.db_path}: {exc}") from exc

    def _read_raw(self, key: str) -> str | None:
        if key in self._written:
            return self._written[key]
        try:
            rows = self._execute("SELECT value FROM documents WHERE key = ?", (key,))
        except StorageError as exc:
            logger.error("store_read_failed key=%s error=%s", key, exc)
            return None
        return rows[0][0] if rows else None

    def _write_raw(self, key: str, value: str) -> None:
        self._written[key] = value
        try:
            self._execute(
                """
                INSERT INTO documents (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value),
            )
        except StorageError as exc:
            logger.error("store_write_dropped key=%s error=%s", key, exc)

    def _read(self, key: str, decode: Callable[[Any], _T], default: Callable[[], _T]) -> _T:
        raw = self._read_raw(key)
        if raw is None:
            return default()
        try:
            return decode(json.loads(raw))
        except (json.JSONDecodeError, *_DECODE_ERRORS) as exc:
            logger.warning("store_document_corrupt key=%s error=%r; using defaults", key, exc)
            return default()

    def _write(self, key: str, doc: Any) -> None:
        self._write_raw(key, json.dumps(doc, ensure_ascii=False))

    # Products

    def get_products(self) -> list[Product]:
        return self._read(PRODUCTS_KEY, lambda docs: [decode_product(doc) for doc in docs], default_products)

    def set_products(self, products: list[Product]) -> None:
        self._write(PRODUCTS_KEY, [encode_product(product) for product in products])

    def upsert_product(self, product: Product) -> None:
        """Replace the product with the same id, or append it."""
        products = self.get_products()
        for idx, existing in enumerate(products):
            if existing.product_id == product.product_id:
                products[idx] = product
                break
        else:
            products.append(product)
        self.set_products(products)

    def delete_product(self, product_id: str) -> None:
        self.set_products([product for product in self.get_products() if product.product_id != product_id])

    # Staff

    def get_staff(self) -> list[Staff]:
        return self._read(STAFF_KEY, lambda docs: [decode_staff(doc) for doc in docs], default_staff)

    def set_staff(self, staff: list[Staff]) -> None:
        self._write(STAFF_KEY, [encode_staff(member) for member in staff])

    # Orders

    def get_orders(self) -> list[Order]:
        return self._read(ORDERS_KEY, lambda docs: [decode_order(doc) for doc in docs], list)

    def set_orders(self, orders: list[Order]) -> None:
        self._write(ORDERS_KEY, [encode_order(order) for order in orders])

    def save_order(self, order: Order) -> None:
        """Upsert by order id: replace in place if present, otherwise append."""
        orders = self.get_orders()
        for idx, existing in enumerate(orders):
            if existing.order_id == order.order_id:
                orders[idx] = order
                break
        else:
            orders.append(order)
        self.set_orders(orders)
        logger.info("order_saved order_id=%s items=%d total=%s", order.order_id, len(order.items), order.total_amount)

    # Settings

    def get_settings(self) -> Settings:
        return self._read(SETTINGS_KEY, decode_settings, default_settings)

    def set_settings(self, settings: Settings) -> None:
        self._write(SETTINGS_KEY, encode_settings(settings))

    def clear_all(self) -> None:
        """Drop all four documents so subsequent reads return the defaults."""
        self._written.clear()
        try:
            self._execute(
                "DELETE FROM documents WHERE key IN (?, ?, ?, ?)",
                (PRODUCTS_KEY, STAFF_KEY, ORDERS_KEY, SETTINGS_KEY),
            )
        except StorageError as exc:
            logger.error("store_clear_failed error=%s", exc)
