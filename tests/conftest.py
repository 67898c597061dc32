from __future__ import annotations

import pytest

from cafe_pos.data import default_products, default_staff
from cafe_pos.models import Product, Staff
from cafe_pos.persistence import DocumentStore
from cafe_pos.session import OrderSession


@pytest.fixture()
def store(tmp_path) -> DocumentStore:
    return DocumentStore(tmp_path / "pos.db")


@pytest.fixture()
def products() -> dict[str, Product]:
    return {product.name: product for product in default_products()}


@pytest.fixture()
def ahmed() -> Staff:
    return next(member for member in default_staff() if member.name == "Ahmed")


class RecordingDispatcher:
    """Stands in for the receipt pipeline; remembers what it was handed."""

    def __init__(self, fail: bool = False) -> None:
        self.calls = []
        self.fail = fail

    def __call__(self, order, settings) -> None:
        self.calls.append((order, settings))
        if self.fail:
            raise RuntimeError("printer on fire")


@pytest.fixture()
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture()
def failing_dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher(fail=True)


@pytest.fixture()
def session(store, dispatcher, ahmed) -> OrderSession:
    active = OrderSession(store, dispatch_receipt=dispatcher)
    active.login(ahmed)
    return active