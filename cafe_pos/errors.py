"""Error taxonomy shared by the order core and the UI."""

from __future__ import annotations


class PosError(Exception):
    """Base class for every error raised by the core."""


class ValidationError(PosError):
    """A rejected mutation; no state was changed."""


class NoActiveOrder(ValidationError):
    def __init__(self) -> None:
        super().__init__("No active order; log in first")


class SessionActive(ValidationError):
    def __init__(self, staff_name: str) -> None:
        super().__init__(f"{staff_name} is still logged in; log out first")


class InvalidIndex(ValidationError):
    def __init__(self, index: int, size: int) -> None:
        super().__init__(f"Item index {index} out of range (order has {size} items)")
        self.index = index


class InvalidQuantity(ValidationError):
    def __init__(self, quantity: int) -> None:
        super().__init__(f"Quantity must be positive, got {quantity}")
        self.quantity = quantity


class EmptyOrder(ValidationError):
    def __init__(self) -> None:
        super().__init__("Order is empty and cannot be confirmed")


class InvalidAddonSelection(ValidationError):
    pass


class AuthError(PosError):
    """Unknown or malformed access code."""


class StorageError(PosError):
    """Read or write failure against the document store."""


class RenderError(PosError):
    """Receipt capture or document assembly failure."""
