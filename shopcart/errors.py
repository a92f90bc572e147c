"""
Cart errors.

Message constants are centralized to avoid string duplication; the exception
hierarchy mirrors the cart's failure modes.
"""

from typing import Any

# Item errors
ERROR_ITEM_ID_REQUIRED = "Item id is required"
ERROR_ITEM_PRICE_REQUIRED = "Item price is required"
ERROR_ITEM_PRICE_INVALID = "Item price must be a non-negative amount"
ERROR_ITEM_QUANTITY_INVALID = "Item quantity must be a positive integer"
ERROR_ITEM_FIELD_UNKNOWN = "Unknown item field"
ERROR_ITEM_NOT_FOUND = "Item not found in cart"

# Identity errors
ERROR_HASH_EXHAUSTED = "Could not generate a unique item hash"

# Path errors
ERROR_PATH_INVALID = "Invalid attribute path"

# Infrastructure errors
ERROR_STORAGE_UNAVAILABLE = "Cart storage unavailable"
ERROR_CONFIG_INVALID = "Invalid cart configuration"


class CartError(Exception):
    """Base error for cart operations."""

    code = "CART_ERROR"

    def __init__(self, message: str, code: str | None = None, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context = context


class InvalidItemError(CartError, ValueError):
    """Item is missing a required field or a field has an invalid value."""

    code = "INVALID_ITEM"


class InvalidQuantityError(InvalidItemError):
    """Quantity is zero, negative or not an integer."""

    code = "INVALID_QUANTITY"

    def __init__(self, quantity: Any, message: str = ERROR_ITEM_QUANTITY_INVALID) -> None:
        super().__init__(f"{message}: {quantity!r}", quantity=quantity)
        self.quantity = quantity


class HashGenerationError(CartError):
    """The force-unique hash loop ran out of attempts."""

    code = "HASH_EXHAUSTED"

    def __init__(self, attempts: int) -> None:
        super().__init__(f"{ERROR_HASH_EXHAUSTED} after {attempts} attempts", attempts=attempts)
        self.attempts = attempts


class ItemNotFoundError(CartError, LookupError):
    """Operation referenced an item hash that is not in the cart."""

    code = "ITEM_NOT_FOUND"

    def __init__(self, item_hash: str) -> None:
        super().__init__(f"{ERROR_ITEM_NOT_FOUND}: {item_hash}", item_hash=item_hash)
        self.item_hash = item_hash


class InvalidPathError(CartError, ValueError):
    """Dotted attribute/option path is malformed."""

    code = "INVALID_PATH"


class CartStorageError(CartError):
    """The key-value store failed to read or write cart state."""

    code = "STORAGE_UNAVAILABLE"


class CartConfigError(CartError, ValueError):
    """Settings could not be parsed."""

    code = "CONFIG_INVALID"
