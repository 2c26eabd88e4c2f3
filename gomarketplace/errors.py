"""
Cart Errors

Message constants and the exception hierarchy shared by the cart package.
"""

# Scope errors
ERROR_STORE_NOT_OPEN = "CartStore is not open; use 'async with CartStore(...)' or await open()"
ERROR_NO_CART_SCOPE = "use_cart must be used within a cart_scope"

# Input errors
ERROR_INVALID_PRODUCT = "Invalid product for cart"

# Persistence errors
ERROR_CORRUPTED_CART = "Corrupted cart data"
ERROR_UNSUPPORTED_VERSION = "Unsupported cart data version"
ERROR_STORAGE_UNAVAILABLE = "Cart storage unavailable"


class CartError(Exception):
    """Base class for cart errors."""


class CartNotInitializedError(CartError, RuntimeError):
    """Store used before open() or after close()."""

    def __init__(self, message: str = ERROR_STORE_NOT_OPEN):
        super().__init__(message)


class CartContextError(CartError, RuntimeError):
    """use_cart() called with no store bound."""

    def __init__(self, message: str = ERROR_NO_CART_SCOPE):
        super().__init__(message)


class InvalidProductError(CartError, ValueError):
    """Add-to-cart candidate failed validation."""


class CartDecodeError(CartError, ValueError):
    """Persisted cart payload could not be decoded."""


class StorageError(CartError):
    """Key-value backend failed to read or write."""
