"""Scoped access to the session's cart store.

Usage:
    async with CartStore(storage) as store:
        with cart_scope(store):
            ...
            use_cart().increment(product_id)
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

from gomarketplace.errors import CartContextError
from .service import CartStore

# Store bound by the innermost active cart_scope
_current_cart: ContextVar[Optional[CartStore]] = ContextVar("_current_cart", default=None)


@contextmanager
def cart_scope(store: CartStore) -> Iterator[CartStore]:
    """Bind `store` for use_cart() calls made inside the block."""
    token = _current_cart.set(store)
    try:
        yield store
    finally:
        _current_cart.reset(token)


def use_cart() -> CartStore:
    """
    Get the store bound by the enclosing cart_scope.

    Raises:
        CartContextError: when called outside any cart_scope
    """
    store = _current_cart.get()
    if store is None:
        raise CartContextError()
    return store
