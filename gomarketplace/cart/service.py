"""Cart store: in-memory cart state with ordered background persistence."""
import asyncio
import contextlib
from dataclasses import replace
from decimal import Decimal
from typing import Any, Mapping, Optional, Tuple, Union

from gomarketplace.db import StorageKeys
from gomarketplace.errors import CartNotInitializedError
from gomarketplace.logging import get_logger, sanitize_id_for_logging
from gomarketplace.money import sum_money, to_float
from .models import CartItem, ProductInput, decode_items, encode_items
from .storage import KeyValueStorage

logger = get_logger(__name__)

Products = Tuple[CartItem, ...]


class CartStore:
    """
    Holds the cart for one app session and mirrors it to key-value storage.

    Features:
    - Hydrates from storage once on open(); unreadable data means an empty cart
    - Mutations are synchronous and publish a new immutable snapshot
    - Every change enqueues the full serialized cart; a single writer task
      stores the snapshots in mutation order
    - Write failures are logged, never raised to callers

    Usage:
        async with CartStore(create_storage()) as cart:
            cart.add_to_cart({"id": "1", "title": "Mug", "image_url": "...", "price": 10})
    """

    def __init__(self, storage: KeyValueStorage, key: Optional[str] = None):
        self.storage = storage
        self.key = key or StorageKeys.cart_key()
        self._items: Products = ()
        self._queue: Optional[asyncio.Queue] = None
        self._writer: Optional[asyncio.Task] = None
        self._lifecycle_lock = asyncio.Lock()

    # ==================== LIFECYCLE ====================

    @property
    def is_open(self) -> bool:
        return self._writer is not None

    async def open(self) -> "CartStore":
        """Hydrate from storage and start the persistence writer."""
        async with self._lifecycle_lock:
            if self.is_open:
                return self
            await self.hydrate()
            self._queue = asyncio.Queue()
            self._writer = asyncio.create_task(self._drain_writes(), name="cart-writer")
        return self

    async def close(self) -> None:
        """Wait for queued writes, then stop the writer."""
        async with self._lifecycle_lock:
            if not self.is_open:
                return
            await self.flush()
            writer, self._writer = self._writer, None
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await writer
            self._queue = None

    async def __aenter__(self) -> "CartStore":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def hydrate(self) -> None:
        """Load the persisted cart, if any. Never raises on bad or missing data."""
        # Absent or unreadable data means an empty cart, also on reopen
        self._items = ()
        try:
            payload = await self.storage.get(self.key)
        except Exception as e:
            logger.warning(f"Failed to read persisted cart, starting empty: {e}")
            return

        if not payload:
            logger.debug("No persisted cart found")
            return

        try:
            items = decode_items(payload)
        except ValueError as e:
            logger.warning(f"Ignoring persisted cart: {e}")
            return

        self._items = tuple(items)
        logger.info(f"Cart hydrated with {len(self._items)} items")

    async def flush(self) -> None:
        """Wait until every queued snapshot has been handed to storage."""
        if self._queue is not None:
            await self._queue.join()

    # ==================== READS ====================

    @property
    def products(self) -> Products:
        """Current cart snapshot in insertion order."""
        self._require_open()
        return self._items

    def get(self, product_id: str) -> Optional[CartItem]:
        index = self._index_of(product_id)
        return None if index == -1 else self._items[index]

    @property
    def total_items(self) -> int:
        """Total number of units in cart."""
        return sum(item.quantity for item in self.products)

    @property
    def subtotal(self) -> Decimal:
        return sum_money(item.total_price for item in self.products)

    def summary(self) -> dict:
        """Plain-number cart summary for display code."""
        products = self.products
        return {
            "is_empty": not products,
            "total_items": self.total_items,
            "items": [
                {
                    "id": item.id,
                    "title": item.title,
                    "image_url": item.image_url,
                    "quantity": item.quantity,
                    "unit_price": to_float(item.price),
                    "total": to_float(item.total_price),
                }
                for item in products
            ],
            "subtotal": to_float(self.subtotal),
        }

    # ==================== MUTATIONS ====================

    def add_to_cart(self, candidate: Union[ProductInput, Mapping[str, Any]]) -> Products:
        """
        Add one unit of a product.

        A product already in the cart is incremented instead of duplicated.

        Raises:
            InvalidProductError: if the candidate is missing fields or has a bad price
        """
        self._require_open()
        product = ProductInput.parse(candidate)

        if self._index_of(product.id) != -1:
            return self.increment(product.id)

        logger.info(f"Added to cart: {sanitize_id_for_logging(product.id)}")
        return self._publish(self._items + (product.to_cart_item(),))

    def increment(self, product_id: str) -> Products:
        """Add one unit of a product already in the cart. Unknown ids are ignored."""
        index = self._index_of(product_id)
        if index == -1:
            return self._items

        item = self._items[index]
        updated = replace(item, quantity=item.quantity + 1)
        logger.debug(f"Incremented {sanitize_id_for_logging(product_id)} to {updated.quantity}")
        return self._publish(self._items[:index] + (updated,) + self._items[index + 1:])

    def decrement(self, product_id: str) -> Products:
        """Remove one unit; the last unit removes the item. Unknown ids are ignored."""
        index = self._index_of(product_id)
        if index == -1:
            return self._items

        item = self._items[index]
        if item.quantity == 1:
            logger.info(f"Removed from cart: {sanitize_id_for_logging(product_id)}")
            return self._publish(self._items[:index] + self._items[index + 1:])

        updated = replace(item, quantity=item.quantity - 1)
        logger.debug(f"Decremented {sanitize_id_for_logging(product_id)} to {updated.quantity}")
        return self._publish(self._items[:index] + (updated,) + self._items[index + 1:])

    def remove(self, product_id: str) -> Products:
        """Drop a product whatever its quantity."""
        index = self._index_of(product_id)
        if index == -1:
            return self._items

        logger.info(f"Removed from cart: {sanitize_id_for_logging(product_id)}")
        return self._publish(self._items[:index] + self._items[index + 1:])

    def clear(self) -> Products:
        self._require_open()
        if not self._items:
            return self._items

        logger.info("Cart cleared")
        return self._publish(())

    # ==================== INTERNALS ====================

    def _require_open(self) -> None:
        if not self.is_open:
            raise CartNotInitializedError()

    def _index_of(self, product_id: str) -> int:
        self._require_open()
        for index, item in enumerate(self._items):
            if item.id == product_id:
                return index
        return -1

    def _publish(self, items: Products) -> Products:
        self._items = items
        self._queue.put_nowait(encode_items(items))
        return items

    async def _drain_writes(self) -> None:
        while True:
            payload = await self._queue.get()
            try:
                await self.storage.set(self.key, payload)
            except Exception as e:
                # Memory already holds the new state; the next successful write catches storage up
                logger.error(f"Failed to persist cart: {e}")
            finally:
                self._queue.task_done()
