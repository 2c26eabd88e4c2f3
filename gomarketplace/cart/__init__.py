"""Cart package: models, storage, store, and scoped access."""
from .models import CartItem, ProductInput, decode_items, encode_items
from .storage import FileStorage, KeyValueStorage, MemoryStorage, RedisStorage, create_storage
from .service import CartStore
from .context import cart_scope, use_cart

__all__ = [
    "CartItem",
    "ProductInput",
    "encode_items",
    "decode_items",
    "KeyValueStorage",
    "MemoryStorage",
    "FileStorage",
    "RedisStorage",
    "create_storage",
    "CartStore",
    "cart_scope",
    "use_cart",
]
