"""
Storage Clients

Provides the singleton Upstash Redis client used by the redis cart backend
and the key names the cart is stored under.
"""

from typing import Optional

from upstash_redis.asyncio import Redis as AsyncRedis

from gomarketplace import config


# Singleton instance
_redis_client: Optional[AsyncRedis] = None


def get_redis() -> AsyncRedis:
    """
    Get async Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    global _redis_client

    if _redis_client is None:
        if not config.UPSTASH_REDIS_REST_URL or not config.UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _redis_client = AsyncRedis(
            url=config.UPSTASH_REDIS_REST_URL,
            token=config.UPSTASH_REDIS_REST_TOKEN,
        )

    return _redis_client


class StorageKeys:
    """Key names for persisted app data."""

    NAMESPACE = "@GoMarketPlace"

    CART_ITEMS = f"{NAMESPACE}:items"

    @staticmethod
    def cart_key() -> str:
        """Configured cart key (defaults to CART_ITEMS)."""
        return config.CART_STORAGE_KEY or StorageKeys.CART_ITEMS
