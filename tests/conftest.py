"""Pytest configuration and fixtures"""
import os

import pytest
import pytest_asyncio

# Set test environment variables before gomarketplace.config is imported
os.environ.setdefault("CART_STORAGE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from gomarketplace.cart import CartStore, MemoryStorage  # noqa: E402
from gomarketplace.errors import StorageError  # noqa: E402


class RecordingStorage(MemoryStorage):
    """Memory storage that keeps every value written, in order."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.writes = []

    async def set(self, key, value):
        self.writes.append((key, value))
        await super().set(key, value)


class FlakyStorage(MemoryStorage):
    """Memory storage whose writes fail while `failing` is set."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.failing = True
        self.failed_writes = 0

    async def set(self, key, value):
        if self.failing:
            self.failed_writes += 1
            raise StorageError("disk full")
        await super().set(key, value)


@pytest.fixture
def sample_product():
    """Sample product data as the catalog screen passes it"""
    return {
        "id": "product-123",
        "title": "Ceramic Mug",
        "image_url": "https://cdn.example.com/mug.png",
        "price": 19.9,
    }


@pytest.fixture
def other_product():
    """Second sample product"""
    return {
        "id": "product-456",
        "title": "Canvas Tote",
        "image_url": "https://cdn.example.com/tote.png",
        "price": "12.50",
    }


@pytest.fixture
def memory_storage():
    return RecordingStorage()


@pytest.fixture
def flaky_storage():
    return FlakyStorage()


@pytest_asyncio.fixture
async def store(memory_storage):
    """Open cart store over recording memory storage"""
    async with CartStore(memory_storage) as cart:
        yield cart
