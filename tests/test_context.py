"""
Tests for scoped cart access
"""

import asyncio

import pytest

from gomarketplace.cart import CartStore, MemoryStorage, cart_scope, use_cart
from gomarketplace.errors import CartContextError, CartNotInitializedError


class TestCartScope:
    """Tests for cart_scope / use_cart."""

    def test_use_cart_outside_scope(self):
        """Using the cart with no store bound fails loudly."""
        with pytest.raises(CartContextError, match="use_cart must be used within a cart_scope"):
            use_cart()

    def test_outside_scope_error_is_runtime_error(self):
        with pytest.raises(RuntimeError):
            use_cart()

    @pytest.mark.asyncio
    async def test_use_cart_inside_scope(self, store, sample_product):
        with cart_scope(store) as bound:
            assert bound is store
            use_cart().add_to_cart(sample_product)

        assert store.products[0].id == "product-123"

    @pytest.mark.asyncio
    async def test_scope_resets_on_exit(self, store):
        with cart_scope(store):
            pass

        with pytest.raises(CartContextError):
            use_cart()

    @pytest.mark.asyncio
    async def test_scope_resets_on_error(self, store):
        with pytest.raises(KeyError):
            with cart_scope(store):
                raise KeyError("boom")

        with pytest.raises(CartContextError):
            use_cart()

    @pytest.mark.asyncio
    async def test_nested_scopes(self, store):
        """The innermost scope wins and the outer one is restored after it."""
        async with CartStore(MemoryStorage(), key="guest:items") as guest:
            with cart_scope(store):
                with cart_scope(guest):
                    assert use_cart() is guest
                assert use_cart() is store

    @pytest.mark.asyncio
    async def test_tasks_inherit_scope(self, store):
        """Tasks started inside a scope see its store."""
        async def read_store():
            return use_cart()

        with cart_scope(store):
            found = await asyncio.create_task(read_store())

        assert found is store

    def test_scope_with_unopened_store(self):
        """Binding does not open the store; reads still fail loudly."""
        with cart_scope(CartStore(MemoryStorage())):
            with pytest.raises(CartNotInitializedError):
                use_cart().products
