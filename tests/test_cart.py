"""
Tests for cart models and the storage codec
"""

import dataclasses
import json
from decimal import Decimal

import pytest

from gomarketplace.cart import CartItem, ProductInput, decode_items, encode_items
from gomarketplace.errors import CartDecodeError, InvalidProductError


def make_item(item_id="prod-1", quantity=1, price="10.00"):
    return CartItem(
        id=item_id,
        title=f"Product {item_id}",
        image_url=f"https://cdn.example.com/{item_id}.png",
        price=price,
        quantity=quantity,
    )


class TestCartItem:
    """Tests for CartItem dataclass."""

    def test_price_normalized_to_decimal(self):
        """Float prices become exact decimals."""
        item = make_item(price=10.5)

        assert item.price == Decimal("10.5")
        assert isinstance(item.price, Decimal)

    def test_total_price_calculation(self):
        """Test total price for quantity."""
        item = make_item(price="9.99", quantity=3)

        assert item.total_price == Decimal("29.97")

    def test_item_is_read_only(self):
        """Snapshots handed to consumers cannot be mutated."""
        item = make_item()

        with pytest.raises(dataclasses.FrozenInstanceError):
            item.quantity = 5

    def test_to_dict(self):
        """Test serialization to dict."""
        data = make_item(price="10.50", quantity=2).to_dict()

        assert data == {
            "id": "prod-1",
            "title": "Product prod-1",
            "image_url": "https://cdn.example.com/prod-1.png",
            "price": "10.50",
            "quantity": 2,
        }

    def test_from_dict(self):
        """Test deserialization from dict."""
        item = CartItem.from_dict({
            "id": "prod-1",
            "title": "Test",
            "image_url": "img",
            "price": "100.00",
            "quantity": 2,
        })

        assert item.id == "prod-1"
        assert item.price == Decimal("100.00")
        assert item.quantity == 2

    def test_from_dict_missing_field(self):
        """Missing fields are reported as corrupted data."""
        with pytest.raises(CartDecodeError, match="price"):
            CartItem.from_dict({"id": "prod-1", "title": "Test", "image_url": "img", "quantity": 1})

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", True])
    def test_from_dict_rejects_bad_quantity(self, quantity):
        """Stored quantities must be positive integers."""
        with pytest.raises(CartDecodeError):
            CartItem.from_dict({
                "id": "prod-1", "title": "Test", "image_url": "img",
                "price": "1.00", "quantity": quantity,
            })

    def test_from_dict_rejects_negative_price(self):
        """Stored prices follow the same rule as add-to-cart input."""
        with pytest.raises(CartDecodeError, match="negative"):
            CartItem.from_dict({
                "id": "prod-1", "title": "Test", "image_url": "img",
                "price": "-0.01", "quantity": 1,
            })

    def test_from_dict_rejects_non_numeric_price(self):
        with pytest.raises(CartDecodeError):
            CartItem.from_dict({
                "id": "prod-1", "title": "Test", "image_url": "img",
                "price": "free", "quantity": 1,
            })


class TestProductInput:
    """Tests for add-to-cart candidate validation."""

    def test_parse_valid_mapping(self, sample_product):
        """Valid product data is accepted."""
        product = ProductInput.parse(sample_product)

        assert product.id == "product-123"
        assert product.price == Decimal("19.9")

    def test_quantity_in_candidate_is_ignored(self, sample_product):
        """New cart items always start at quantity 1."""
        product = ProductInput.parse({**sample_product, "quantity": 7})

        assert product.to_cart_item().quantity == 1

    def test_parse_returns_existing_instance(self, sample_product):
        product = ProductInput.parse(sample_product)

        assert ProductInput.parse(product) is product

    def test_missing_price_rejected(self, sample_product):
        """Missing price raises a ValueError naming the field."""
        del sample_product["price"]

        with pytest.raises(InvalidProductError, match="price") as exc_info:
            ProductInput.parse(sample_product)

        assert isinstance(exc_info.value, ValueError)

    def test_negative_price_rejected(self, sample_product):
        with pytest.raises(InvalidProductError):
            ProductInput.parse({**sample_product, "price": -1})

    def test_empty_id_rejected(self, sample_product):
        with pytest.raises(InvalidProductError, match="id"):
            ProductInput.parse({**sample_product, "id": ""})

    def test_non_mapping_rejected(self):
        with pytest.raises(InvalidProductError):
            ProductInput.parse(["product-123", "Mug"])


class TestCodec:
    """Tests for the versioned cart document."""

    def test_round_trip_preserves_order_and_fields(self):
        """Encoding then decoding reproduces an equal list."""
        items = [make_item("b", 2, "3.30"), make_item("a", 1, "10"), make_item("c", 5, "0.99")]

        decoded = decode_items(encode_items(items))

        assert decoded == items
        assert [item.id for item in decoded] == ["b", "a", "c"]

    def test_document_is_versioned(self):
        data = json.loads(encode_items([make_item()]))

        assert data["version"] == 1
        assert data["items"][0]["id"] == "prod-1"

    def test_empty_cart(self):
        assert decode_items(encode_items([])) == []

    def test_decode_legacy_array(self):
        """Bare arrays with numeric prices from older app builds still load."""
        legacy = json.dumps([
            {"id": "1", "title": "Mug", "image_url": "mug.png", "price": 19.9, "quantity": 2},
        ])

        items = decode_items(legacy)

        assert items == [CartItem(id="1", title="Mug", image_url="mug.png", price=Decimal("19.9"), quantity=2)]

    def test_decode_invalid_json(self):
        with pytest.raises(CartDecodeError):
            decode_items("{not json")

    def test_decode_unknown_version(self):
        with pytest.raises(CartDecodeError, match="version"):
            decode_items(json.dumps({"version": 99, "items": []}))

    def test_decode_items_not_a_list(self):
        with pytest.raises(CartDecodeError):
            decode_items(json.dumps({"version": 1, "items": {"id": "1"}}))

    def test_decode_duplicate_ids(self):
        """Duplicate ids break the cart invariant and are rejected."""
        payload = encode_items([make_item("a"), make_item("a", 2)])

        with pytest.raises(CartDecodeError, match="duplicate"):
            decode_items(payload)

    def test_decode_deeply_nested_json(self):
        with pytest.raises(CartDecodeError):
            decode_items("[" * 100000 + "]" * 100000)

    def test_decode_scalar_document(self):
        with pytest.raises(CartDecodeError):
            decode_items("42")
