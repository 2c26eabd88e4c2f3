"""Cart models and the versioned storage codec."""
import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from gomarketplace.errors import (
    ERROR_CORRUPTED_CART,
    ERROR_INVALID_PRODUCT,
    ERROR_UNSUPPORTED_VERSION,
    CartDecodeError,
    InvalidProductError,
)
from gomarketplace.money import multiply, round_money, to_decimal

# Current on-disk format; version 0 is the bare JSON array of older app builds
SCHEMA_VERSION = 1

ITEM_FIELDS = ("id", "title", "image_url", "price", "quantity")


@dataclass(frozen=True)
class CartItem:
    """Single product in the cart."""
    id: str
    title: str
    image_url: str
    price: Decimal
    quantity: int = 1

    def __post_init__(self):
        object.__setattr__(self, "price", to_decimal(self.price))

    @property
    def total_price(self) -> Decimal:
        """Total price for all units."""
        return round_money(multiply(self.price, self.quantity))

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "image_url": self.image_url,
            "price": str(self.price),
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CartItem":
        """
        Create from a stored dictionary.

        Raises:
            CartDecodeError: if a field is missing or has the wrong type
        """
        if not isinstance(data, Mapping):
            raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: item is not an object")

        missing = [name for name in ITEM_FIELDS if name not in data]
        if missing:
            raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: missing {', '.join(missing)}")

        item_id = data["id"]
        if not isinstance(item_id, str) or not item_id:
            raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: id must be a non-empty string")
        for name in ("title", "image_url"):
            if not isinstance(data[name], str):
                raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: {name} must be a string")

        quantity = data["quantity"]
        # bool is an int subclass
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: quantity must be a positive integer")

        raw_price = data["price"]
        if isinstance(raw_price, bool) or not isinstance(raw_price, (str, int, float)):
            raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: price must be numeric")
        try:
            price = Decimal(str(raw_price))
        except InvalidOperation as e:
            raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: price must be numeric") from e
        if not price.is_finite():
            raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: price must be finite")
        if price < 0:
            raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: price must not be negative")

        return cls(
            id=item_id,
            title=data["title"],
            image_url=data["image_url"],
            price=price,
            quantity=quantity,
        )


class ProductInput(BaseModel):
    """Product data accepted by add_to_cart (a cart item without quantity)."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    image_url: str
    price: Decimal = Field(..., ge=0)

    @field_validator("price", mode="before")
    @classmethod
    def _float_price_via_str(cls, value):
        # 19.9 becomes Decimal("19.9"), not its binary expansion
        if isinstance(value, float):
            return to_decimal(value)
        return value

    @classmethod
    def parse(cls, candidate: Union["ProductInput", Mapping[str, Any]]) -> "ProductInput":
        """
        Validate a candidate product.

        Raises:
            InvalidProductError: if required fields are missing or invalid
        """
        if isinstance(candidate, cls):
            return candidate
        if not isinstance(candidate, Mapping):
            raise InvalidProductError(f"{ERROR_INVALID_PRODUCT}: expected a mapping")
        try:
            return cls.model_validate(dict(candidate))
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")})
            raise InvalidProductError(f"{ERROR_INVALID_PRODUCT}: {', '.join(fields)}") from e

    def to_cart_item(self, quantity: int = 1) -> CartItem:
        return CartItem(
            id=self.id,
            title=self.title,
            image_url=self.image_url,
            price=self.price,
            quantity=quantity,
        )


def encode_items(items: Iterable[CartItem]) -> str:
    """Serialize the cart as a versioned JSON document."""
    return json.dumps({
        "version": SCHEMA_VERSION,
        "items": [item.to_dict() for item in items],
    })


def decode_items(payload: str) -> List[CartItem]:
    """
    Parse a stored cart document.

    Accepts the current versioned document and the legacy bare array.

    Raises:
        CartDecodeError: on malformed JSON, unknown version, invalid items,
            or duplicate ids
    """
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, TypeError, RecursionError) as e:
        raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: {e}") from e

    if isinstance(data, list):
        raw_items = data
    elif isinstance(data, dict):
        version = data.get("version")
        if version != SCHEMA_VERSION:
            raise CartDecodeError(f"{ERROR_UNSUPPORTED_VERSION}: {version!r}")
        raw_items = data.get("items")
        if not isinstance(raw_items, list):
            raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: items must be a list")
    else:
        raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: unexpected document type")

    items = [CartItem.from_dict(raw) for raw in raw_items]

    seen = set()
    for item in items:
        if item.id in seen:
            raise CartDecodeError(f"{ERROR_CORRUPTED_CART}: duplicate id")
        seen.add(item.id)

    return items
